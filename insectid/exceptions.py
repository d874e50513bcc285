from __future__ import annotations


class InsectIdError(Exception):
    """Base exception for identification errors."""
    pass


class StorageError(InsectIdError):
    """The key-value backend could not read or write a value."""
    pass


class CorruptValueError(StorageError):
    """A stored value exists but cannot be decoded as text."""
    pass


class UnknownFieldError(InsectIdError, KeyError):
    """A custom value was set for a field id that is not in the schema."""

    def __init__(self, field_id: str):
        super().__init__(field_id)
        self.field_id = field_id

    def __str__(self) -> str:
        return f"Unknown custom field: {self.field_id}"


class GbifError(InsectIdError):
    """GBIF lookup failed."""
    pass
