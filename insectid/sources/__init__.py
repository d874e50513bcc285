"""Remote taxonomy sources."""

__all__ = [
    "gbif",
]
