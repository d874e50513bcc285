"""Checks run before drafts and custom fields are committed."""

from .draft_validator import (
    ValidationResult,
    missing_required_fields,
    validate_custom_field,
    validate_draft,
)

__all__ = [
    "ValidationResult",
    "missing_required_fields",
    "validate_custom_field",
    "validate_draft",
]
