"""
Draft Validator
===============
Submission checks for the in-progress identification and for new custom
field definitions:
- a taxon must be selected
- every required custom field must hold a non-blank value
- custom field labels must be non-blank, select fields need options

Validation never touches state; callers decide what to do with the result.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..schemas import CustomFieldCreate, CustomFieldDefinition, Draft, FieldType

MISSING_TAXON_MESSAGE = "Please select a taxon first"
MISSING_FIELDS_MESSAGE = "Please fill in the required fields: {labels}"
MISSING_LABEL_MESSAGE = "Label is required"
MISSING_OPTIONS_MESSAGE = "Select fields require at least one option"


@dataclass
class ValidationResult:
    """Result of draft or field validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "; ".join(self.errors)


def missing_required_fields(
    draft: Draft,
    fields: Sequence[CustomFieldDefinition],
) -> List[CustomFieldDefinition]:
    """Required fields whose draft value is absent or blank, in schema order."""
    missing = []
    for definition in fields:
        if not definition.required:
            continue
        value = draft.custom_fields.get(definition.id)
        if not value or not value.strip():
            missing.append(definition)
    return missing


def validate_draft(
    draft: Draft,
    fields: Sequence[CustomFieldDefinition],
) -> ValidationResult:
    """
    Check that a draft may be promoted to a saved record.

    A missing taxon short-circuits the required-field check, so the user
    sees one problem at a time.
    """
    if draft.taxon is None or not draft.taxon.key:
        return ValidationResult(valid=False, errors=[MISSING_TAXON_MESSAGE])

    warnings: List[str] = []
    if draft.taxon.accepted_name:
        warnings.append(
            f"{draft.taxon.scientific_name} is a synonym of {draft.taxon.accepted_name}"
        )

    missing = missing_required_fields(draft, fields)
    if missing:
        labels = ", ".join(definition.label for definition in missing)
        return ValidationResult(
            valid=False,
            errors=[MISSING_FIELDS_MESSAGE.format(labels=labels)],
            warnings=warnings,
        )

    return ValidationResult(valid=True, warnings=warnings)


def validate_custom_field(definition: CustomFieldCreate) -> ValidationResult:
    errors: List[str] = []
    if not definition.label.strip():
        errors.append(MISSING_LABEL_MESSAGE)
    if definition.type == FieldType.SELECT and not definition.options:
        errors.append(MISSING_OPTIONS_MESSAGE)
    return ValidationResult(valid=not errors, errors=errors)
