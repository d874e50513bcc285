from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import CamelModel


class FieldType(str, Enum):
    """Input types a custom field can take."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class CustomFieldCreate(CamelModel):
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: Optional[List[str]] = Field(
        None,
        description="Choices for select fields, in display order.",
    )


class CustomFieldDefinition(CustomFieldCreate):
    id: str
