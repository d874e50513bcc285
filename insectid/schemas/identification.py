from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import ConfigDict, Field, field_validator

from .common import CamelModel
from .taxon import Taxon


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IdentificationBase(CamelModel):
    identification_date: str
    observation_date: Optional[str] = None
    location: Optional[str] = None
    habitat: Optional[str] = None
    collector: Optional[str] = None
    identifier: Optional[str] = None
    sample_code: Optional[str] = None
    notes: Optional[str] = None
    confidence: Optional[Confidence] = None
    method: Optional[str] = None
    custom_fields: Dict[str, str] = Field(
        default_factory=dict,
        description="Values keyed by custom field id. Keys of removed fields are kept.",
    )

    @field_validator("confidence", mode="before")
    @classmethod
    def _blank_confidence(cls, value: Any) -> Any:
        # The unselected form option is stored as an empty string.
        return value or None


class IdentificationRecord(IdentificationBase):
    """A saved identification. Never edited after it is created."""

    model_config = ConfigDict(frozen=True)

    id: str
    taxon: Taxon


class Draft(IdentificationBase):
    """The single in-progress identification."""

    model_config = ConfigDict(extra="forbid")

    id: str
    taxon: Optional[Taxon] = None

    @classmethod
    def empty(cls) -> "Draft":
        return cls(
            id=str(uuid4()),
            identification_date=date.today().isoformat(),
        )
