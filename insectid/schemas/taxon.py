from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import ConfigDict, Field

from .common import CamelModel

HIERARCHY_LEVELS = (
    ("Kingdom", "kingdom"),
    ("Phylum", "phylum"),
    ("Class", "class_"),
    ("Order", "order"),
    ("Family", "family"),
    ("Genus", "genus"),
    ("Species", "species"),
)


class Taxon(CamelModel):
    """A GBIF name usage as kept on identification records."""

    model_config = ConfigDict(frozen=True)

    key: int
    scientific_name: str
    rank: str
    status: Optional[str] = None
    accepted_name: Optional[str] = None
    kingdom: Optional[str] = None
    phylum: Optional[str] = None
    class_: Optional[str] = Field(None, alias="class")
    order: Optional[str] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None
    canonical_name: Optional[str] = None

    @property
    def is_synonym(self) -> bool:
        return bool(self.accepted_name) or (self.status or "").upper() == "SYNONYM"

    def hierarchy(self) -> List[Tuple[str, str]]:
        """Return (label, value) pairs for the ranks that are filled in."""
        levels = []
        for label, attr in HIERARCHY_LEVELS:
            value = getattr(self, attr)
            if value:
                levels.append((label, value))
        return levels
