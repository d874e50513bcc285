"""Response schemas for the GBIF species API, checked before anything becomes a Taxon."""
from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field

from .common import CamelModel
from .taxon import Taxon


class GbifNameUsage(CamelModel):
    """One item of ``/species/suggest`` or the body of ``/species/{key}``."""

    model_config = ConfigDict(extra="ignore")

    key: int
    scientific_name: str
    canonical_name: Optional[str] = None
    rank: Optional[str] = None
    status: Optional[str] = None
    taxonomic_status: Optional[str] = None
    accepted: Optional[str] = None
    accepted_key: Optional[int] = None
    kingdom: Optional[str] = None
    phylum: Optional[str] = None
    class_: Optional[str] = Field(None, alias="class")
    order: Optional[str] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None

    def to_taxon(self) -> Taxon:
        return Taxon(
            key=self.key,
            scientific_name=self.scientific_name,
            rank=self.rank or "UNRANKED",
            status=self.status or self.taxonomic_status,
            accepted_name=self.accepted,
            kingdom=self.kingdom,
            phylum=self.phylum,
            class_=self.class_,
            order=self.order,
            family=self.family,
            genus=self.genus,
            species=self.species,
            canonical_name=self.canonical_name,
        )
