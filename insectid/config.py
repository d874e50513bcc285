from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Local storage
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".insectid",
        description="Directory holding one JSON file per persisted collection.",
    )

    # GBIF (Global Biodiversity Information Facility)
    gbif_base_url: str = "https://api.gbif.org/v1"
    gbif_species_page_url: str = "https://www.gbif.org/species"
    http_timeout: float = 10.0

    # Taxon search
    search_limit: int = 10
    search_min_length: int = 2
    search_debounce_seconds: float = 0.3

    # Identification state
    recent_taxa_limit: int = Field(
        10,
        ge=1,
        description="Maximum number of taxa kept in the recent-taxa shortcut list.",
    )

    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "INSECTID_",
        "case_sensitive": False,
    }


settings = Settings()
