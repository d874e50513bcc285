from __future__ import annotations

import pytest

from insectid.exceptions import StorageError
from insectid.schemas import Taxon
from insectid.state import IdentificationStore
from insectid.storage import MemoryKeyValueStore


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.writes = []

    def set(self, key, value):
        if self.fail_writes:
            raise StorageError(f"disk full while writing {key}")
        self.writes.append(key)
        super().set(key, value)


def _make_taxon(key: int, name: str = None, **extra) -> Taxon:
    return Taxon(
        key=key,
        scientific_name=name or f"Testus species{key}",
        rank="SPECIES",
        **extra,
    )


@pytest.fixture
def make_taxon():
    return _make_taxon


@pytest.fixture
def kv():
    return FlakyStore()


@pytest.fixture
def store(kv):
    s = IdentificationStore(kv)
    s.load_all()
    return s


@pytest.fixture
def apis():
    return _make_taxon(
        1341976,
        "Apis mellifera Linnaeus, 1758",
        status="ACCEPTED",
        kingdom="Animalia",
        phylum="Arthropoda",
        class_="Insecta",
        order="Hymenoptera",
        family="Apidae",
        genus="Apis",
        species="Apis mellifera",
        canonical_name="Apis mellifera",
    )
