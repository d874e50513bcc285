from __future__ import annotations

import httpx
import respx

from insectid.cli import main
from insectid.config import settings
from insectid.state import IdentificationStore
from insectid.storage import FileKeyValueStore

SUGGEST_URL = f"{settings.gbif_base_url}/species/suggest"

BOMBUS = {
    "key": 1340278,
    "scientificName": "Bombus terrestris (Linnaeus, 1758)",
    "rank": "SPECIES",
    "status": "ACCEPTED",
    "class": "Insecta",
}


def _run(tmp_path, *argv):
    return main(["--data-dir", str(tmp_path), *argv])


def _record_bombus(tmp_path, *extra):
    with respx.mock as mock:
        mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=[BOMBUS]))
        return _run(tmp_path, "record", "--query", "Bombus terr", *extra)


def test_record_then_history_and_recent(tmp_path, capsys):
    code = _record_bombus(
        tmp_path,
        "--location", "Meadow B",
        "--confidence", "high",
        "--field", "Sample Code=A1",
        "--field", "collection method=Net",
    )
    assert code == 0
    assert "Identification saved successfully" in capsys.readouterr().out

    store = IdentificationStore(FileKeyValueStore(tmp_path))
    store.load_all()
    record = store.identifications[0]
    assert record.taxon.key == 1340278
    assert record.location == "Meadow B"
    assert record.custom_fields == {"field-1": "A1", "field-2": "Net"}

    assert _run(tmp_path, "history", "--details") == 0
    out = capsys.readouterr().out
    assert "Bombus terrestris (Linnaeus, 1758)" in out
    assert "Sample Code: A1" in out
    assert "https://www.gbif.org/species/1340278" in out

    assert _run(tmp_path, "recent") == 0
    assert "1. Bombus terrestris" in capsys.readouterr().out


def test_record_reports_missing_required_field(tmp_path, capsys):
    assert _record_bombus(tmp_path) == 1
    assert "Sample Code" in capsys.readouterr().err

    store = IdentificationStore(FileKeyValueStore(tmp_path))
    store.load_all()
    assert store.identifications == []
    assert [t.key for t in store.recent_taxa] == [1340278]


def test_record_without_taxon(tmp_path, capsys):
    assert _run(tmp_path, "record", "--field", "Sample Code=A1") == 1
    assert "Please select a taxon first" in capsys.readouterr().err


def test_record_from_recent_taxon(tmp_path, capsys):
    _record_bombus(tmp_path)
    capsys.readouterr()

    assert _run(tmp_path, "record", "--recent", "1", "--field", "Sample Code=C3") == 0
    assert _run(tmp_path, "record", "--recent", "4", "--field", "Sample Code=C4") == 1
    assert "No recent taxon #4" in capsys.readouterr().err


def test_unknown_field_label(tmp_path, capsys):
    assert _record_bombus(tmp_path, "--field", "Colour=red") == 1
    assert "Unknown custom field 'Colour'" in capsys.readouterr().err


def test_fields_add_list_remove(tmp_path, capsys):
    assert _run(tmp_path, "fields", "add", "Stage", "--type", "select") == 1
    assert "Select fields require at least one option" in capsys.readouterr().err

    assert _run(tmp_path, "fields", "add", "Stage", "--type", "select", "--option", "Larva", "--option", "Adult") == 0
    capsys.readouterr()

    assert _run(tmp_path, "fields", "remove", "field-2") == 0
    assert _run(tmp_path, "fields") == 0
    out = capsys.readouterr().out
    assert "Stage (select) [Larva, Adult]" in out
    assert "Collection Method" not in out
    assert "field-1  Sample Code (text required)" in out


def test_export(tmp_path, capsys):
    _record_bombus(tmp_path, "--field", "Sample Code=A1")
    target = tmp_path / "export.csv"

    assert _run(tmp_path, "export", str(target)) == 0

    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Scientific Name,Identification Date")
    assert lines[1].startswith('"Bombus terrestris (Linnaeus, 1758)"')


def test_export_to_missing_directory_reports_error(tmp_path, capsys):
    target = tmp_path / "missing" / "export.csv"

    assert _run(tmp_path, "export", str(target)) == 1
    assert "Cannot write" in capsys.readouterr().err
    assert not target.exists()


def test_history_limit(tmp_path, capsys):
    _record_bombus(tmp_path, "--field", "Sample Code=A1")
    _record_bombus(tmp_path, "--field", "Sample Code=A2")
    capsys.readouterr()

    assert _run(tmp_path, "history", "--limit", "1") == 0
    assert capsys.readouterr().out.count("Bombus terrestris") == 1

    assert _run(tmp_path, "history", "--limit", "0") == 0
    assert "Bombus terrestris" not in capsys.readouterr().out


def test_search_prints_suggestions(tmp_path, capsys):
    with respx.mock as mock:
        mock.get(SUGGEST_URL).mock(return_value=httpx.Response(200, json=[BOMBUS]))
        assert _run(tmp_path, "search", "Bombus") == 0
    assert "Bombus terrestris (Linnaeus, 1758) [SPECIES] key=1340278" in capsys.readouterr().out
