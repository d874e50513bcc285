"""
CSV Export
==========
Spreadsheet export of saved identifications. Fixed base columns come first,
then one column per custom field currently in the schema. Every data cell
is quoted and embedded quotes are doubled.
"""
from __future__ import annotations

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .schemas import CustomFieldDefinition, IdentificationRecord

logger = logging.getLogger(__name__)

BASE_HEADERS = [
    "Scientific Name",
    "Identification Date",
    "Observation Date",
    "Location",
    "Identifier",
    "Method",
    "Confidence",
    "Notes",
]


def export_headers(fields: Sequence[CustomFieldDefinition]) -> List[str]:
    return BASE_HEADERS + [definition.label for definition in fields]


def record_row(
    record: IdentificationRecord,
    fields: Sequence[CustomFieldDefinition],
) -> List[str]:
    row = [
        record.taxon.scientific_name,
        record.identification_date,
        record.observation_date or "",
        record.location or "",
        record.identifier or "",
        record.method or "",
        record.confidence.value if record.confidence else "",
        record.notes or "",
    ]
    row.extend(record.custom_fields.get(definition.id, "") for definition in fields)
    return row


def export_csv(
    records: Sequence[IdentificationRecord],
    fields: Sequence[CustomFieldDefinition],
) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(export_headers(fields))
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        writer.writerow(record_row(record, fields))
    return buffer.getvalue()


def export_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"insect-identifications-{day.isoformat()}.csv"


def write_csv(
    path: Union[str, Path],
    records: Sequence[IdentificationRecord],
    fields: Sequence[CustomFieldDefinition],
) -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(export_csv(records, fields))
    logger.info(f"Exported {len(records)} identifications to {path}")
    return path
