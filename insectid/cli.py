"""
insectid Command Line
=====================
Record, browse and export insect identifications from a terminal.

Usage:
    insectid search "Apis mell"
    insectid record --query "Apis mellifera" --field "Sample Code=A1"
    insectid history
    insectid export identifications.csv
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import settings
from .exceptions import InsectIdError
from .export import export_filename, write_csv
from .schemas import Confidence, CustomFieldCreate, FieldType, Taxon
from .sources.gbif import get_taxon_details, search_taxa, species_page_url
from .state import IdentificationStore
from .storage import FileKeyValueStore
from .submission import submit_draft
from .validation import validate_custom_field

logger = logging.getLogger("insectid")


class CommandError(InsectIdError):
    """A command could not be carried out as requested."""
    pass


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def open_store(data_dir: Optional[Path] = None) -> IdentificationStore:
    store = IdentificationStore(FileKeyValueStore(data_dir or settings.data_dir))
    store.load_all()
    return store


def format_taxon(taxon: Taxon) -> str:
    line = f"{taxon.scientific_name} [{taxon.rank}] key={taxon.key}"
    if taxon.accepted_name:
        line += f" (synonym of {taxon.accepted_name})"
    return line


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def cmd_search(args: argparse.Namespace, store: IdentificationStore) -> int:
    results = asyncio.run(search_taxa(args.query, limit=args.limit))
    if not results:
        print("No results")
        return 0
    for index, taxon in enumerate(results, start=1):
        print(f"{index:3}. {format_taxon(taxon)}")
    return 0


def _resolve_taxon(args: argparse.Namespace, store: IdentificationStore) -> Optional[Taxon]:
    if args.taxon_key is not None:
        return asyncio.run(get_taxon_details(args.taxon_key))
    if args.query:
        results = asyncio.run(search_taxa(args.query))
        if not results:
            raise CommandError(f"No taxa found for {args.query!r}")
        return results[0]
    if args.recent is not None:
        recent = store.recent_taxa
        if not 1 <= args.recent <= len(recent):
            raise CommandError(f"No recent taxon #{args.recent} ({len(recent)} available)")
        return recent[args.recent - 1]
    return None


def _parse_field_values(pairs: List[str], store: IdentificationStore) -> Dict[str, str]:
    by_label = {definition.label.casefold(): definition for definition in store.custom_fields}
    values: Dict[str, str] = {}
    for pair in pairs:
        label, sep, value = pair.partition("=")
        if not sep:
            raise CommandError(f"Expected LABEL=VALUE, got {pair!r}")
        definition = by_label.get(label.strip().casefold())
        if definition is None:
            raise CommandError(f"Unknown custom field {label.strip()!r}")
        values[definition.id] = value
    return values


def cmd_record(args: argparse.Namespace, store: IdentificationStore) -> int:
    taxon = _resolve_taxon(args, store)
    if taxon is not None:
        store.select_taxon(taxon)

    metadata = {
        "identification_date": args.identification_date,
        "observation_date": args.observation_date,
        "location": args.location,
        "identifier": args.identifier,
        "confidence": args.confidence,
        "method": args.method,
        "notes": args.notes,
    }
    store.update_draft(**{name: value for name, value in metadata.items() if value is not None})
    for field_id, value in _parse_field_values(args.field or [], store).items():
        store.set_draft_custom_value(field_id, value)

    result = submit_draft(store)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if not result.ok:
        print(result.message, file=sys.stderr)
        return 1
    print(f"{result.message}: {result.record.taxon.scientific_name} ({result.record.id})")
    return 0


def cmd_history(args: argparse.Namespace, store: IdentificationStore) -> int:
    records = store.identifications
    if not records:
        print("No identifications recorded yet.")
        return 0
    labels = {definition.id: definition.label for definition in store.custom_fields}
    for record in records if args.limit is None else records[: args.limit]:
        print(f"{record.identification_date}  {record.taxon.scientific_name}  [{record.id}]")
        if args.details:
            details = [
                ("Observed", record.observation_date),
                ("Location", record.location),
                ("Identifier", record.identifier),
                ("Method", record.method),
                ("Confidence", record.confidence.value if record.confidence else None),
                ("Notes", record.notes),
            ]
            details.extend((labels[field_id], value) for field_id, value in record.custom_fields.items() if field_id in labels)
            for label, value in details:
                if value:
                    print(f"    {label}: {value}")
            print(f"    GBIF: {species_page_url(record.taxon.key)}")
    return 0


def cmd_recent(args: argparse.Namespace, store: IdentificationStore) -> int:
    recent = store.recent_taxa
    if not recent:
        print("No recent taxa.")
        return 0
    for index, taxon in enumerate(recent, start=1):
        print(f"{index:3}. {format_taxon(taxon)}")
    return 0


def cmd_fields(args: argparse.Namespace, store: IdentificationStore) -> int:
    if args.fields_command == "add":
        definition = CustomFieldCreate(
            label=args.label,
            type=FieldType(args.type),
            required=args.required,
            options=args.option or None,
        )
        result = validate_custom_field(definition)
        if not result.valid:
            for error in result.errors:
                print(error, file=sys.stderr)
            return 1
        created = store.add_custom_field(definition)
        print(f"Added {created.label} ({created.id})")
        return 0

    if args.fields_command == "remove":
        if not store.remove_custom_field(args.field_id):
            print(f"No custom field {args.field_id}", file=sys.stderr)
        return 0

    if not store.custom_fields:
        print("No custom fields defined yet.")
        return 0
    for definition in store.custom_fields:
        flags = " required" if definition.required else ""
        options = f" [{', '.join(definition.options)}]" if definition.options else ""
        print(f"{definition.id}  {definition.label} ({definition.type.value}{flags}){options}")
    return 0


def cmd_export(args: argparse.Namespace, store: IdentificationStore) -> int:
    path = Path(args.path) if args.path else Path(export_filename())
    try:
        write_csv(path, store.identifications, store.custom_fields)
    except OSError as e:
        raise CommandError(f"Cannot write {path}: {e}") from e
    print(f"Exported {len(store.identifications)} identifications to {path}")
    return 0


COMMANDS = {
    "search": cmd_search,
    "record": cmd_record,
    "history": cmd_history,
    "recent": cmd_recent,
    "fields": cmd_fields,
    "export": cmd_export,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insectid",
        description="Record entomological species identifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  insectid search "Bombus terr"
  insectid record --taxon-key 1340278 --location "Meadow B" --field "Sample Code=A1"
  insectid fields add "Trap Number" --type number --required
  insectid export
        """,
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Storage directory (default: INSECTID_DATA_DIR)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search GBIF for taxa")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=None, help="Maximum suggestions")

    record = subparsers.add_parser("record", help="Save a new identification")
    taxon = record.add_mutually_exclusive_group()
    taxon.add_argument("--taxon-key", type=int, help="GBIF taxon key")
    taxon.add_argument("--query", help="Use the first GBIF suggestion for this name")
    taxon.add_argument("--recent", type=int, help="Use recent taxon number N (see 'recent')")
    record.add_argument("--identification-date", help="ISO date (default: today)")
    record.add_argument("--observation-date", help="ISO date")
    record.add_argument("--location")
    record.add_argument("--identifier", help="Name of the person identifying")
    record.add_argument("--confidence", choices=[c.value for c in Confidence])
    record.add_argument("--method")
    record.add_argument("--notes")
    record.add_argument("--field", action="append", metavar="LABEL=VALUE", help="Custom field value (repeatable)")

    history = subparsers.add_parser("history", help="List saved identifications")
    history.add_argument("--limit", type=int, default=None)
    history.add_argument("--details", dest="details", action="store_true", help="Show all recorded metadata")

    subparsers.add_parser("recent", help="List recently used taxa")

    fields = subparsers.add_parser("fields", help="Manage custom fields")
    fields_sub = fields.add_subparsers(dest="fields_command")
    fields_sub.add_parser("list", help="List custom fields")
    add = fields_sub.add_parser("add", help="Add a custom field")
    add.add_argument("label")
    add.add_argument("--type", choices=[t.value for t in FieldType], default=FieldType.TEXT.value)
    add.add_argument("--required", action="store_true")
    add.add_argument("--option", action="append", help="Choice for select fields (repeatable)")
    remove = fields_sub.add_parser("remove", help="Remove a custom field")
    remove.add_argument("field_id")

    export = subparsers.add_parser("export", help="Write saved identifications to CSV")
    export.add_argument("path", nargs="?", default=None)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        store = open_store(args.data_dir)
        return COMMANDS[args.command](args, store)
    except InsectIdError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
