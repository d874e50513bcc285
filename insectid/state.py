"""
Identification State
====================
Owns the saved identifications, the custom field schema, the recent-taxa
shortcut list and the single in-progress draft.

Every mutation rewrites the whole affected collection to the key-value
store. The store is written first and memory is updated only after the
write succeeded, so a failed write leaves the session unchanged. The draft
lives in memory only.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Type, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import settings
from .exceptions import CorruptValueError, UnknownFieldError
from .schemas import (
    CustomFieldCreate,
    CustomFieldDefinition,
    Draft,
    FieldType,
    IdentificationRecord,
    Taxon,
)
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

IDENTIFICATIONS_KEY = "identifications"
CUSTOM_FIELDS_KEY = "customFields"
RECENT_TAXA_KEY = "recentTaxa"

identifications_adapter = TypeAdapter(List[IdentificationRecord])
custom_fields_adapter = TypeAdapter(List[CustomFieldDefinition])
recent_taxa_adapter = TypeAdapter(List[Taxon])
raw_list_adapter = TypeAdapter(List[Any])

M = TypeVar("M", bound=BaseModel)


def default_custom_fields() -> List[CustomFieldDefinition]:
    """The built-in schema used when nothing has been saved yet."""
    return [
        CustomFieldDefinition(
            id="field-1",
            label="Sample Code",
            type=FieldType.TEXT,
            required=True,
        ),
        CustomFieldDefinition(
            id="field-2",
            label="Collection Method",
            type=FieldType.SELECT,
            options=["Net", "Trap", "Hand Collection", "Light Trap", "Other"],
            required=False,
        ),
        CustomFieldDefinition(
            id="field-3",
            label="Preservation Method",
            type=FieldType.SELECT,
            options=["Pinned", "Alcohol", "Slide Mount", "Other"],
            required=False,
        ),
    ]


def _new_id(taken: Iterable[str]) -> str:
    taken = set(taken)
    while True:
        candidate = str(uuid4())
        if candidate not in taken:
            return candidate


def _as_payload(data: Union[BaseModel, Mapping[str, Any]]) -> dict:
    if isinstance(data, BaseModel):
        payload = data.model_dump()
    else:
        payload = {
            name: value.model_dump() if isinstance(value, BaseModel) else value
            for name, value in data.items()
        }
    payload.pop("id", None)
    return payload


class IdentificationStore:
    """Identification session state, synced to a key-value store."""

    def __init__(self, store: KeyValueStore, *, recent_limit: Optional[int] = None):
        self.store = store
        self.recent_limit = settings.recent_taxa_limit if recent_limit is None else recent_limit
        self._identifications: List[IdentificationRecord] = []
        self._custom_fields: List[CustomFieldDefinition] = default_custom_fields()
        self._recent_taxa: List[Taxon] = []
        self._draft: Draft = Draft.empty()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _read(self, key: str, model: Type[M], default: Callable[[], List[M]]) -> List[M]:
        try:
            raw = self.store.get(key)
        except CorruptValueError as e:
            logger.warning(f"Ignoring unreadable {key!r} blob ({e}), using defaults")
            return default()
        if raw is None:
            return default()
        try:
            items = raw_list_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable {key!r} blob ({e.error_count()} errors), using defaults")
            return default()

        loaded: List[M] = []
        for index, item in enumerate(items):
            try:
                loaded.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {key!r} entry #{index} ({e.error_count()} errors)")
        return loaded

    def _write(self, key: str, adapter: TypeAdapter, items: List[Any]) -> None:
        blob = adapter.dump_json(items, by_alias=True, exclude_none=True)
        self.store.set(key, blob.decode("utf-8"))

    def load_all(self) -> None:
        """Populate the durable collections from the store. Call once at startup."""
        self._identifications = self._read(IDENTIFICATIONS_KEY, IdentificationRecord, list)
        self._custom_fields = self._read(CUSTOM_FIELDS_KEY, CustomFieldDefinition, default_custom_fields)
        self._recent_taxa = self._read(RECENT_TAXA_KEY, Taxon, list)
        logger.info(
            f"Loaded {len(self._identifications)} identifications, "
            f"{len(self._custom_fields)} custom fields, {len(self._recent_taxa)} recent taxa"
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def identifications(self) -> List[IdentificationRecord]:
        return [record.model_copy(deep=True) for record in self._identifications]

    @property
    def custom_fields(self) -> List[CustomFieldDefinition]:
        return [definition.model_copy(deep=True) for definition in self._custom_fields]

    @property
    def recent_taxa(self) -> List[Taxon]:
        return list(self._recent_taxa)

    @property
    def draft(self) -> Draft:
        return self._draft

    def get_custom_field(self, field_id: str) -> Optional[CustomFieldDefinition]:
        for definition in self._custom_fields:
            if definition.id == field_id:
                return definition
        return None

    # ------------------------------------------------------------------
    # Saved identifications
    # ------------------------------------------------------------------

    def add_identification(self, data: Union[BaseModel, Mapping[str, Any]]) -> IdentificationRecord:
        """
        Save a new record at the front of the collection.

        Any ``id`` on ``data`` is replaced with a fresh one. No submission
        checks happen here; see ``insectid.validation``.
        """
        payload = _as_payload(data)
        payload["id"] = _new_id(record.id for record in self._identifications)
        record = IdentificationRecord.model_validate(payload)

        updated = [record] + self._identifications
        self._write(IDENTIFICATIONS_KEY, identifications_adapter, updated)
        self._identifications = updated
        logger.info(f"Saved identification {record.id} ({record.taxon.scientific_name})")
        return record.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Draft
    # ------------------------------------------------------------------

    def update_draft(self, **fields: Any) -> Draft:
        """Shallow-merge ``fields`` (attribute names) into the draft."""
        if self._draft is None:
            return self._draft
        merged = self._draft.model_dump()
        merged.update(fields)
        self._draft = Draft.model_validate(merged)
        return self._draft

    def set_draft(self, draft: Draft) -> None:
        if draft is None:
            raise ValueError("The draft cannot be cleared, use reset_draft()")
        self._draft = draft

    def set_draft_custom_value(self, field_id: str, value: str) -> Draft:
        if self.get_custom_field(field_id) is None:
            raise UnknownFieldError(field_id)
        values = dict(self._draft.custom_fields)
        values[field_id] = value
        return self.update_draft(custom_fields=values)

    def select_taxon(self, taxon: Taxon) -> Draft:
        """Put ``taxon`` on the draft and remember it as recently used."""
        draft = self.update_draft(taxon=taxon)
        self.add_to_recent_taxa(taxon)
        return draft

    def reset_draft(self) -> Draft:
        self._draft = Draft.empty()
        return self._draft

    # ------------------------------------------------------------------
    # Custom field schema
    # ------------------------------------------------------------------

    def add_custom_field(self, data: Union[BaseModel, Mapping[str, Any]]) -> CustomFieldDefinition:
        payload = CustomFieldCreate.model_validate(_as_payload(data)).model_dump()
        payload["id"] = _new_id(definition.id for definition in self._custom_fields)
        definition = CustomFieldDefinition.model_validate(payload)

        updated = self._custom_fields + [definition]
        self._write(CUSTOM_FIELDS_KEY, custom_fields_adapter, updated)
        self._custom_fields = updated
        logger.info(f"Added custom field {definition.label!r} ({definition.id})")
        return definition

    def remove_custom_field(self, field_id: str) -> bool:
        """
        Drop a field from the schema. Unknown ids are ignored.

        Values already stored under ``field_id`` on saved records and on the
        draft are left in place.
        """
        updated = [definition for definition in self._custom_fields if definition.id != field_id]
        removed = len(updated) != len(self._custom_fields)
        self._write(CUSTOM_FIELDS_KEY, custom_fields_adapter, updated)
        self._custom_fields = updated
        if removed:
            logger.info(f"Removed custom field {field_id}")
        return removed

    # ------------------------------------------------------------------
    # Recent taxa
    # ------------------------------------------------------------------

    def add_to_recent_taxa(self, taxon: Taxon) -> List[Taxon]:
        """Move or insert ``taxon`` at the front, keeping at most ``recent_limit``."""
        entry = Taxon.model_validate(taxon.model_dump())
        updated = [entry] + [t for t in self._recent_taxa if t.key != entry.key]
        updated = updated[: self.recent_limit]
        self._write(RECENT_TAXA_KEY, recent_taxa_adapter, updated)
        self._recent_taxa = updated
        return self.recent_taxa
