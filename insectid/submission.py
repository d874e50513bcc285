from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .exceptions import StorageError
from .schemas import IdentificationRecord
from .state import IdentificationStore
from .validation import validate_draft

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Identification saved successfully"
SAVE_ERROR_MESSAGE = "Error saving identification"


@dataclass
class SubmissionResult:
    ok: bool
    message: str
    record: Optional[IdentificationRecord] = None
    warnings: List[str] = field(default_factory=list)


def submit_draft(store: IdentificationStore) -> SubmissionResult:
    """
    Validate the current draft and promote it to a saved record.

    On a validation failure nothing changes. If the store cannot be written
    the draft is kept so the user can try again.
    """
    draft = store.draft
    result = validate_draft(draft, store.custom_fields)
    if not result.valid:
        logger.info(f"Draft {draft.id} rejected: {result.message}")
        return SubmissionResult(ok=False, message=result.message, warnings=result.warnings)

    try:
        record = store.add_identification(draft)
    except StorageError as e:
        logger.error(f"Error saving identification: {e}", exc_info=True)
        return SubmissionResult(ok=False, message=SAVE_ERROR_MESSAGE, warnings=result.warnings)

    store.reset_draft()
    return SubmissionResult(ok=True, message=SUCCESS_MESSAGE, record=record, warnings=result.warnings)
