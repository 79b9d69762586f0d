# emr_core/progress_notes/subscribers.py
import logging

from emr_core.common.events import subscribe
from emr_core.common.logging import log_domain_event
from emr_core.progress_notes.services.lifecycle import NOTE_FINALIZED

logger = logging.getLogger(__name__)


@subscribe(NOTE_FINALIZED)
def on_note_finalized(payload: dict) -> None:
    # Downstream indexing/notification consumers hook in next to this one.
    log_domain_event(
        logger,
        "note.finalized.delivered",
        entity_type="progress_note",
        entity_id=payload["note_id"],
        encounter_id=payload.get("encounter_id"),
        author_id=payload.get("author_id"),
        finalized_at=payload.get("finalized_at"),
    )
