import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from homescore.core.errors import ConflictError, NotFoundError, ValidationError
from homescore.core.metrics import corrections_submitted_total
from homescore.models import Correction
from homescore.properties.fields import GENERAL_FIELD_KEY, field_label, is_known_field
from homescore.properties.repository import PropertyRepository
from homescore.utils.timezone import utcnow
from .repository import CorrectionRepository
from .schemas import CorrectionEventRecord, CorrectionRecord, CorrectionStatus

logger = logging.getLogger(__name__)

MIN_DETAIL_LENGTH = 6
ALLOWED_TRANSITIONS = {
    CorrectionStatus.SUBMITTED: (CorrectionStatus.APPLIED, CorrectionStatus.REJECTED),
}


class CorrectionLedger:
    """Append-only audit trail of user-submitted fact corrections."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.properties = PropertyRepository(db)
        self.corrections = CorrectionRepository(db)

    def submit_correction(
        self,
        property_id: int,
        user_id: int,
        field_key: str,
        detail: str,
        proposed_value: Optional[str] = None,
        title: Optional[str] = None,
    ) -> CorrectionRecord:
        facts = self.properties.get_owned_facts(property_id, user_id)
        if facts is None:
            raise NotFoundError(f"Property {property_id} not found or access denied")

        field_key = (field_key or "").strip()
        detail = (detail or "").strip()
        if not is_known_field(field_key):
            raise ValidationError(f"Unknown field '{field_key}'")
        if len(detail) < MIN_DETAIL_LENGTH:
            raise ValidationError(f"Correction detail must be at least {MIN_DETAIL_LENGTH} characters")

        current_value = None if field_key == GENERAL_FIELD_KEY else facts.value_of(field_key)
        now = self.clock()
        correction = Correction(
            property_id=property_id,
            field_key=field_key,
            title=(title or "").strip() or f"Correction requested: {field_label(field_key)}",
            detail=detail,
            current_value=current_value,
            proposed_value=proposed_value,
            status=CorrectionStatus.SUBMITTED.value,
            submitted_by=user_id,
            submitted_at=now,
        )
        correction = self.corrections.create(correction, now)
        corrections_submitted_total.inc()
        logger.info(f"[Corrections] Property {property_id} correction {correction.id} submitted for {field_key}")
        return CorrectionRecord.model_validate(correction)

    def transition(
        self,
        correction_id: int,
        status: CorrectionStatus,
        resolved_by: Optional[int] = None,
        note: Optional[str] = None,
    ) -> CorrectionRecord:
        """Administrative status change; only SUBMITTED corrections can move."""
        correction = self.corrections.get(correction_id)
        if correction is None:
            raise NotFoundError(f"Correction {correction_id} not found")
        current = CorrectionStatus(correction.status)
        if status not in ALLOWED_TRANSITIONS.get(current, ()):
            raise ConflictError(f"Correction {correction_id} cannot move from {current.value} to {status.value}")
        correction = self.corrections.record_transition(correction, status, resolved_by, note, self.clock())
        logger.info(f"[Corrections] Correction {correction_id} moved to {status.value}")
        return CorrectionRecord.model_validate(correction)

    def list_corrections(self, property_id: int, limit: int = 20) -> List[CorrectionRecord]:
        return [CorrectionRecord.model_validate(c) for c in self.corrections.list_for_property(property_id, limit)]

    def list_events(self, property_id: int, limit: int = 50) -> List[CorrectionEventRecord]:
        return [CorrectionEventRecord.model_validate(e) for e in self.corrections.list_events(property_id, limit)]

    def open_field_keys(self, property_id: int):
        return self.corrections.open_field_keys(property_id)
