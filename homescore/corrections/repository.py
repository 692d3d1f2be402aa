from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from homescore.models import Correction, CorrectionEvent
from .schemas import CorrectionStatus


class CorrectionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, correction_id: int) -> Optional[Correction]:
        return self.db.get(Correction, correction_id)

    def create(self, correction: Correction, at: datetime) -> Correction:
        self.db.add(correction)
        self.db.flush()
        self.db.add(
            CorrectionEvent(
                correction_id=correction.id,
                property_id=correction.property_id,
                field_key=correction.field_key,
                status=correction.status,
                actor_user_id=correction.submitted_by,
                created_at=at,
            )
        )
        self.db.commit()
        self.db.refresh(correction)
        return correction

    def record_transition(
        self,
        correction: Correction,
        status: CorrectionStatus,
        actor_user_id: Optional[int],
        note: Optional[str],
        at: datetime,
    ) -> Correction:
        correction.status = status.value
        correction.resolved_by = actor_user_id
        correction.resolved_at = at
        correction.resolution_note = note
        self.db.add(
            CorrectionEvent(
                correction_id=correction.id,
                property_id=correction.property_id,
                field_key=correction.field_key,
                status=status.value,
                actor_user_id=actor_user_id,
                note=note,
                created_at=at,
            )
        )
        self.db.commit()
        self.db.refresh(correction)
        return correction

    def list_for_property(self, property_id: int, limit: int = 20) -> List[Correction]:
        return (
            self.db.query(Correction)
            .filter(Correction.property_id == property_id)
            .order_by(Correction.submitted_at.desc(), Correction.id.desc())
            .limit(limit)
            .all()
        )

    def list_events(self, property_id: int, limit: int = 50) -> List[CorrectionEvent]:
        return (
            self.db.query(CorrectionEvent)
            .filter(CorrectionEvent.property_id == property_id)
            .order_by(CorrectionEvent.created_at.desc(), CorrectionEvent.id.desc())
            .limit(limit)
            .all()
        )

    def open_field_keys(self, property_id: int) -> Set[str]:
        rows = (
            self.db.query(Correction.field_key)
            .filter(
                Correction.property_id == property_id,
                Correction.status == CorrectionStatus.SUBMITTED.value,
            )
            .all()
        )
        return {k for (k,) in rows}
