import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homescore.models import ScoreSnapshot
from .engine import SNAPSHOT_SCHEMA_VERSION, SnapshotDetail

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Append-only weekly score rows keyed by (property, score type, week)."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, property_id: int, score_type: str, week: date) -> Optional[ScoreSnapshot]:
        return (
            self.db.query(ScoreSnapshot)
            .filter(
                ScoreSnapshot.property_id == property_id,
                ScoreSnapshot.score_type == score_type,
                ScoreSnapshot.week_start == week,
            )
            .first()
        )

    def append(
        self,
        property_id: int,
        score_type: str,
        week: date,
        score: float,
        score_max: float,
        score_band: Optional[str],
        detail: Optional[SnapshotDetail],
        computed_at: datetime,
    ) -> Tuple[ScoreSnapshot, bool]:
        """Insert the week's row unless one exists. Returns (row, created)."""
        existing = self.find(property_id, score_type, week)
        if existing is not None:
            return existing, False

        row = ScoreSnapshot(
            property_id=property_id,
            score_type=score_type,
            week_start=week,
            score=score,
            score_max=score_max,
            score_band=score_band,
            detail=detail.model_dump() if detail is not None else None,
            schema_version=SNAPSHOT_SCHEMA_VERSION,
            computed_at=computed_at,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # Another writer captured the same week first.
            self.db.rollback()
            logger.info(f"[Snapshots] {score_type} week {week} for property {property_id} already captured")
            return self.find(property_id, score_type, week), False
        self.db.refresh(row)
        return row, True

    def list_recent(self, property_id: int, score_type: str, limit: int) -> List[ScoreSnapshot]:
        return (
            self.db.query(ScoreSnapshot)
            .filter(ScoreSnapshot.property_id == property_id, ScoreSnapshot.score_type == score_type)
            .order_by(ScoreSnapshot.week_start.desc())
            .limit(limit)
            .all()
        )

    def latest(self, property_id: int, score_type: str) -> Optional[ScoreSnapshot]:
        rows = self.list_recent(property_id, score_type, 1)
        return rows[0] if rows else None
