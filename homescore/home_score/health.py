"""Health score source.

Health sub-scores are computed elsewhere; this module only defines how the
aggregator reads the latest published value.
"""

from datetime import datetime
from typing import Optional, Protocol

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from homescore.snapshots.engine import HealthSnapshotDetail, ScoreType, parse_detail
from homescore.snapshots.repository import SnapshotRepository
from homescore.snapshots.service import SnapshotService, SnapshotWrite


class HealthScoreUnavailable(Exception):
    pass


class HealthScore(BaseModel):
    score: float
    score_max: float = 100.0
    factor_count: int = Field(0, ge=0)
    missing_count: int = Field(0, ge=0)
    high_priority_count: int = Field(0, ge=0)
    last_updated_at: Optional[datetime] = None

    def detail(self) -> HealthSnapshotDetail:
        return HealthSnapshotDetail(
            factor_count=self.factor_count,
            missing_count=self.missing_count,
            high_priority_count=self.high_priority_count,
        )


class HealthScoreProvider(Protocol):
    def get_health_score(self, db: Session, property_id: int) -> HealthScore:
        ...


class SnapshotHealthScoreProvider:
    """Reads the latest HEALTH point published into the snapshot store."""

    def get_health_score(self, db: Session, property_id: int) -> HealthScore:
        row = SnapshotRepository(db).latest(property_id, ScoreType.HEALTH.value)
        if row is None:
            raise HealthScoreUnavailable(f"No health score published for property {property_id}")
        detail = parse_detail(ScoreType.HEALTH, row.detail, row.schema_version) or HealthSnapshotDetail()
        return HealthScore(
            score=row.score,
            score_max=row.score_max or 100.0,
            factor_count=detail.factor_count,
            missing_count=detail.missing_count,
            high_priority_count=detail.high_priority_count,
            last_updated_at=row.computed_at,
        )


def publish_health_score(db: Session, property_id: int, health: HealthScore, clock=None) -> SnapshotWrite:
    """Store an externally computed health score as this week's HEALTH point."""
    service = SnapshotService(db, clock) if clock else SnapshotService(db)
    return service.record(property_id, ScoreType.HEALTH, health.score, health.score_max, detail=health.detail())
