import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from homescore.core.metrics import snapshots_written_total
from homescore.financial.repository import FinancialReportRepository
from homescore.financial.schemas import FinancialStatus
from homescore.risk.repository import RiskReportRepository
from homescore.risk.schemas import RiskReportStatus
from homescore.utils.timezone import utcnow
from .engine import (
    FinancialSnapshotDetail,
    RiskSnapshotDetail,
    ScoreSeries,
    ScoreType,
    SnapshotDetail,
    build_series,
    clamp_weeks,
    score_band,
    week_start,
)
from .repository import SnapshotRepository

logger = logging.getLogger(__name__)


class SnapshotSummary(BaseModel):
    property_id: int
    weeks: int
    scores: Dict[ScoreType, ScoreSeries]

    def series(self, score_type: ScoreType) -> ScoreSeries:
        return self.scores[score_type]


class SnapshotWrite(BaseModel):
    score_type: ScoreType
    week_start: date
    score: float
    created: bool


class SnapshotService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.snapshots = SnapshotRepository(db)

    def get_summary(self, property_id: int, weeks: Any = None) -> SnapshotSummary:
        weeks = clamp_weeks(weeks)
        scores = {
            score_type: build_series(score_type, self.snapshots.list_recent(property_id, score_type.value, weeks))
            for score_type in ScoreType
        }
        return SnapshotSummary(property_id=property_id, weeks=weeks, scores=scores)

    def record(
        self,
        property_id: int,
        score_type: ScoreType,
        score: float,
        score_max: float = 100.0,
        detail: Optional[SnapshotDetail] = None,
    ) -> SnapshotWrite:
        now = self.clock()
        week = week_start(now.date())
        row, created = self.snapshots.append(
            property_id,
            score_type.value,
            week,
            score,
            score_max,
            score_band(score / score_max * 100 if score_max else score),
            detail,
            now,
        )
        if created:
            snapshots_written_total.labels(score_type=score_type.value).inc()
        return SnapshotWrite(
            score_type=score_type,
            week_start=row.week_start,
            score=row.score,
            created=created,
        )

    def capture_weekly(self, property_id: int) -> List[SnapshotWrite]:
        """Record this week's RISK and FINANCIAL points from the stored reports.

        HEALTH points are written by the health score source through ``record``.
        """
        writes = []
        risk = RiskReportRepository(self.db).get(property_id)
        if risk is not None and risk.status == RiskReportStatus.CALCULATED.value:
            writes.append(
                self.record(
                    property_id,
                    ScoreType.RISK,
                    float(risk.risk_score),
                    detail=RiskSnapshotDetail(financial_exposure_total=float(risk.financial_exposure_total or 0.0)),
                )
            )

        financial = FinancialReportRepository(self.db).get(property_id)
        if financial is not None and financial.status == FinancialStatus.CALCULATED.value:
            writes.append(
                self.record(
                    property_id,
                    ScoreType.FINANCIAL,
                    float(financial.financial_efficiency_score),
                    detail=FinancialSnapshotDetail(market_average_total=float(financial.market_average_total or 0.0)),
                )
            )

        logger.info(
            f"[Snapshots] Captured {sum(1 for w in writes if w.created)} new snapshots for property {property_id}"
        )
        return writes
