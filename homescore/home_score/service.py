import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from homescore.core.config import settings
from homescore.core.errors import NotFoundError
from homescore.core.metrics import home_score_reports_built_total, home_score_degraded_components_total
from homescore.financial.service import FinancialEfficiencyService
from homescore.jobs.queue import JobQueue
from homescore.risk.schemas import RiskLookupStatus
from homescore.risk.service import RiskAssessmentService
from homescore.snapshots.engine import ScoreSeries, ScoreType, clamp_weeks, score_band, week_start
from homescore.snapshots.service import SnapshotService, SnapshotSummary
from homescore.utils.numbers import round_half_up
from homescore.utils.timezone import utcnow
from .changelog import build_change_log
from .components import (
    WEIGHTS,
    build_trend,
    composite_score,
    financial_component,
    health_component,
    previous_composite,
    risk_component,
)
from .confidence import uncertainty_band, weakest
from .consistency import run_consistency_checks
from .context import load_context
from .health import HealthScoreProvider, SnapshotHealthScoreProvider
from .reasons import MAX_TOP_REASONS, build_reasons, next_best_action, what_changed
from .schemas import HomeScoreReport, Reason, TrendPoint
from .verification import build_field_facts, build_ladder, verification_opportunities

logger = logging.getLogger(__name__)


@dataclass
class _BuildResult:
    report: HomeScoreReport
    reasons: List[Reason]


class HomeScoreAggregator:
    """Composite home score over health, risk and financial components.

    Stateless: every call reads the stored reports and snapshots afresh. The
    four component fetches run concurrently, each on its own session, and any
    failure other than an access failure degrades that component to its last
    snapshot instead of failing the report.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        job_queue: Optional[JobQueue] = None,
        health_provider: Optional[HealthScoreProvider] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.job_queue = job_queue
        self.health_provider = health_provider or SnapshotHealthScoreProvider()
        self.clock = clock

    async def get_report(self, property_id: int, user_id: int, weeks: Any = None) -> HomeScoreReport:
        result = await self._build(property_id, user_id, weeks)
        return result.report

    async def get_factors(self, property_id: int, user_id: int, weeks: Any = None) -> List[Reason]:
        result = await self._build(property_id, user_id, weeks)
        return result.reasons

    async def get_history(self, property_id: int, user_id: int, weeks: Any = None) -> List[TrendPoint]:
        result = await self._build(property_id, user_id, weeks or settings.HISTORY_SNAPSHOT_WEEKS)
        return result.report.trend

    async def refresh(self, property_id: int, user_id: int, weeks: Any = None) -> HomeScoreReport:
        """Recalculate risk and financial reports synchronously, then rebuild the report."""
        await asyncio.to_thread(self._run, lambda db: load_context(db, property_id, user_id))
        await asyncio.gather(
            asyncio.to_thread(self._run, lambda db: self._risk_service(db).calculate_and_save(property_id)),
            asyncio.to_thread(self._run, lambda db: self._financial_service(db).calculate_and_save(property_id)),
        )
        return await self.get_report(property_id, user_id, weeks)

    def _risk_service(self, db: Session) -> RiskAssessmentService:
        return RiskAssessmentService(db, job_queue=self.job_queue, clock=self.clock)

    def _financial_service(self, db: Session) -> FinancialEfficiencyService:
        return FinancialEfficiencyService(db, job_queue=self.job_queue, clock=self.clock)

    def _run(self, fn: Callable[[Session], Any]) -> Any:
        db = self.session_factory()
        try:
            return fn(db)
        finally:
            db.close()

    async def _fetch(self, component: str, fn: Callable[[Session], Any], unavailable: List[str]) -> Any:
        try:
            return await asyncio.to_thread(self._run, fn)
        except NotFoundError:
            raise
        except Exception as exc:
            logger.error(f"[HomeScore] {component} fetch failed, using last known value: {exc}")
            home_score_degraded_components_total.labels(component=component).inc()
            unavailable.append(component)
            return None

    async def _build(self, property_id: int, user_id: int, weeks: Any) -> _BuildResult:
        weeks = clamp_weeks(weeks, default=settings.DEFAULT_SNAPSHOT_WEEKS)
        ctx = await asyncio.to_thread(self._run, lambda db: load_context(db, property_id, user_id))

        unavailable: List[str] = []
        health, risk, financial, summary = await asyncio.gather(
            self._fetch("HEALTH", lambda db: self.health_provider.get_health_score(db, property_id), unavailable),
            self._fetch("RISK", lambda db: self._risk_service(db).get_or_queue(property_id), unavailable),
            self._fetch("FINANCIAL", lambda db: self._financial_service(db).get_or_queue(property_id), unavailable),
            self._fetch("SNAPSHOTS", lambda db: SnapshotService(db, self.clock).get_summary(property_id, weeks), unavailable),
        )
        if summary is None:
            summary = SnapshotSummary(
                property_id=property_id,
                weeks=weeks,
                scores={t: ScoreSeries(score_type=t) for t in ScoreType},
            )

        health_card = health_component(health, summary.series(ScoreType.HEALTH))
        risk_card = risk_component(risk, summary.series(ScoreType.RISK), ctx.risk_fact_ratio())
        financial_card = financial_component(financial, summary.series(ScoreType.FINANCIAL))
        components = [health_card, risk_card, financial_card]

        home_score = composite_score({c.key: c.score for c in components})
        now = self.clock()
        previous = previous_composite(summary, week_start(now.date()))
        delta = round_half_up(home_score - previous, 1) if previous is not None else None

        reasons = build_reasons(
            property_id,
            health,
            risk,
            financial,
            unavailable=[ScoreType(c) for c in unavailable if c in ScoreType.__members__],
        )

        risk_exposure = None
        if risk is not None and risk.report is not None and risk.status in (RiskLookupStatus.READY, RiskLookupStatus.STALE):
            risk_exposure = risk.report.financial_exposure_total

        uncertainty = uncertainty_band(
            home_score,
            {c.key.value: c.confidence for c in components},
            {k.value: w for k, w in WEIGHTS.items()},
            ctx.completeness(),
            risk_card.confidence,
            risk_exposure,
        )

        field_facts = build_field_facts(ctx)
        report = HomeScoreReport(
            property_id=property_id,
            generated_at=now,
            home_score=home_score,
            score_band=score_band(home_score),
            delta_from_previous_week=delta,
            confidence=weakest(c.confidence for c in components),
            components=components,
            top_reasons_score_not_higher=reasons[:MAX_TOP_REASONS],
            what_changed_since_last_week=what_changed(components),
            next_best_action=next_best_action(reasons),
            uncertainty=uncertainty,
            consistency_checks=run_consistency_checks(ctx, now.date()),
            verification_opportunities=verification_opportunities(ctx, risk, financial),
            correction_history=ctx.corrections,
            change_log=build_change_log(summary, ctx.correction_events),
            field_facts=field_facts,
            verification_ladder=build_ladder(components, field_facts),
            trend=build_trend(summary),
        )
        home_score_reports_built_total.inc()
        logger.info(
            f"[HomeScore] Built report for property {property_id}: score={home_score} "
            f"confidence={report.confidence.value} degraded={unavailable}"
        )
        return _BuildResult(report=report, reasons=reasons)
