import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from homescore.core.config import settings
from homescore.core.errors import NotFoundError
from homescore.core.metrics import (
    risk_reports_calculated_total,
    risk_calculation_failures_total,
    maintenance_tasks_created_total,
    maintenance_task_sync_failures_total,
)
from homescore.jobs.queue import JobQueue
from homescore.jobs.types import JobType, dedupe_key
from homescore.properties.repository import PropertyRepository, MaintenanceTaskRepository
from homescore.utils.timezone import utcnow
from .catalog import AssetCatalogRepository
from .engine import aggregate_risk, calculate_risks, coverage_for
from .relevance import filter_relevant_assets
from .repository import RiskReportRepository, to_view
from .schemas import (
    AssetCategory,
    AssetRiskDetail,
    RiskCalculationOutcome,
    RiskLevel,
    RiskLookupStatus,
    RiskReportLookup,
    RiskReportStatus,
    RiskReportView,
    RiskSummary,
    SideEffectResult,
)

logger = logging.getLogger(__name__)

MISSING_DATA_CTA = "CRITICAL: Complete property details to run full assessment."
TASK_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


def _synthetic_detail(name: str, cta: str) -> AssetRiskDetail:
    return AssetRiskDetail(
        asset_name=name,
        system_type="SYSTEM",
        category=AssetCategory.SAFETY,
        age=0,
        expected_life=0,
        replacement_cost=0.0,
        probability=1.0,
        coverage_factor=0.0,
        out_of_pocket_cost=0.0,
        risk_dollar=0.0,
        risk_level=RiskLevel.HIGH,
        action_cta=cta,
    )


class RiskAssessmentService:
    def __init__(
        self,
        db: Session,
        job_queue: Optional[JobQueue] = None,
        clock: Callable[[], datetime] = utcnow,
        stale_minutes: Optional[int] = None,
    ):
        self.db = db
        self.job_queue = job_queue
        self.clock = clock
        self.stale_after = timedelta(minutes=stale_minutes or settings.RISK_REPORT_STALE_MINUTES)
        self.properties = PropertyRepository(db)
        self.tasks = MaintenanceTaskRepository(db)
        self.catalog = AssetCatalogRepository(db)
        self.reports = RiskReportRepository(db)

    def calculate_and_save(self, property_id: int) -> RiskCalculationOutcome:
        facts = self.properties.get_facts(property_id)
        if facts is None:
            raise NotFoundError(f"Property {property_id} not found")

        now = self.clock()
        if not facts.property_size or not facts.year_built:
            logger.warning(f"[RiskAssessment] Basic property data missing for {property_id}")
            status = RiskReportStatus.MISSING_DATA
            details = [_synthetic_detail("Data Missing", MISSING_DATA_CTA)]
            score, exposure = 0, 0.0
        else:
            configs = self.catalog.list_configs()
            warranties = self.properties.list_warranties(property_id)
            policies = self.properties.list_insurance_policies(property_id)
            try:
                relevant = filter_relevant_assets(configs, facts)
                coverage = coverage_for(warranties, policies, now.date())
                details = calculate_risks(relevant.configs, facts, coverage, now.year)
                aggregate = aggregate_risk(details, facts.property_size)
                status = RiskReportStatus.CALCULATED
                score, exposure = aggregate.risk_score, aggregate.financial_exposure_total
            except Exception as exc:
                logger.exception(f"[RiskAssessment] Risk calculation failed for property {property_id}")
                risk_calculation_failures_total.inc()
                status = RiskReportStatus.FAILED
                details = [_synthetic_detail("Fatal Error", f"CRITICAL: Calculation failed. Error: {exc}")]
                score, exposure = 0, 0.0

        row = self.reports.upsert(property_id, status, score, exposure, details, now)
        risk_reports_calculated_total.labels(status=status.value).inc()
        logger.info(
            f"[RiskAssessment] Saved {status.value} report for property {property_id}: "
            f"score={score} exposure={exposure} assets={len(details)}"
        )

        side_effect = self._sync_maintenance_tasks(property_id, status, details)
        return RiskCalculationOutcome(report=to_view(row), side_effect=side_effect)

    def get_cached_or_recalculate(self, property_id: int) -> RiskReportView:
        row = self.reports.get(property_id)
        if row is not None and self._is_fresh(row.last_calculated_at):
            return to_view(row)
        return self.calculate_and_save(property_id).report

    def get_or_queue(self, property_id: int) -> RiskReportLookup:
        """Return the stored report without blocking, enqueueing a refresh when needed."""
        row = self.reports.get(property_id)
        if row is None:
            if self.properties.get_facts(property_id) is None:
                raise NotFoundError(f"Property {property_id} not found")
            enqueued = self._enqueue_refresh(property_id)
            return RiskReportLookup(status=RiskLookupStatus.QUEUED, job_enqueued=enqueued)

        report = to_view(row)
        fresh = self._is_fresh(row.last_calculated_at)
        enqueued = False if fresh else self._enqueue_refresh(property_id)

        if report.status == RiskReportStatus.MISSING_DATA:
            return RiskReportLookup(status=RiskLookupStatus.MISSING_DATA, report=report, job_enqueued=enqueued)
        if report.status == RiskReportStatus.FAILED:
            return RiskReportLookup(status=RiskLookupStatus.FAILED, report=report, job_enqueued=enqueued)
        status = RiskLookupStatus.READY if fresh else RiskLookupStatus.STALE
        return RiskReportLookup(status=status, report=report, job_enqueued=enqueued)

    def get_primary_summary(self, user_id: int) -> RiskSummary:
        facts = self.properties.get_primary_facts(user_id)
        if facts is None:
            return RiskSummary(status="NO_PROPERTY")

        lookup = self.get_or_queue(facts.id)
        if lookup.report is None:
            return RiskSummary(property_id=facts.id, status="QUEUED")
        report = lookup.report
        if lookup.status in (RiskLookupStatus.MISSING_DATA, RiskLookupStatus.FAILED):
            return RiskSummary(
                property_id=facts.id,
                status=lookup.status.value,
                last_calculated_at=report.last_calculated_at,
            )
        return RiskSummary(
            property_id=facts.id,
            status="CALCULATED",
            risk_score=report.risk_score,
            financial_exposure_total=report.financial_exposure_total,
            high_risk_assets=sum(1 for d in report.details if d.risk_level in TASK_RISK_LEVELS),
            last_calculated_at=report.last_calculated_at,
        )

    def _is_fresh(self, calculated_at: Optional[datetime]) -> bool:
        return calculated_at is not None and self.clock() - calculated_at < self.stale_after

    def _enqueue_refresh(self, property_id: int) -> bool:
        if self.job_queue is None:
            return False
        job_type = JobType.CALCULATE_RISK_REPORT
        return self.job_queue.enqueue(job_type, {"property_id": property_id}, dedupe_key(property_id, job_type))

    def _sync_maintenance_tasks(
        self,
        property_id: int,
        status: RiskReportStatus,
        details: List[AssetRiskDetail],
    ) -> SideEffectResult:
        """Open maintenance tasks for high-risk assets. Failures are reported, never raised."""
        if status != RiskReportStatus.CALCULATED:
            return SideEffectResult(status="SKIPPED")

        candidates = [
            d for d in details
            if d.risk_level in TASK_RISK_LEVELS and not d.system_type.startswith("MAJOR_APPLIANCE_")
        ]
        if not candidates:
            return SideEffectResult(status="OK")

        created = skipped = 0
        try:
            existing = self.tasks.open_risk_task_system_types(property_id)
            for detail in candidates:
                if detail.system_type in existing:
                    skipped += 1
                    continue
                self.tasks.create_risk_task(
                    property_id=property_id,
                    system_type=detail.system_type,
                    title=f"{detail.risk_level.value} Risk: {detail.asset_name}",
                    description=detail.action_cta or f"Maintenance required for {detail.system_type}",
                    priority="URGENT" if detail.risk_level == RiskLevel.CRITICAL else "HIGH",
                    risk_level=detail.risk_level.value,
                )
                created += 1
        except Exception as exc:
            self.db.rollback()
            maintenance_task_sync_failures_total.inc()
            logger.error(f"[RiskAssessment] Maintenance task sync failed for property {property_id}: {exc}")
            return SideEffectResult(status="FAILED", created=created, skipped=skipped, error=str(exc))

        maintenance_tasks_created_total.inc(created)
        return SideEffectResult(status="OK", created=created, skipped=skipped)
