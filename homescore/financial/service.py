import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from homescore.core.config import settings
from homescore.core.errors import NotFoundError
from homescore.core.metrics import financial_reports_calculated_total
from homescore.jobs.queue import JobQueue
from homescore.jobs.types import JobType, dedupe_key
from homescore.properties.repository import PropertyRepository
from homescore.utils.numbers import round_half_up
from homescore.utils.timezone import utcnow
from .engine import score_efficiency
from .repository import BenchmarkRepository, FinancialReportRepository, to_view
from .schemas import (
    CostActuals,
    FinancialLookup,
    FinancialLookupStatus,
    FinancialReportView,
    FinancialSummary,
)

logger = logging.getLogger(__name__)

UTILITY_CATEGORY = "UTILITIES"
UTILITY_WINDOW_DAYS = 365


class FinancialEfficiencyService:
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
        self.stale_after = timedelta(minutes=stale_minutes or settings.FINANCIAL_REPORT_STALE_MINUTES)
        self.properties = PropertyRepository(db)
        self.benchmarks = BenchmarkRepository(db)
        self.reports = FinancialReportRepository(db)

    def gather_actuals(self, property_id: int, today: date) -> CostActuals:
        policies = self.properties.list_insurance_policies(property_id)
        warranties = self.properties.list_warranties(property_id)
        utilities = self.properties.list_expenses(
            property_id, UTILITY_CATEGORY, since=today - timedelta(days=UTILITY_WINDOW_DAYS)
        )
        return CostActuals(
            insurance=round_half_up(sum(p.premium_amount for p in policies if p.is_active(today)), 2),
            warranty=round_half_up(sum(w.cost for w in warranties if w.is_active(today)), 2),
            utility=round_half_up(sum(e.amount for e in utilities), 2),
        )

    def calculate_and_save(self, property_id: int) -> FinancialReportView:
        facts = self.properties.get_facts(property_id)
        if facts is None:
            raise NotFoundError(f"Property {property_id} not found")

        now = self.clock()
        actuals = self.gather_actuals(property_id, now.date())
        benchmark, source = self.benchmarks.lookup(facts.zip_code, facts.property_type)
        benchmark_total = benchmark.total if benchmark else 0.0
        result = score_efficiency(actuals.total, benchmark_total)

        row = self.reports.upsert(
            property_id,
            result.status,
            result.score,
            actuals,
            round_half_up(benchmark_total, 2),
            source,
            now,
        )
        financial_reports_calculated_total.labels(status=result.status.value).inc()
        logger.info(
            f"[FinancialEfficiency] Saved {result.status.value} report for property {property_id}: "
            f"score={result.score} actual={actuals.total} benchmark={benchmark_total} source={source.value}"
        )
        return to_view(row)

    def get_or_queue(self, property_id: int) -> FinancialLookup:
        row = self.reports.get(property_id)
        if row is None:
            if self.properties.get_facts(property_id) is None:
                raise NotFoundError(f"Property {property_id} not found")
            return FinancialLookup(status=FinancialLookupStatus.QUEUED, job_enqueued=self._enqueue_refresh(property_id))

        if self.clock() - row.last_calculated_at < self.stale_after:
            return FinancialLookup(status=FinancialLookupStatus.READY, report=to_view(row))
        return FinancialLookup(
            status=FinancialLookupStatus.STALE,
            report=to_view(row),
            job_enqueued=self._enqueue_refresh(property_id),
        )

    def get_summary(self, property_id: int) -> FinancialSummary:
        if self.properties.get_facts(property_id) is None:
            return FinancialSummary(status="NO_PROPERTY")
        lookup = self.get_or_queue(property_id)
        if lookup.report is None:
            return FinancialSummary(property_id=property_id, status="QUEUED")
        report = lookup.report
        return FinancialSummary(
            property_id=property_id,
            status=report.status.value,
            financial_efficiency_score=report.financial_efficiency_score,
            actual_total=round_half_up(report.actual_total, 2),
            market_average_total=report.market_average_total,
            last_calculated_at=report.last_calculated_at,
        )

    def _enqueue_refresh(self, property_id: int) -> bool:
        if self.job_queue is None:
            return False
        job_type = JobType.CALCULATE_FINANCIAL_REPORT
        return self.job_queue.enqueue(job_type, {"property_id": property_id}, dedupe_key(property_id, job_type))
