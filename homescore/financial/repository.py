from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from homescore.models import FinancialBenchmark, FinancialReport
from .schemas import BenchmarkRecord, BenchmarkSource, CostActuals, FinancialReportView, FinancialStatus


class BenchmarkRepository:
    def __init__(self, db: Session):
        self.db = db

    def lookup(self, zip_code: Optional[str], property_type: Optional[str]) -> Tuple[Optional[BenchmarkRecord], BenchmarkSource]:
        """Exact (zip, type) first, then the type-only default row."""
        if not property_type:
            return None, BenchmarkSource.NONE
        if zip_code:
            row = (
                self.db.query(FinancialBenchmark)
                .filter(FinancialBenchmark.zip_code == zip_code, FinancialBenchmark.property_type == property_type)
                .first()
            )
            if row:
                return BenchmarkRecord.model_validate(row), BenchmarkSource.ZIP
        row = (
            self.db.query(FinancialBenchmark)
            .filter(FinancialBenchmark.zip_code.is_(None), FinancialBenchmark.property_type == property_type)
            .first()
        )
        if row:
            return BenchmarkRecord.model_validate(row), BenchmarkSource.TYPE_DEFAULT
        return None, BenchmarkSource.NONE


class FinancialReportRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, property_id: int) -> Optional[FinancialReport]:
        return self.db.query(FinancialReport).filter(FinancialReport.property_id == property_id).first()

    def upsert(
        self,
        property_id: int,
        status: FinancialStatus,
        score: Optional[float],
        actuals: CostActuals,
        market_average_total: float,
        source: BenchmarkSource,
        calculated_at: datetime,
    ) -> FinancialReport:
        row = self.get(property_id)
        if row is None:
            row = FinancialReport(property_id=property_id)
            self.db.add(row)
        row.status = status.value
        row.financial_efficiency_score = score
        row.actual_insurance_cost = actuals.insurance
        row.actual_utility_cost = actuals.utility
        row.actual_warranty_cost = actuals.warranty
        row.market_average_total = market_average_total
        row.benchmark_source = source.value
        row.last_calculated_at = calculated_at
        self.db.commit()
        self.db.refresh(row)
        return row


def to_view(row: FinancialReport) -> FinancialReportView:
    return FinancialReportView.model_validate(row)


# Type-only defaults; zip-specific rows are loaded from market data.
DEFAULT_BENCHMARKS = [
    {"zip_code": None, "property_type": "SINGLE_FAMILY", "avg_insurance_premium": 1800, "avg_utility_cost": 3600, "avg_warranty_cost": 600},
    {"zip_code": None, "property_type": "TOWNHOME", "avg_insurance_premium": 1400, "avg_utility_cost": 2800, "avg_warranty_cost": 500},
    {"zip_code": None, "property_type": "CONDO", "avg_insurance_premium": 900, "avg_utility_cost": 2000, "avg_warranty_cost": 400},
    {"zip_code": None, "property_type": "MULTI_UNIT", "avg_insurance_premium": 2600, "avg_utility_cost": 5200, "avg_warranty_cost": 900},
]


def seed_benchmarks(db: Session, entries=None) -> int:
    entries = entries if entries is not None else DEFAULT_BENCHMARKS
    for entry in entries:
        zip_filter = (
            FinancialBenchmark.zip_code.is_(None)
            if entry.get("zip_code") is None
            else FinancialBenchmark.zip_code == entry["zip_code"]
        )
        row = (
            db.query(FinancialBenchmark)
            .filter(zip_filter, FinancialBenchmark.property_type == entry["property_type"])
            .first()
        )
        if row is None:
            row = FinancialBenchmark(zip_code=entry.get("zip_code"), property_type=entry["property_type"])
            db.add(row)
        row.avg_insurance_premium = entry["avg_insurance_premium"]
        row.avg_utility_cost = entry["avg_utility_cost"]
        row.avg_warranty_cost = entry["avg_warranty_cost"]
    db.commit()
    return len(entries)
