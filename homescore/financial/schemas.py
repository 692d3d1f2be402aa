from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FinancialStatus(str, Enum):
    CALCULATED = "CALCULATED"
    MISSING_DATA = "MISSING_DATA"
    NO_BENCHMARK = "NO_BENCHMARK"


class BenchmarkSource(str, Enum):
    ZIP = "ZIP"
    TYPE_DEFAULT = "TYPE_DEFAULT"
    NONE = "NONE"


class FinancialLookupStatus(str, Enum):
    READY = "READY"
    STALE = "STALE"
    QUEUED = "QUEUED"


class BenchmarkRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    zip_code: Optional[str] = None
    property_type: str
    avg_insurance_premium: float = 0.0
    avg_utility_cost: float = 0.0
    avg_warranty_cost: float = 0.0

    @property
    def total(self) -> float:
        return self.avg_insurance_premium + self.avg_utility_cost + self.avg_warranty_cost


class CostActuals(BaseModel):
    insurance: float = 0.0
    utility: float = 0.0
    warranty: float = 0.0

    @property
    def total(self) -> float:
        return self.insurance + self.utility + self.warranty

    @property
    def inputs_present(self) -> int:
        return sum(1 for v in (self.insurance, self.utility, self.warranty) if v > 0)


class FinancialReportView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    property_id: int
    status: FinancialStatus
    financial_efficiency_score: Optional[float] = None
    actual_insurance_cost: float
    actual_utility_cost: float
    actual_warranty_cost: float
    market_average_total: float
    benchmark_source: BenchmarkSource
    last_calculated_at: datetime

    @property
    def actual_total(self) -> float:
        return self.actual_insurance_cost + self.actual_utility_cost + self.actual_warranty_cost


class FinancialLookup(BaseModel):
    status: FinancialLookupStatus
    report: Optional[FinancialReportView] = None
    job_enqueued: bool = False


class FinancialSummary(BaseModel):
    property_id: Optional[int] = None
    status: str  # CALCULATED, MISSING_DATA, NO_BENCHMARK, QUEUED, NO_PROPERTY
    financial_efficiency_score: Optional[float] = None
    actual_total: Optional[float] = None
    market_average_total: Optional[float] = None
    last_calculated_at: Optional[datetime] = None
