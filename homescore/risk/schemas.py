from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DETAIL_SCHEMA_VERSION = 1


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"
    # Accepted on stored details and by task creation; the bucketing never produces it.
    CRITICAL = "CRITICAL"


class AssetCategory(str, Enum):
    STRUCTURE = "STRUCTURE"
    SYSTEMS = "SYSTEMS"
    SAFETY = "SAFETY"
    FINANCIAL_GAP = "FINANCIAL_GAP"


class RiskReportStatus(str, Enum):
    CALCULATED = "CALCULATED"
    MISSING_DATA = "MISSING_DATA"
    FAILED = "FAILED"


class RiskLookupStatus(str, Enum):
    READY = "READY"
    STALE = "STALE"
    QUEUED = "QUEUED"
    MISSING_DATA = "MISSING_DATA"
    FAILED = "FAILED"


class AssetConfigRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    system_type: str
    category: AssetCategory
    expected_life: int
    replacement_cost: float
    warning_flags: Optional[Dict[str, float]] = None
    config_version: int = 1


class AssetRiskDetail(BaseModel):
    asset_name: str
    system_type: str
    category: AssetCategory
    age: int
    expected_life: int
    replacement_cost: float
    probability: float = Field(..., ge=0.0, le=1.0)
    coverage_factor: float = Field(..., ge=0.0, le=1.0)
    out_of_pocket_cost: float = Field(..., ge=0.0)
    risk_dollar: float = Field(..., ge=0.0)
    risk_level: RiskLevel
    action_cta: str = ""

    @model_validator(mode="after")
    def _check_invariants(self) -> "AssetRiskDetail":
        if self.out_of_pocket_cost > self.replacement_cost:
            raise ValueError("out_of_pocket_cost cannot exceed replacement_cost")
        if abs(self.risk_dollar - self.probability * self.out_of_pocket_cost) > 0.01:
            raise ValueError("risk_dollar must equal probability * out_of_pocket_cost")
        return self


class RiskReportView(BaseModel):
    property_id: int
    status: RiskReportStatus
    risk_score: int
    financial_exposure_total: float
    details: List[AssetRiskDetail]
    details_schema_version: int = DETAIL_SCHEMA_VERSION
    last_calculated_at: datetime


class SideEffectResult(BaseModel):
    """Outcome of the maintenance task sync that follows a risk calculation."""

    status: str  # OK, SKIPPED, FAILED
    created: int = 0
    skipped: int = 0
    error: Optional[str] = None


class RiskCalculationOutcome(BaseModel):
    report: RiskReportView
    side_effect: SideEffectResult


class RiskReportLookup(BaseModel):
    status: RiskLookupStatus
    report: Optional[RiskReportView] = None
    job_enqueued: bool = False


class RiskSummary(BaseModel):
    property_id: Optional[int] = None
    status: str  # CALCULATED, QUEUED, MISSING_DATA, FAILED, NO_PROPERTY
    risk_score: Optional[int] = None
    financial_exposure_total: Optional[float] = None
    high_risk_assets: int = 0
    last_calculated_at: Optional[datetime] = None
