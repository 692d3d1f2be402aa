from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel

from homescore.corrections.schemas import CorrectionRecord
from homescore.snapshots.engine import ScoreType


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Impact(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class Provenance(str, Enum):
    SYSTEM_COMPUTED = "SYSTEM_COMPUTED"
    USER_STATED = "USER_STATED"
    INFERRED = "INFERRED"


class ComponentSource(str, Enum):
    LIVE = "LIVE"
    SNAPSHOT = "SNAPSHOT"
    DEFAULT = "DEFAULT"


class CheckStatus(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VerificationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    REVIEW_NEEDED = "REVIEW_NEEDED"
    UNVERIFIED = "UNVERIFIED"
    UNKNOWN = "UNKNOWN"


class HomeScoreComponent(BaseModel):
    key: ScoreType
    label: str
    score: float
    score_max: float = 100.0
    delta_from_previous_week: Optional[float] = None
    status: str
    confidence: Confidence
    provenance: Provenance
    source: ComponentSource
    source_summary: str
    last_updated_at: Optional[datetime] = None


class Reason(BaseModel):
    id: str
    title: str
    detail: str
    component: Optional[ScoreType] = None
    impact: Impact
    weight: int
    confidence: Confidence
    provenance: Provenance
    action_href: Optional[str] = None


class NextBestAction(BaseModel):
    title: str
    detail: str
    href: Optional[str] = None


class UncertaintyBand(BaseModel):
    score_range_low: float
    score_range_high: float
    spread: int
    accuracy_score: int
    risk_exposure_low: Optional[float] = None
    risk_exposure_high: Optional[float] = None
    detail: str


class ConsistencyCheck(BaseModel):
    id: str
    title: str
    detail: str
    status: CheckStatus
    severity: Severity
    action_href: Optional[str] = None


class VerificationOpportunity(BaseModel):
    id: str
    title: str
    detail: str
    estimated_confidence_gain: int
    href: Optional[str] = None


class ChangeLogEntry(BaseModel):
    id: str
    title: str
    detail: str
    impact: Impact
    occurred_at: datetime
    week_start: Optional[date] = None
    component: Optional[ScoreType] = None
    provenance: Provenance
    delta: Optional[float] = None


class FieldFact(BaseModel):
    key: str
    label: str
    value: Optional[Any] = None
    provenance: Provenance
    verification_status: VerificationStatus


class VerificationLadder(BaseModel):
    user_stated: int = 0
    inferred: int = 0
    system_computed: int = 0


class TrendPoint(BaseModel):
    week_start: date
    home_score: Optional[float] = None
    health_score: Optional[float] = None
    risk_score: Optional[float] = None
    financial_score: Optional[float] = None


class HomeScoreReport(BaseModel):
    property_id: int
    generated_at: datetime
    home_score: float
    score_band: str
    delta_from_previous_week: Optional[float] = None
    confidence: Confidence
    components: List[HomeScoreComponent]
    top_reasons_score_not_higher: List[Reason]
    what_changed_since_last_week: List[Reason]
    next_best_action: Optional[NextBestAction] = None
    uncertainty: UncertaintyBand
    consistency_checks: List[ConsistencyCheck]
    verification_opportunities: List[VerificationOpportunity]
    correction_history: List[CorrectionRecord]
    change_log: List[ChangeLogEntry]
    field_facts: List[FieldFact]
    verification_ladder: VerificationLadder
    trend: List[TrendPoint]
