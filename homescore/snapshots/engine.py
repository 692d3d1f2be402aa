from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from homescore.utils.numbers import round_half_up

MIN_WEEKS = 8
MAX_WEEKS = 104
DEFAULT_WEEKS = 52
SNAPSHOT_SCHEMA_VERSION = 1


class ScoreType(str, Enum):
    HEALTH = "HEALTH"
    RISK = "RISK"
    FINANCIAL = "FINANCIAL"


class HealthSnapshotDetail(BaseModel):
    factor_count: int = Field(0, ge=0)
    missing_count: int = Field(0, ge=0)
    high_priority_count: int = Field(0, ge=0)


class RiskSnapshotDetail(BaseModel):
    financial_exposure_total: float = Field(0.0, ge=0.0)


class FinancialSnapshotDetail(BaseModel):
    market_average_total: float = Field(0.0, ge=0.0)


SnapshotDetail = Union[HealthSnapshotDetail, RiskSnapshotDetail, FinancialSnapshotDetail]


class ScorePoint(BaseModel):
    week_start: date
    score: float
    score_max: Optional[float] = None
    score_band: Optional[str] = None
    computed_at: datetime
    schema_version: int = SNAPSHOT_SCHEMA_VERSION
    detail: Optional[SnapshotDetail] = None


class ScoreSeries(BaseModel):
    score_type: ScoreType
    latest: Optional[ScorePoint] = None
    previous: Optional[ScorePoint] = None
    delta_from_previous_week: Optional[float] = None
    trend: List[ScorePoint] = []


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def clamp_weeks(value: Any, default: int = DEFAULT_WEEKS) -> int:
    try:
        weeks = round(float(value))
    except (TypeError, ValueError):
        return default
    return max(MIN_WEEKS, min(MAX_WEEKS, weeks))


def score_band(score: float) -> str:
    if score >= 85:
        return "EXCELLENT"
    if score >= 70:
        return "GOOD"
    if score >= 50:
        return "FAIR"
    return "NEEDS_ATTENTION"


DETAIL_MODELS = {
    ScoreType.HEALTH: HealthSnapshotDetail,
    ScoreType.RISK: RiskSnapshotDetail,
    ScoreType.FINANCIAL: FinancialSnapshotDetail,
}

POINT_FIELDS = ("week_start", "score", "score_max", "score_band", "computed_at", "schema_version", "detail")


def parse_detail(score_type: ScoreType, detail: Any, schema_version: Optional[int] = None) -> Optional[SnapshotDetail]:
    """Validate a stored detail payload against the model for its score type."""
    version = schema_version or SNAPSHOT_SCHEMA_VERSION
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise ValueError(f"Unsupported {score_type.value} snapshot schema version {version}")
    if detail is None:
        return None
    return DETAIL_MODELS[score_type].model_validate(detail)


def to_point(score_type: ScoreType, row: Any) -> ScorePoint:
    """Build a point from a snapshot row or a plain dict."""
    data = dict(row) if isinstance(row, dict) else {name: getattr(row, name, None) for name in POINT_FIELDS}
    version = data.get("schema_version") or SNAPSHOT_SCHEMA_VERSION
    data["detail"] = parse_detail(score_type, data.get("detail"), version)
    data["schema_version"] = version
    return ScorePoint.model_validate(data)


def build_series(score_type: ScoreType, rows: Iterable[Any]) -> ScoreSeries:
    """Order rows by week and expose latest/previous and the week-over-week delta.

    Missing weeks are left as gaps; the delta is always between the two most
    recent stored points.
    """
    trend = sorted((to_point(score_type, r) for r in rows), key=lambda p: p.week_start)
    latest = trend[-1] if trend else None
    previous = trend[-2] if len(trend) > 1 else None
    delta = round_half_up(latest.score - previous.score, 1) if latest and previous else None
    return ScoreSeries(
        score_type=score_type,
        latest=latest,
        previous=previous,
        delta_from_previous_week=delta,
        trend=trend,
    )
