from datetime import date
from typing import Dict, List, Optional, Tuple

from homescore.financial.schemas import FinancialLookup, FinancialLookupStatus, FinancialStatus
from homescore.risk.schemas import RiskLookupStatus, RiskReportLookup
from homescore.snapshots.engine import ScorePoint, ScoreSeries, ScoreType
from homescore.snapshots.service import SnapshotSummary
from homescore.utils.numbers import clamp, round_half_up
from .confidence import cap_confidence, confidence_from_ratio
from .health import HealthScore
from .schemas import ComponentSource, Confidence, HomeScoreComponent, Provenance, TrendPoint

WEIGHTS: Dict[ScoreType, float] = {
    ScoreType.HEALTH: 0.40,
    ScoreType.RISK: 0.35,
    ScoreType.FINANCIAL: 0.25,
}

LABELS: Dict[ScoreType, str] = {
    ScoreType.HEALTH: "Property Health",
    ScoreType.RISK: "Risk Assessment",
    ScoreType.FINANCIAL: "Financial Efficiency",
}

COST_INPUTS = 3


def normalized(point: ScorePoint) -> float:
    if point.score_max:
        return clamp(point.score / point.score_max * 100, 0, 100)
    return clamp(point.score, 0, 100)


def snapshot_fallback(series: ScoreSeries) -> Tuple[float, ComponentSource]:
    """Last known value for a component that is not freshly available."""
    if series.latest is not None:
        return normalized(series.latest), ComponentSource.SNAPSHOT
    return 0.0, ComponentSource.DEFAULT


def composite_score(scores: Dict[ScoreType, float]) -> float:
    total = sum(WEIGHTS[k] * clamp(scores[k], 0, 100) for k in WEIGHTS)
    return clamp(round_half_up(total, 1), 0, 100)


def health_component(health: Optional[HealthScore], series: ScoreSeries) -> HomeScoreComponent:
    base = dict(
        key=ScoreType.HEALTH,
        label=LABELS[ScoreType.HEALTH],
        delta_from_previous_week=series.delta_from_previous_week,
        provenance=Provenance.USER_STATED,
    )
    if health is None:
        score, source = snapshot_fallback(series)
        return HomeScoreComponent(
            **base,
            score=round_half_up(score, 1),
            status="Health score is unavailable; showing the last known value.",
            confidence=Confidence.LOW,
            source=source,
            source_summary="Health score source did not respond.",
            last_updated_at=series.latest.computed_at if series.latest else None,
        )

    score = round_half_up(health.score / max(health.score_max or 100, 1) * 100)
    if health.factor_count > 0:
        confidence = confidence_from_ratio(1 - health.missing_count / health.factor_count)
    else:
        confidence = Confidence.LOW
    actions = health.high_priority_count
    return HomeScoreComponent(
        **base,
        score=clamp(score, 0, 100),
        status=f"{actions} action{'' if actions == 1 else 's'} needed" if actions > 0 else "Stable",
        confidence=confidence,
        source=ComponentSource.LIVE,
        source_summary=f"Based on {health.factor_count} health factors and home profile details.",
        last_updated_at=health.last_updated_at,
    )


def risk_component(lookup: Optional[RiskReportLookup], series: ScoreSeries, fact_ratio: float) -> HomeScoreComponent:
    base = dict(
        key=ScoreType.RISK,
        label=LABELS[ScoreType.RISK],
        delta_from_previous_week=series.delta_from_previous_week,
        provenance=Provenance.SYSTEM_COMPUTED,
    )
    if lookup is not None and lookup.report is not None and lookup.status in (RiskLookupStatus.READY, RiskLookupStatus.STALE):
        report = lookup.report
        confidence = confidence_from_ratio(fact_ratio)
        if lookup.status == RiskLookupStatus.STALE:
            confidence = cap_confidence(confidence, Confidence.MEDIUM)
        return HomeScoreComponent(
            **base,
            score=clamp(report.risk_score, 0, 100),
            status=f"Risk score factors include current exposure of ${report.financial_exposure_total:,.0f}.",
            confidence=confidence,
            source=ComponentSource.LIVE,
            source_summary="Derived from calculated risk report and current exposure details.",
            last_updated_at=report.last_calculated_at,
        )

    score, source = snapshot_fallback(series)
    if lookup is None:
        status = "Risk report is unavailable right now."
    elif lookup.status == RiskLookupStatus.QUEUED:
        status = "Risk report is recalculating in the background."
    elif lookup.status == RiskLookupStatus.MISSING_DATA:
        status = "Complete property details to run the risk assessment."
    else:
        status = "Risk calculation failed; showing the last known value."
    return HomeScoreComponent(
        **base,
        score=round_half_up(score, 1),
        status=status,
        confidence=Confidence.LOW,
        source=source,
        source_summary=(
            "Using latest stored snapshot while risk report recalculates."
            if source == ComponentSource.SNAPSHOT
            else "No risk report or snapshot is available yet."
        ),
        last_updated_at=series.latest.computed_at if series.latest else None,
    )


def financial_component(lookup: Optional[FinancialLookup], series: ScoreSeries) -> HomeScoreComponent:
    base = dict(
        key=ScoreType.FINANCIAL,
        label=LABELS[ScoreType.FINANCIAL],
        delta_from_previous_week=series.delta_from_previous_week,
    )
    report = lookup.report if lookup is not None else None

    if report is not None and report.status == FinancialStatus.CALCULATED:
        present = sum(
            1 for v in (report.actual_insurance_cost, report.actual_utility_cost, report.actual_warranty_cost) if v > 0
        )
        confidence = confidence_from_ratio(present / COST_INPUTS)
        if lookup.status == FinancialLookupStatus.STALE:
            confidence = cap_confidence(confidence, Confidence.MEDIUM)
        return HomeScoreComponent(
            **base,
            score=clamp(report.financial_efficiency_score, 0, 100),
            status="Financial score is based on annual cost data and benchmark comparison.",
            confidence=confidence,
            provenance=Provenance.SYSTEM_COMPUTED,
            source=ComponentSource.LIVE,
            source_summary="Derived from premiums, warranties, and utility expenses versus benchmark.",
            last_updated_at=report.last_calculated_at,
        )

    score, source = snapshot_fallback(series)
    confidence = Confidence.LOW
    if report is not None and report.status == FinancialStatus.MISSING_DATA:
        status = "Financial inputs are incomplete; add policy, warranty, or utility costs for a stronger score."
        if source == ComponentSource.DEFAULT and report.financial_efficiency_score is not None:
            score, source = report.financial_efficiency_score, ComponentSource.LIVE
    elif report is not None and report.status == FinancialStatus.NO_BENCHMARK:
        status = "No cost benchmark is available for this location and property type."
    elif lookup is not None and lookup.status == FinancialLookupStatus.QUEUED:
        status = "Financial score is recalculating in the background."
        confidence = Confidence.MEDIUM
    else:
        status = "Financial report is unavailable right now."

    return HomeScoreComponent(
        **base,
        score=round_half_up(clamp(score, 0, 100), 1),
        status=status,
        confidence=confidence,
        provenance=Provenance.INFERRED,
        source=source,
        source_summary="Derived from available snapshot signals; add complete cost data to improve confidence.",
        last_updated_at=report.last_calculated_at if report is not None else None,
    )


def weekly_scores(summary: SnapshotSummary) -> Dict[date, Dict[ScoreType, float]]:
    by_week: Dict[date, Dict[ScoreType, float]] = {}
    for score_type in WEIGHTS:
        for point in summary.series(score_type).trend:
            by_week.setdefault(point.week_start, {})[score_type] = round_half_up(normalized(point), 1)
    return by_week


def weekly_composites(by_week: Dict[date, Dict[ScoreType, float]]) -> Dict[date, float]:
    """Composite for each stored week on the live report's basis.

    A component without a point that week keeps its last known value, and
    counts as 0 until it has one.
    """
    carried = {k: 0.0 for k in WEIGHTS}
    composites = {}
    for week in sorted(by_week):
        carried.update(by_week[week])
        composites[week] = composite_score(carried)
    return composites


def build_trend(summary: SnapshotSummary) -> List[TrendPoint]:
    by_week = weekly_scores(summary)
    composites = weekly_composites(by_week)
    return [
        TrendPoint(
            week_start=week,
            home_score=composites[week],
            health_score=by_week[week].get(ScoreType.HEALTH),
            risk_score=by_week[week].get(ScoreType.RISK),
            financial_score=by_week[week].get(ScoreType.FINANCIAL),
        )
        for week in sorted(by_week)
    ]


def previous_composite(summary: SnapshotSummary, current_week: date) -> Optional[float]:
    """Composite as of the week before ``current_week``, or None without earlier history."""
    composites = weekly_composites(weekly_scores(summary))
    earlier = [week for week in composites if week < current_week]
    if not earlier:
        return None
    return composites[max(earlier)]
