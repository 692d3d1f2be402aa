from typing import Iterable, List, Optional

from homescore.financial.schemas import FinancialLookup, FinancialLookupStatus, FinancialStatus
from homescore.risk.schemas import RiskLevel, RiskLookupStatus, RiskReportLookup
from homescore.snapshots.engine import ScoreType
from homescore.utils.numbers import round_half_up
from . import links
from .components import LABELS
from .health import HealthScore
from .schemas import Confidence, HomeScoreComponent, Impact, NextBestAction, Provenance, Reason

FINANCIAL_GAP_THRESHOLD = 75
MAX_TOP_REASONS = 5
MAX_CHANGES = 5

ASSET_REASON_WEIGHTS = {
    RiskLevel.CRITICAL: 85,
    RiskLevel.HIGH: 78,
    RiskLevel.ELEVATED: 68,
}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def build_reasons(
    property_id: int,
    health: Optional[HealthScore],
    risk: Optional[RiskReportLookup],
    financial: Optional[FinancialLookup],
    unavailable: Iterable[ScoreType] = (),
) -> List[Reason]:
    """All reasons the score is not higher, heaviest first."""
    reasons: List[Reason] = []

    for component in unavailable:
        reasons.append(Reason(
            id=f"{component.value.lower()}-unavailable",
            title=f"{LABELS[component]} could not be refreshed",
            detail="Showing the last known value until the source responds again.",
            component=component,
            impact=Impact.NEUTRAL,
            weight=80,
            confidence=Confidence.LOW,
            provenance=Provenance.SYSTEM_COMPUTED,
        ))

    if health is not None and health.missing_count > 0:
        reasons.append(Reason(
            id="health-missing-data",
            title="Missing property details reduce score confidence",
            detail=f"{_plural(health.missing_count, 'health factor')} are missing source details.",
            component=ScoreType.HEALTH,
            impact=Impact.NEGATIVE,
            weight=88,
            confidence=Confidence.HIGH,
            provenance=Provenance.USER_STATED,
            action_href=links.edit_property(property_id),
        ))

    if risk is not None:
        reasons.extend(_risk_reasons(property_id, risk))

    if financial is not None:
        reasons.extend(_financial_reasons(property_id, financial))

    return sorted(reasons, key=lambda r: r.weight, reverse=True)


def _risk_reasons(property_id: int, risk: RiskReportLookup) -> List[Reason]:
    href = links.risk_assessment(property_id)
    if risk.status == RiskLookupStatus.MISSING_DATA:
        return [Reason(
            id="risk-missing-data",
            title="Risk assessment needs basic property details",
            detail="Add year built and property size to run the full asset risk assessment.",
            component=ScoreType.RISK,
            impact=Impact.NEGATIVE,
            weight=90,
            confidence=Confidence.HIGH,
            provenance=Provenance.USER_STATED,
            action_href=links.edit_property(property_id),
        )]
    if risk.status == RiskLookupStatus.FAILED:
        return [Reason(
            id="risk-calculation-failed",
            title="Risk assessment could not be completed",
            detail="The last risk calculation failed; a fresh run has been requested.",
            component=ScoreType.RISK,
            impact=Impact.NEUTRAL,
            weight=80,
            confidence=Confidence.LOW,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        )]

    reasons: List[Reason] = []
    if risk.status in (RiskLookupStatus.QUEUED, RiskLookupStatus.STALE):
        reasons.append(Reason(
            id="risk-report-queued" if risk.status == RiskLookupStatus.QUEUED else "risk-report-stale",
            title="Risk report is still refreshing",
            detail="Latest risk inputs are processing; score can move when recalculation finishes.",
            component=ScoreType.RISK,
            impact=Impact.NEUTRAL,
            weight=76,
            confidence=Confidence.MEDIUM,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        ))

    if risk.report is None:
        return reasons

    flagged = [d for d in risk.report.details if d.risk_level in ASSET_REASON_WEIGHTS]
    if flagged:
        reasons.append(Reason(
            id="risk-high-assets",
            title=f"{_plural(len(flagged), 'elevated-risk asset')} driving exposure",
            detail=f"Risk exposure is currently ${risk.report.financial_exposure_total:,.0f}.",
            component=ScoreType.RISK,
            impact=Impact.NEGATIVE,
            weight=86,
            confidence=Confidence.HIGH,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        ))
    for detail in flagged:
        action = f" {detail.action_cta}." if detail.action_cta else ""
        age = f"{detail.age} years old against a {detail.expected_life}-year expected life; " if detail.age else ""
        reasons.append(Reason(
            id=f"risk-asset-{detail.system_type.lower()}",
            title=f"{detail.asset_name} is at {detail.risk_level.value.lower()} risk",
            detail=f"{age}${detail.risk_dollar:,.0f} expected out-of-pocket risk.{action}",
            component=ScoreType.RISK,
            impact=Impact.NEGATIVE,
            weight=ASSET_REASON_WEIGHTS[detail.risk_level],
            confidence=Confidence.HIGH,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        ))
    return reasons


def _financial_reasons(property_id: int, financial: FinancialLookup) -> List[Reason]:
    href = links.financial_efficiency(property_id)
    if financial.status == FinancialLookupStatus.QUEUED or financial.report is None:
        return [Reason(
            id="financial-report-queued",
            title="Financial efficiency is still being calculated",
            detail="The score will update once annual costs are compared with the benchmark.",
            component=ScoreType.FINANCIAL,
            impact=Impact.NEUTRAL,
            weight=70,
            confidence=Confidence.MEDIUM,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        )]

    report = financial.report
    if report.status == FinancialStatus.MISSING_DATA:
        return [Reason(
            id="financial-missing-data",
            title="Financial efficiency is using incomplete cost inputs",
            detail="Add insurance, warranty, and utility costs to tighten this score.",
            component=ScoreType.FINANCIAL,
            impact=Impact.NEGATIVE,
            weight=82,
            confidence=Confidence.HIGH,
            provenance=Provenance.USER_STATED,
            action_href=href,
        )]
    if report.status == FinancialStatus.NO_BENCHMARK:
        return [Reason(
            id="financial-no-benchmark",
            title="No cost benchmark for this home yet",
            detail="Financial efficiency cannot be scored until a market benchmark exists for this area and home type.",
            component=ScoreType.FINANCIAL,
            impact=Impact.NEUTRAL,
            weight=60,
            confidence=Confidence.LOW,
            provenance=Provenance.INFERRED,
            action_href=href,
        )]
    if report.financial_efficiency_score is not None and report.financial_efficiency_score < FINANCIAL_GAP_THRESHOLD:
        return [Reason(
            id="financial-benchmark-gap",
            title="Annual home cost is above benchmark",
            detail=f"Your efficiency score is {int(round_half_up(report.financial_efficiency_score))}.",
            component=ScoreType.FINANCIAL,
            impact=Impact.NEGATIVE,
            weight=74,
            confidence=Confidence.MEDIUM,
            provenance=Provenance.SYSTEM_COMPUTED,
            action_href=href,
        )]
    return []


def what_changed(components: List[HomeScoreComponent]) -> List[Reason]:
    changes = []
    for component in components:
        delta = component.delta_from_previous_week
        if not delta:
            continue
        improved = delta > 0
        changes.append(Reason(
            id=f"{component.key.value.lower()}-delta",
            title=f"{component.label} moved {'up' if improved else 'down'}",
            detail=(
                f"Improved by {delta:.1f} points since last week."
                if improved
                else f"Dropped by {abs(delta):.1f} points since last week."
            ),
            component=component.key,
            impact=Impact.POSITIVE if improved else Impact.NEGATIVE,
            weight=int(round_half_up(min(100, abs(delta) * 15 + 40))),
            confidence=component.confidence,
            provenance=component.provenance,
        ))

    if not changes:
        return [Reason(
            id="no-delta",
            title="No material score movement yet",
            detail="Weekly deltas will appear once at least two snapshots are available.",
            impact=Impact.NEUTRAL,
            weight=40,
            confidence=Confidence.LOW,
            provenance=Provenance.INFERRED,
        )]
    return sorted(changes, key=lambda r: r.weight, reverse=True)[:MAX_CHANGES]


def next_best_action(reasons: List[Reason]) -> Optional[NextBestAction]:
    if not reasons:
        return None
    top = reasons[0]
    return NextBestAction(title=top.title, detail=top.detail, href=top.action_href)
