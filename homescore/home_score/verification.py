from collections import Counter
from typing import List, Optional

from homescore.financial.schemas import FinancialLookup, FinancialLookupStatus, FinancialStatus
from homescore.properties.fields import PROFILE_FIELDS, ProfileField
from homescore.risk.schemas import RiskLookupStatus, RiskReportLookup
from . import links
from .consistency import unsupported_coverage
from .context import PropertyContext
from .schemas import (
    FieldFact,
    HomeScoreComponent,
    Provenance,
    VerificationLadder,
    VerificationOpportunity,
    VerificationStatus,
)

MAX_OPPORTUNITIES = 5


def field_status(ctx: PropertyContext, profile_field: ProfileField) -> VerificationStatus:
    if profile_field.key in ctx.open_correction_fields:
        return VerificationStatus.REVIEW_NEEDED
    if not ctx.is_populated(profile_field):
        return VerificationStatus.UNKNOWN
    if profile_field.evidence and ctx.document_types.intersection(profile_field.evidence):
        return VerificationStatus.VERIFIED
    return VerificationStatus.UNVERIFIED


def build_field_facts(ctx: PropertyContext) -> List[FieldFact]:
    facts = []
    for profile_field in PROFILE_FIELDS:
        value = ctx.facts.value_of(profile_field.key)
        facts.append(FieldFact(
            key=profile_field.key,
            label=profile_field.label,
            value=value,
            provenance=Provenance.USER_STATED if value is not None else Provenance.INFERRED,
            verification_status=field_status(ctx, profile_field),
        ))
    return facts


def build_ladder(components: List[HomeScoreComponent], field_facts: List[FieldFact]) -> VerificationLadder:
    counts = Counter(c.provenance for c in components)
    counts.update(f.provenance for f in field_facts if f.value is not None)
    return VerificationLadder(
        user_stated=counts[Provenance.USER_STATED],
        inferred=counts[Provenance.INFERRED],
        system_computed=counts[Provenance.SYSTEM_COMPUTED],
    )


def verification_opportunities(
    ctx: PropertyContext,
    risk: Optional[RiskReportLookup],
    financial: Optional[FinancialLookup],
) -> List[VerificationOpportunity]:
    """Actions that would raise confidence, biggest estimated gain first."""
    pid = ctx.facts.id
    opportunities: List[VerificationOpportunity] = []

    missing = ctx.missing_fields()
    if missing:
        labels = ", ".join(f.label for f in missing[:3])
        more = f" and {len(missing) - 3} more" if len(missing) > 3 else ""
        opportunities.append(VerificationOpportunity(
            id="complete-missing-fields",
            title="Complete missing home details",
            detail=f"Add {labels}{more}.",
            estimated_confidence_gain=min(20, 2 * len(missing)),
            href=links.edit_property(pid),
        ))

    unverified = [
        f for f in PROFILE_FIELDS
        if f.evidence and field_status(ctx, f) == VerificationStatus.UNVERIFIED
    ]
    if unverified:
        opportunities.append(VerificationOpportunity(
            id="attach-evidence",
            title="Attach evidence for stated details",
            detail=f"Upload an inspection report or receipt to verify {len(unverified)} stated details.",
            estimated_confidence_gain=min(15, 2 * len(unverified)),
            href=links.documents(pid),
        ))

    unsupported = unsupported_coverage(ctx)
    if unsupported:
        opportunities.append(VerificationOpportunity(
            id="attach-coverage-documents",
            title="Upload coverage documents",
            detail=f"Add the {' and '.join(unsupported)} document to back recorded coverage.",
            estimated_confidence_gain=4 * len(unsupported),
            href=links.documents(pid),
        ))

    if risk is None or risk.status in (RiskLookupStatus.STALE, RiskLookupStatus.QUEUED, RiskLookupStatus.FAILED):
        opportunities.append(VerificationOpportunity(
            id="refresh-risk-report",
            title="Refresh the risk report",
            detail="A current risk calculation raises confidence in the risk component.",
            estimated_confidence_gain=10,
            href=links.risk_assessment(pid),
        ))

    report = financial.report if financial is not None else None
    if report is not None and report.status == FinancialStatus.MISSING_DATA:
        gain = 12
    elif report is not None:
        gain = 4 * sum(
            1 for v in (report.actual_insurance_cost, report.actual_utility_cost, report.actual_warranty_cost) if v <= 0
        )
    else:
        gain = 6 if financial is not None and financial.status == FinancialLookupStatus.QUEUED else 0
    if gain:
        opportunities.append(VerificationOpportunity(
            id="complete-financial-inputs",
            title="Complete annual cost inputs",
            detail="Add insurance premiums, warranty costs, and the last 12 months of utility bills.",
            estimated_confidence_gain=gain,
            href=links.financial_efficiency(pid),
        ))

    if not ctx.policies:
        opportunities.append(VerificationOpportunity(
            id="link-insurance",
            title="Link your insurance policy",
            detail="Coverage details lower estimated out-of-pocket exposure.",
            estimated_confidence_gain=10,
            href=links.coverage(pid),
        ))
    if not ctx.warranties:
        opportunities.append(VerificationOpportunity(
            id="link-warranty",
            title="Link a home warranty",
            detail="Active warranties change the coverage used for system failures.",
            estimated_confidence_gain=6,
            href=links.coverage(pid),
        ))

    opportunities.sort(key=lambda o: o.estimated_confidence_gain, reverse=True)
    return opportunities[:MAX_OPPORTUNITIES]
