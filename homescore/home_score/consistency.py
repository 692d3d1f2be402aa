"""Sanity rules over the stated property facts."""

from datetime import date
from typing import List

from homescore.utils.numbers import round_half_up
from . import links
from .context import PropertyContext
from .schemas import CheckStatus, ConsistencyCheck, Severity

MAX_CHECKS = 8
LOW_COMPLETENESS = 0.60

INSTALL_YEAR_FIELDS = (
    ("hvac_install_year", "HVAC"),
    ("water_heater_install_year", "Water heater"),
    ("roof_replacement_year", "Roof"),
    ("detectors_install_year", "Detectors"),
)

STATUS_ORDER = {CheckStatus.FAIL: 0, CheckStatus.WARN: 1, CheckStatus.PASS: 2}
SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


def _check(check_id, title, detail, status, severity, href=None) -> ConsistencyCheck:
    return ConsistencyCheck(id=check_id, title=title, detail=detail, status=status, severity=severity, action_href=href)


def check_install_chronology(ctx: PropertyContext) -> ConsistencyCheck:
    facts = ctx.facts
    href = links.edit_property(facts.id)
    if facts.year_built is None:
        return _check(
            "install-chronology", "Install years vs. year built",
            "Year built is missing, so install years cannot be validated.",
            CheckStatus.WARN, Severity.MEDIUM, href,
        )
    conflicts = [
        f"{label} ({facts.value_of(key)})"
        for key, label in INSTALL_YEAR_FIELDS
        if facts.value_of(key) is not None and facts.value_of(key) < facts.year_built
    ]
    if conflicts:
        return _check(
            "install-chronology", "Install years vs. year built",
            f"Installed before the home was built in {facts.year_built}: {', '.join(conflicts)}.",
            CheckStatus.FAIL, Severity.HIGH, href,
        )
    return _check(
        "install-chronology", "Install years vs. year built",
        "All install years are on or after the year built.",
        CheckStatus.PASS, Severity.LOW,
    )


def check_future_dates(ctx: PropertyContext, today: date) -> ConsistencyCheck:
    facts = ctx.facts
    future = [
        f"{label} ({facts.value_of(key)})"
        for key, label in (("year_built", "Year built"),) + INSTALL_YEAR_FIELDS
        if facts.value_of(key) is not None and facts.value_of(key) > today.year
    ]
    if future:
        return _check(
            "future-dated", "Future-dated replacements",
            f"Dates later than {today.year}: {', '.join(future)}.",
            CheckStatus.FAIL, Severity.HIGH, links.edit_property(facts.id),
        )
    return _check("future-dated", "Future-dated replacements", "No future-dated entries.", CheckStatus.PASS, Severity.LOW)


def check_safety_equipment(ctx: PropertyContext) -> ConsistencyCheck:
    facts = ctx.facts
    href = links.edit_property(facts.id)
    smoke, co = facts.has_smoke_detectors, facts.has_co_detectors
    if smoke is False and co is False:
        return _check(
            "safety-equipment", "Critical safety equipment",
            "No smoke or carbon monoxide detectors are recorded.",
            CheckStatus.FAIL, Severity.HIGH, href,
        )
    if facts.is_detector_expired:
        return _check(
            "safety-equipment", "Critical safety equipment",
            "Detectors are past their service life and should be replaced.",
            CheckStatus.WARN, Severity.HIGH, href,
        )
    if not smoke or not co:
        missing = [name for name, present in (("smoke", smoke), ("carbon monoxide", co)) if not present]
        return _check(
            "safety-equipment", "Critical safety equipment",
            f"Confirm {' and '.join(missing)} detectors.",
            CheckStatus.WARN, Severity.MEDIUM, href,
        )
    return _check(
        "safety-equipment", "Critical safety equipment",
        "Smoke and carbon monoxide detectors are recorded.",
        CheckStatus.PASS, Severity.LOW,
    )


def check_maintenance_backlog(ctx: PropertyContext, today: date) -> ConsistencyCheck:
    href = links.maintenance(ctx.facts.id)
    overdue = [t for t in ctx.open_tasks if t.due_date is not None and t.due_date < today]
    critical = [t for t in ctx.open_tasks if t.priority == "URGENT"]
    if critical:
        return _check(
            "maintenance-backlog", "Maintenance backlog",
            f"{len(critical)} urgent and {len(overdue)} overdue maintenance tasks are open.",
            CheckStatus.FAIL, Severity.HIGH, href,
        )
    if overdue:
        return _check(
            "maintenance-backlog", "Maintenance backlog",
            f"{len(overdue)} maintenance tasks are past due.",
            CheckStatus.WARN, Severity.MEDIUM, href,
        )
    return _check("maintenance-backlog", "Maintenance backlog", "No overdue or urgent tasks.", CheckStatus.PASS, Severity.LOW)


def unsupported_coverage(ctx: PropertyContext) -> List[str]:
    """Coverage kinds that have records but no supporting document."""
    missing = []
    if ctx.policies and "INSURANCE_POLICY" not in ctx.document_types:
        missing.append("insurance policy")
    if ctx.warranties and "WARRANTY" not in ctx.document_types:
        missing.append("home warranty")
    return missing


def check_coverage_documents(ctx: PropertyContext) -> ConsistencyCheck:
    missing = unsupported_coverage(ctx)
    if missing:
        return _check(
            "coverage-documents", "Coverage backed by documents",
            f"No document uploaded for: {', '.join(missing)}.",
            CheckStatus.WARN, Severity.MEDIUM, links.documents(ctx.facts.id),
        )
    return _check(
        "coverage-documents", "Coverage backed by documents",
        "Recorded coverage has supporting documents.",
        CheckStatus.PASS, Severity.LOW,
    )


def check_profile_completeness(ctx: PropertyContext) -> ConsistencyCheck:
    completeness = ctx.completeness()
    pct = int(round_half_up(completeness * 100))
    if completeness < LOW_COMPLETENESS:
        return _check(
            "profile-completeness", "Profile completeness",
            f"Only {pct}% of home profile details are confirmed.",
            CheckStatus.WARN, Severity.MEDIUM, links.edit_property(ctx.facts.id),
        )
    return _check(
        "profile-completeness", "Profile completeness",
        f"{pct}% of home profile details are confirmed.",
        CheckStatus.PASS, Severity.LOW,
    )


def run_consistency_checks(ctx: PropertyContext, today: date) -> List[ConsistencyCheck]:
    checks = [
        check_install_chronology(ctx),
        check_future_dates(ctx, today),
        check_safety_equipment(ctx),
        check_maintenance_backlog(ctx, today),
        check_coverage_documents(ctx),
        check_profile_completeness(ctx),
    ]
    checks.sort(key=lambda c: (STATUS_ORDER[c.status], SEVERITY_ORDER[c.severity]))
    return checks[:MAX_CHECKS]
