"""Asset failure-risk math.

Every function here is small, pure and deterministic so the curve and the
coverage branching can be unit-tested without a database.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from homescore.properties.schemas import PropertyFacts
from homescore.utils.numbers import clamp, round_half_up
from .schemas import AssetCategory, AssetConfigRecord, AssetRiskDetail, RiskLevel

BASELINE_PROBABILITY = 0.05
UNKNOWN_LIFE_PROBABILITY = 0.95
END_OF_LIFE_RATIO = 1.2
END_OF_LIFE_FLOOR = 0.85
WEAR_AND_TEAR_THRESHOLD = 0.70

WARRANTY_DEDUCTIBLE = 150.0
INSURANCE_DEDUCTIBLE = 1000.0

PROPERTY_VALUE_RATE = 25.0  # dollars per square foot
DEFAULT_PROPERTY_SIZE = 2000
MAX_RISK_SHARE = 0.20
MAX_AGE = 100

CTA_ADD_WARRANTY = "Add Home Warranty"
CTA_SCHEDULE_REPLACEMENT = "Schedule Inspection/Replacement"

# Property-level basement flood exposure
FLOOD_SYSTEM_TYPE = "BASEMENT_FLOOD_RISK"
FLOOD_BASELINE = 48
FLOOD_BASELINE_WITH_DRAINAGE_ISSUES = 72
SUMP_PUMP_REDUCTION = 0.6
FLOOD_REPAIR_COST = 12000.0
FLOOD_REPAIR_COST_WITH_DRAINAGE_ISSUES = 18000.0
FLOOD_INSURANCE_COVERAGE = 0.35
CTA_INSTALL_SUMP_BACKUP = "Install sump pump battery backup"
CTA_MAINTAIN_SUMP_BACKUP = "Maintain battery backup and test quarterly"


@dataclass
class Coverage:
    has_active_warranty: bool
    has_insurance: bool


@dataclass
class RiskAggregate:
    risk_score: int
    financial_exposure_total: float
    max_risk_dollar: float


def age_in_years(install_year: int, current_year: int) -> int:
    return int(clamp(current_year - install_year, 0, MAX_AGE))


def failure_probability(age: int, expected_life: int, warning_bump: float = 0.0) -> float:
    if age == 0:
        return BASELINE_PROBABILITY
    if expected_life <= 0:
        return UNKNOWN_LIFE_PROBABILITY
    ratio = clamp(age / expected_life, 0.0, 2.0)
    p = clamp(0.10 + 0.90 * ratio ** 2 + warning_bump, 0.0, 1.0)
    if ratio >= END_OF_LIFE_RATIO:
        p = max(p, END_OF_LIFE_FLOOR)
    return clamp(p, BASELINE_PROBABILITY, 1.0)


def out_of_pocket_cost(replacement_cost: float, probability: float, coverage: Coverage) -> float:
    replacement_cost = max(replacement_cost, 0.0)
    if probability > WEAR_AND_TEAR_THRESHOLD:
        # Wear-and-tear failures are excluded by warranties and insurance alike.
        cost = replacement_cost
    elif coverage.has_active_warranty:
        cost = WARRANTY_DEDUCTIBLE
    elif coverage.has_insurance:
        cost = INSURANCE_DEDUCTIBLE
    else:
        cost = replacement_cost
    return clamp(cost, 0.0, replacement_cost)


def coverage_factor(out_of_pocket: float, replacement_cost: float) -> float:
    if replacement_cost <= 0:
        return 0.0
    return clamp(1 - out_of_pocket / replacement_cost, 0.0, 1.0)


def risk_level(risk_dollar: float, replacement_cost: float) -> RiskLevel:
    if replacement_cost <= 0:
        return RiskLevel.LOW
    score_ratio = risk_dollar / (replacement_cost * 0.5)
    if score_ratio < 0.10:
        return RiskLevel.LOW
    if score_ratio < 0.30:
        return RiskLevel.MODERATE
    if score_ratio < 0.60:
        return RiskLevel.ELEVATED
    return RiskLevel.HIGH


def action_cta(level: RiskLevel, age: int, expected_life: int, out_of_pocket: float, coverage: Coverage) -> str:
    if level == RiskLevel.HIGH and not coverage.has_active_warranty:
        return CTA_ADD_WARRANTY
    if age > expected_life and out_of_pocket > 0:
        return CTA_SCHEDULE_REPLACEMENT
    return ""


def warning_bump(config: AssetConfigRecord, facts: PropertyFacts) -> float:
    bump = 0.0
    for flag_name, amount in (config.warning_flags or {}).items():
        if facts.flag(flag_name):
            bump += float(amount)
    return bump


def resolve_install_year(config: AssetConfigRecord, facts: PropertyFacts, current_year: int) -> Optional[int]:
    system_type = config.system_type
    if system_type.startswith("HVAC_"):
        return facts.hvac_install_year
    if system_type.startswith("WATER_HEATER_"):
        return facts.water_heater_install_year
    if system_type.startswith("ROOF_"):
        return facts.roof_replacement_year
    if system_type.startswith("ELECTRICAL_PANEL_"):
        if facts.electrical_panel_age is None:
            return None
        return current_year - facts.electrical_panel_age
    if system_type.startswith("FOUNDATION_"):
        return facts.year_built
    if config.category == AssetCategory.SAFETY:
        return facts.detectors_install_year or facts.year_built
    return None


def asset_name(system_type: str) -> str:
    return system_type.replace("_", " ").title()


def calculate_asset_risk(
    config: AssetConfigRecord,
    facts: PropertyFacts,
    coverage: Coverage,
    current_year: int,
) -> Optional[AssetRiskDetail]:
    """Risk for a single asset, or None when its install year is unknown."""
    install_year = resolve_install_year(config, facts, current_year)
    if not install_year:
        return None

    age = age_in_years(install_year, current_year)
    replacement_cost = float(config.replacement_cost)
    probability = round_half_up(failure_probability(age, config.expected_life, warning_bump(config, facts)), 4)
    oop = round_half_up(out_of_pocket_cost(replacement_cost, probability, coverage), 2)
    risk_dollar = round_half_up(probability * oop, 2)
    level = risk_level(risk_dollar, replacement_cost)

    return AssetRiskDetail(
        asset_name=asset_name(config.system_type),
        system_type=config.system_type,
        category=config.category,
        age=age,
        expected_life=config.expected_life,
        replacement_cost=replacement_cost,
        probability=probability,
        coverage_factor=round_half_up(coverage_factor(oop, replacement_cost), 4),
        out_of_pocket_cost=oop,
        risk_dollar=risk_dollar,
        risk_level=level,
        action_cta=action_cta(level, age, config.expected_life, oop, coverage),
    )


def flood_risk_level(flood_score: int) -> RiskLevel:
    if flood_score < 35:
        return RiskLevel.LOW
    if flood_score < 50:
        return RiskLevel.MODERATE
    if flood_score < 65:
        return RiskLevel.ELEVATED
    if flood_score < 80:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def basement_flood_risk(facts: PropertyFacts, coverage: Coverage) -> AssetRiskDetail:
    """Flood exposure of the home itself, scored on drainage and sump pump backup."""
    drainage_issues = facts.has_drainage_issues is True
    flood_score = FLOOD_BASELINE_WITH_DRAINAGE_ISSUES if drainage_issues else FLOOD_BASELINE
    if facts.has_sump_pump is True:
        flood_score = int(round_half_up(flood_score * SUMP_PUMP_REDUCTION))

    probability = round_half_up(clamp(flood_score / 100, 0.10, 0.95), 2)
    replacement_cost = FLOOD_REPAIR_COST_WITH_DRAINAGE_ISSUES if drainage_issues else FLOOD_REPAIR_COST
    factor = FLOOD_INSURANCE_COVERAGE if coverage.has_insurance else 0.0
    oop = round_half_up(replacement_cost * (1 - factor))

    return AssetRiskDetail(
        asset_name=asset_name(FLOOD_SYSTEM_TYPE),
        system_type=FLOOD_SYSTEM_TYPE,
        category=AssetCategory.STRUCTURE,
        age=0,
        expected_life=1,
        replacement_cost=replacement_cost,
        probability=probability,
        coverage_factor=factor,
        out_of_pocket_cost=oop,
        risk_dollar=round_half_up(probability * oop, 2),
        risk_level=flood_risk_level(flood_score),
        action_cta=CTA_MAINTAIN_SUMP_BACKUP if facts.has_sump_pump is True else CTA_INSTALL_SUMP_BACKUP,
    )


def aggregate_risk(details: Iterable[AssetRiskDetail], property_size: Optional[int]) -> RiskAggregate:
    total = sum(d.risk_dollar for d in details)
    size = property_size if property_size and property_size > 0 else DEFAULT_PROPERTY_SIZE
    max_risk_dollar = size * PROPERTY_VALUE_RATE * MAX_RISK_SHARE
    ratio = clamp(total / max_risk_dollar, 0.0, 1.0)
    score = int(round_half_up(100 * (1 - ratio ** 2)))
    return RiskAggregate(
        risk_score=score,
        financial_exposure_total=round_half_up(total, 2),
        max_risk_dollar=max_risk_dollar,
    )


def calculate_risks(
    configs: List[AssetConfigRecord],
    facts: PropertyFacts,
    coverage: Coverage,
    current_year: int,
) -> List[AssetRiskDetail]:
    details = []
    for config in configs:
        detail = calculate_asset_risk(config, facts, coverage, current_year)
        if detail is not None:
            details.append(detail)
    details.append(basement_flood_risk(facts, coverage))
    return details


def coverage_for(warranties, policies, today: date) -> Coverage:
    return Coverage(
        has_active_warranty=any(w.is_active(today) for w in warranties),
        has_insurance=len(policies) > 0,
    )
