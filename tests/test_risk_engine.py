import pytest

from homescore.properties.schemas import PropertyFacts
from homescore.risk.engine import (
    CTA_ADD_WARRANTY,
    CTA_SCHEDULE_REPLACEMENT,
    INSURANCE_DEDUCTIBLE,
    WARRANTY_DEDUCTIBLE,
    Coverage,
    CTA_INSTALL_SUMP_BACKUP,
    CTA_MAINTAIN_SUMP_BACKUP,
    FLOOD_SYSTEM_TYPE,
    action_cta,
    aggregate_risk,
    basement_flood_risk,
    calculate_asset_risk,
    calculate_risks,
    failure_probability,
    out_of_pocket_cost,
    resolve_install_year,
    risk_level,
)
from homescore.risk.schemas import AssetConfigRecord, AssetRiskDetail, RiskLevel

NO_COVERAGE = Coverage(has_active_warranty=False, has_insurance=False)
WARRANTY = Coverage(has_active_warranty=True, has_insurance=False)
INSURED = Coverage(has_active_warranty=False, has_insurance=True)


def furnace(**overrides) -> AssetConfigRecord:
    values = dict(system_type="HVAC_FURNACE", category="SYSTEMS", expected_life=15, replacement_cost=8500)
    values.update(overrides)
    return AssetConfigRecord(**values)


def facts(**overrides) -> PropertyFacts:
    return PropertyFacts(id=1, owner_user_id=1, **overrides)


def detail_with(risk_dollar: float) -> AssetRiskDetail:
    return AssetRiskDetail(
        asset_name="Hvac Furnace",
        system_type="HVAC_FURNACE",
        category="SYSTEMS",
        age=10,
        expected_life=15,
        replacement_cost=max(risk_dollar, 1.0),
        probability=1.0,
        coverage_factor=0.0,
        out_of_pocket_cost=risk_dollar,
        risk_dollar=risk_dollar,
        risk_level=RiskLevel.HIGH,
    )


def test_new_asset_uses_baseline_probability():
    assert failure_probability(0, 15) == 0.05


def test_probability_follows_quadratic_curve():
    assert failure_probability(14, 15) == pytest.approx(0.884)
    assert failure_probability(5, 10) == pytest.approx(0.325)


def test_probability_adds_warning_bump():
    assert failure_probability(5, 10, warning_bump=0.3) == pytest.approx(0.625)


def test_probability_is_floored_past_end_of_life():
    # A large negative bump would otherwise pull the asset below the floor.
    assert failure_probability(18, 15, warning_bump=-0.9) == pytest.approx(0.85)


def test_probability_stays_within_bounds():
    assert failure_probability(80, 10, warning_bump=0.5) == 1.0
    assert failure_probability(1, 100, warning_bump=-1.0) == 0.05


def test_unknown_expected_life_is_treated_as_near_certain():
    assert failure_probability(3, 0) == 0.95


def test_wear_and_tear_exposes_full_replacement_cost_even_when_covered():
    assert out_of_pocket_cost(8500, 0.88, WARRANTY) == 8500
    assert out_of_pocket_cost(8500, 0.88, INSURED) == 8500


def test_coverage_reduces_exposure_to_deductible():
    assert out_of_pocket_cost(8500, 0.5, WARRANTY) == WARRANTY_DEDUCTIBLE
    assert out_of_pocket_cost(8500, 0.5, INSURED) == INSURANCE_DEDUCTIBLE
    assert out_of_pocket_cost(8500, 0.5, NO_COVERAGE) == 8500


def test_deductible_never_exceeds_replacement_cost():
    assert out_of_pocket_cost(100, 0.5, INSURED) == 100


@pytest.mark.parametrize(
    "risk_dollar, expected",
    [
        (0, RiskLevel.LOW),
        (49.99, RiskLevel.LOW),
        (50, RiskLevel.MODERATE),
        (149.99, RiskLevel.MODERATE),
        (150, RiskLevel.ELEVATED),
        (299.99, RiskLevel.ELEVATED),
        (300, RiskLevel.HIGH),
        (1000, RiskLevel.HIGH),
    ],
)
def test_risk_level_buckets(risk_dollar, expected):
    assert risk_level(risk_dollar, 1000) == expected


def test_risk_level_without_replacement_cost_is_low():
    assert risk_level(500, 0) == RiskLevel.LOW


def test_action_cta_rules():
    assert action_cta(RiskLevel.HIGH, 5, 15, 8500, NO_COVERAGE) == CTA_ADD_WARRANTY
    assert action_cta(RiskLevel.HIGH, 20, 15, 150, WARRANTY) == CTA_SCHEDULE_REPLACEMENT
    assert action_cta(RiskLevel.LOW, 5, 15, 150, WARRANTY) == ""


def test_uncovered_furnace_near_end_of_life_exposes_replacement_cost():
    detail = calculate_asset_risk(furnace(), facts(hvac_install_year=2012), NO_COVERAGE, 2026)

    assert detail.age == 14
    assert detail.probability == pytest.approx(0.884)
    assert detail.out_of_pocket_cost == 8500
    assert detail.risk_dollar == pytest.approx(7514.0)
    assert detail.coverage_factor == 0.0
    assert detail.risk_level == RiskLevel.HIGH
    assert detail.action_cta == CTA_ADD_WARRANTY


def test_warranty_collapses_exposure_when_probability_drops():
    config = furnace(warning_flags={"has_sump_pump": -0.3})
    detail = calculate_asset_risk(config, facts(hvac_install_year=2012, has_sump_pump=True), WARRANTY, 2026)

    assert detail.probability == pytest.approx(0.584)
    assert detail.out_of_pocket_cost == WARRANTY_DEDUCTIBLE
    assert detail.risk_dollar == pytest.approx(87.6)
    assert detail.coverage_factor == pytest.approx(0.9824)
    assert detail.risk_level == RiskLevel.LOW


def test_asset_without_install_year_is_skipped():
    fridge = AssetConfigRecord(
        system_type="MAJOR_APPLIANCE_FRIDGE", category="SYSTEMS", expected_life=12, replacement_cost=2000
    )
    assert calculate_asset_risk(fridge, facts(year_built=1990), NO_COVERAGE, 2026) is None
    assert calculate_asset_risk(furnace(), facts(), NO_COVERAGE, 2026) is None


def test_install_year_resolution():
    panel = AssetConfigRecord(
        system_type="ELECTRICAL_PANEL_OLD", category="SYSTEMS", expected_life=30, replacement_cost=3000
    )
    slab = AssetConfigRecord(
        system_type="FOUNDATION_CONCRETE_SLAB", category="STRUCTURE", expected_life=100, replacement_cost=50000
    )
    detectors = AssetConfigRecord(
        system_type="SAFETY_SMOKE_CO_DETECTORS", category="SAFETY", expected_life=10, replacement_cost=300
    )
    f = facts(year_built=1990, electrical_panel_age=45)

    assert resolve_install_year(panel, f, 2026) == 1981
    assert resolve_install_year(slab, f, 2026) == 1990
    assert resolve_install_year(detectors, f, 2026) == 1990
    assert resolve_install_year(detectors, facts(year_built=1990, detectors_install_year=2020), 2026) == 2020


def test_warning_flags_raise_probability():
    config = furnace(warning_flags={"has_drainage_issues": 0.1})
    dry = calculate_asset_risk(config, facts(hvac_install_year=2021), NO_COVERAGE, 2026)
    wet = calculate_asset_risk(config, facts(hvac_install_year=2021, has_drainage_issues=True), NO_COVERAGE, 2026)
    assert wet.probability == pytest.approx(dry.probability + 0.1)


def test_detail_rejects_out_of_pocket_above_replacement():
    with pytest.raises(ValueError):
        AssetRiskDetail(
            asset_name="Roof Shingle",
            system_type="ROOF_SHINGLE",
            category="STRUCTURE",
            age=10,
            expected_life=20,
            replacement_cost=100,
            probability=0.5,
            coverage_factor=0.0,
            out_of_pocket_cost=200,
            risk_dollar=100,
            risk_level=RiskLevel.HIGH,
        )


def test_aggregate_score_is_quadratic_in_exposure_share():
    result = aggregate_risk([detail_with(2500), detail_with(2500)], 2000)
    assert result.max_risk_dollar == 10000
    assert result.financial_exposure_total == 5000
    assert result.risk_score == 75


def test_aggregate_score_bounds():
    assert aggregate_risk([], 2000).risk_score == 100
    assert aggregate_risk([detail_with(50000)], 2000).risk_score == 0


def test_aggregate_uses_default_size_when_unknown():
    assert aggregate_risk([detail_with(5000)], None).max_risk_dollar == 10000


@pytest.mark.parametrize("bump", [0.0, -0.5, -2.0])
def test_probability_floor_at_one_point_three_times_expected_life(bump):
    assert failure_probability(13, 10, warning_bump=bump) >= 0.85


def test_flags_outside_the_boolean_set_are_ignored():
    plain = calculate_asset_risk(furnace(), facts(year_built=1990, hvac_install_year=2021), NO_COVERAGE, 2026)
    odd = calculate_asset_risk(
        furnace(warning_flags={"year_built": 0.5}),
        facts(year_built=1990, hvac_install_year=2021),
        NO_COVERAGE,
        2026,
    )

    assert odd.probability == plain.probability
    assert facts(year_built=1990).flag("year_built") is False
    assert facts(has_sump_pump=True).flag("has_sump_pump") is True


def test_basement_flood_baseline_without_coverage():
    detail = basement_flood_risk(facts(), NO_COVERAGE)

    assert detail.system_type == FLOOD_SYSTEM_TYPE
    assert detail.category == "STRUCTURE"
    assert detail.probability == 0.48
    assert detail.replacement_cost == 12000
    assert detail.out_of_pocket_cost == 12000
    assert detail.risk_dollar == 5760
    assert detail.risk_level == RiskLevel.MODERATE
    assert detail.action_cta == CTA_INSTALL_SUMP_BACKUP


def test_basement_flood_with_drainage_issues_and_insurance():
    detail = basement_flood_risk(facts(has_drainage_issues=True), INSURED)

    assert detail.probability == 0.72
    assert detail.replacement_cost == 18000
    assert detail.coverage_factor == 0.35
    assert detail.out_of_pocket_cost == 11700
    assert detail.risk_dollar == pytest.approx(8424)
    assert detail.risk_level == RiskLevel.HIGH


@pytest.mark.parametrize(
    "drainage, probability, level",
    [(True, 0.43, RiskLevel.MODERATE), (False, 0.29, RiskLevel.LOW)],
)
def test_sump_pump_backup_cuts_flood_score(drainage, probability, level):
    detail = basement_flood_risk(facts(has_drainage_issues=drainage, has_sump_pump=True), NO_COVERAGE)

    assert detail.probability == probability
    assert detail.risk_level == level
    assert detail.action_cta == CTA_MAINTAIN_SUMP_BACKUP


def test_flood_detail_is_added_after_catalog_assets():
    details = calculate_risks([furnace()], facts(hvac_install_year=2012), NO_COVERAGE, 2026)

    assert [d.system_type for d in details] == ["HVAC_FURNACE", FLOOD_SYSTEM_TYPE]
