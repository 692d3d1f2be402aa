import logging

from homescore.properties.schemas import PropertyFacts
from homescore.risk.catalog import DEFAULT_ASSET_CATALOG
from homescore.risk.relevance import filter_relevant_assets
from homescore.risk.schemas import AssetConfigRecord

CATALOG = [AssetConfigRecord(**entry) for entry in DEFAULT_ASSET_CATALOG]


def relevant_types(**fact_values):
    facts = PropertyFacts(id=7, owner_user_id=1, **fact_values)
    return {c.system_type for c in filter_relevant_assets(CATALOG, facts).configs}


def test_heat_pump_only_for_heat_pump_homes():
    assert "HVAC_HEAT_PUMP" in relevant_types(heating_type="HEAT_PUMP")
    assert "HVAC_FURNACE" not in relevant_types(heating_type="HEAT_PUMP")
    assert "HVAC_HEAT_PUMP" not in relevant_types(heating_type="FURNACE")


def test_furnace_matches_furnace_or_generic_hvac():
    assert "HVAC_FURNACE" in relevant_types(heating_type="furnace")
    assert "HVAC_FURNACE" in relevant_types(heating_type="HVAC")
    assert "HVAC_FURNACE" not in relevant_types(heating_type="RADIATOR")


def test_water_heater_by_type():
    assert "WATER_HEATER_TANK" in relevant_types(water_heater_type="TANK")
    assert "WATER_HEATER_TANKLESS" not in relevant_types(water_heater_type="TANK")
    assert "WATER_HEATER_TANKLESS" in relevant_types(water_heater_type="TANKLESS")


def test_old_panel_only_at_thirty_years_or_more():
    assert "ELECTRICAL_PANEL_OLD" in relevant_types(electrical_panel_age=30)
    assert "ELECTRICAL_PANEL_MODERN" not in relevant_types(electrical_panel_age=30)
    assert "ELECTRICAL_PANEL_OLD" not in relevant_types(electrical_panel_age=29)
    assert "ELECTRICAL_PANEL_MODERN" in relevant_types(electrical_panel_age=29)
    assert "ELECTRICAL_PANEL_MODERN" in relevant_types()


def test_detectors_only_when_declared():
    assert "SAFETY_SMOKE_CO_DETECTORS" in relevant_types(has_smoke_detectors=True)
    assert "SAFETY_SMOKE_CO_DETECTORS" in relevant_types(has_co_detectors=True)
    assert "SAFETY_SMOKE_CO_DETECTORS" not in relevant_types(has_smoke_detectors=False, has_co_detectors=False)


def test_slab_foundation_assumed_when_unknown():
    assert "FOUNDATION_CONCRETE_SLAB" in relevant_types()
    assert "FOUNDATION_CONCRETE_SLAB" in relevant_types(foundation_type="CONCRETE_SLAB")
    assert "FOUNDATION_CONCRETE_SLAB" not in relevant_types(foundation_type="BASEMENT")


def test_roof_by_material():
    assert "ROOF_SHINGLE" in relevant_types(roof_type="SHINGLE")
    assert "ROOF_TILE_METAL" in relevant_types(roof_type="METAL")
    assert "ROOF_TILE_METAL" not in relevant_types(roof_type="SHINGLE")


def test_unknown_system_types_are_dropped_with_warning(caplog):
    configs = CATALOG + [
        AssetConfigRecord(system_type="POOL_PUMP", category="SYSTEMS", expected_life=8, replacement_cost=1200)
    ]
    facts = PropertyFacts(id=7, owner_user_id=1)

    with caplog.at_level(logging.WARNING, logger="homescore.risk.relevance"):
        result = filter_relevant_assets(configs, facts)

    assert result.unknown_system_types == ["POOL_PUMP"]
    assert "POOL_PUMP" not in {c.system_type for c in result.configs}
    assert "POOL_PUMP" in caplog.text
