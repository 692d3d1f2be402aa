import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from homescore.properties.schemas import PropertyFacts
from .schemas import AssetConfigRecord

logger = logging.getLogger(__name__)

OLD_PANEL_AGE = 30


def _upper(value) -> str:
    return str(value or "").upper()


def _foundation_is_slab(facts: PropertyFacts) -> bool:
    if not facts.foundation_type:
        return True
    foundation = _upper(facts.foundation_type)
    return "SLAB" in foundation or "CONCRETE" in foundation


# system type -> predicate over the property's facts
RELEVANCE_RULES: Dict[str, Callable[[PropertyFacts], bool]] = {
    "HVAC_FURNACE": lambda f: _upper(f.heating_type) in ("FURNACE", "HVAC"),
    "HVAC_HEAT_PUMP": lambda f: _upper(f.heating_type) == "HEAT_PUMP",
    "WATER_HEATER_TANK": lambda f: _upper(f.water_heater_type) == "TANK",
    "WATER_HEATER_TANKLESS": lambda f: _upper(f.water_heater_type) == "TANKLESS",
    "ROOF_SHINGLE": lambda f: _upper(f.roof_type) == "SHINGLE",
    "ROOF_TILE_METAL": lambda f: _upper(f.roof_type) in ("TILE", "METAL"),
    "ELECTRICAL_PANEL_MODERN": lambda f: f.electrical_panel_age is None or f.electrical_panel_age < OLD_PANEL_AGE,
    "ELECTRICAL_PANEL_OLD": lambda f: f.electrical_panel_age is not None and f.electrical_panel_age >= OLD_PANEL_AGE,
    "FOUNDATION_CONCRETE_SLAB": _foundation_is_slab,
    "SAFETY_SMOKE_CO_DETECTORS": lambda f: f.has_detectors,
    "MAJOR_APPLIANCE_FRIDGE": lambda f: True,
    "MAJOR_APPLIANCE_DISHWASHER": lambda f: True,
}


@dataclass
class RelevantAssets:
    configs: List[AssetConfigRecord] = field(default_factory=list)
    unknown_system_types: List[str] = field(default_factory=list)


def filter_relevant_assets(configs: List[AssetConfigRecord], facts: PropertyFacts) -> RelevantAssets:
    """Keep only the catalog entries for equipment the property actually has."""
    result = RelevantAssets()
    for config in configs:
        rule = RELEVANCE_RULES.get(config.system_type)
        if rule is None:
            result.unknown_system_types.append(config.system_type)
            continue
        if rule(facts):
            result.configs.append(config)

    if result.unknown_system_types:
        logger.warning(
            f"[RiskFilter] Dropping unknown system types for property {facts.id}: {result.unknown_system_types}"
        )
    logger.debug(f"[RiskFilter] Filtered from {len(configs)} to {len(result.configs)} assets for property {facts.id}")
    return result
