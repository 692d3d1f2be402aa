import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from homescore.models import AssetConfig
from .schemas import AssetConfigRecord

logger = logging.getLogger(__name__)


DEFAULT_ASSET_CATALOG: List[Dict[str, Any]] = [
    {"system_type": "HVAC_FURNACE", "category": "SYSTEMS", "expected_life": 15, "replacement_cost": 8500},
    {"system_type": "HVAC_HEAT_PUMP", "category": "SYSTEMS", "expected_life": 12, "replacement_cost": 10000},
    {"system_type": "WATER_HEATER_TANK", "category": "SYSTEMS", "expected_life": 10, "replacement_cost": 1500},
    {"system_type": "WATER_HEATER_TANKLESS", "category": "SYSTEMS", "expected_life": 20, "replacement_cost": 4000},
    {"system_type": "ELECTRICAL_PANEL_MODERN", "category": "SYSTEMS", "expected_life": 40, "replacement_cost": 3500},
    {
        "system_type": "ELECTRICAL_PANEL_OLD",
        "category": "SYSTEMS",
        "expected_life": 30,
        "replacement_cost": 3000,
        "warning_flags": {"electrical_panel_age_over_40": 0.2},
    },
    {
        "system_type": "ROOF_SHINGLE",
        "category": "STRUCTURE",
        "expected_life": 20,
        "replacement_cost": 18000,
        "warning_flags": {"has_drainage_issues": 0.1},
    },
    {"system_type": "ROOF_TILE_METAL", "category": "STRUCTURE", "expected_life": 50, "replacement_cost": 30000},
    {
        "system_type": "FOUNDATION_CONCRETE_SLAB",
        "category": "STRUCTURE",
        "expected_life": 100,
        "replacement_cost": 50000,
        "warning_flags": {"has_drainage_issues": 0.3},
    },
    {"system_type": "MAJOR_APPLIANCE_FRIDGE", "category": "SYSTEMS", "expected_life": 12, "replacement_cost": 2000},
    {"system_type": "MAJOR_APPLIANCE_DISHWASHER", "category": "SYSTEMS", "expected_life": 10, "replacement_cost": 800},
    {
        "system_type": "SAFETY_SMOKE_CO_DETECTORS",
        "category": "SAFETY",
        "expected_life": 10,
        "replacement_cost": 300,
        "warning_flags": {"is_detector_expired": 0.8},
    },
]


class AssetCatalogRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_configs(self) -> List[AssetConfigRecord]:
        rows = self.db.query(AssetConfig).order_by(AssetConfig.id.asc()).all()
        return [AssetConfigRecord.model_validate(r) for r in rows]

    def upsert(self, entry: Dict[str, Any]) -> AssetConfig:
        row = self.db.query(AssetConfig).filter(AssetConfig.system_type == entry["system_type"]).first()
        if row is None:
            row = AssetConfig(system_type=entry["system_type"])
            self.db.add(row)
        elif (
            row.expected_life != entry["expected_life"]
            or row.replacement_cost != entry["replacement_cost"]
            or (row.warning_flags or None) != entry.get("warning_flags")
        ):
            row.config_version = (row.config_version or 1) + 1
        row.category = entry["category"]
        row.expected_life = entry["expected_life"]
        row.replacement_cost = entry["replacement_cost"]
        row.warning_flags = entry.get("warning_flags")
        return row


def seed_asset_catalog(db: Session, entries: List[Dict[str, Any]] = None) -> int:
    """Insert or update the asset catalog. Returns the number of entries written."""
    entries = entries if entries is not None else DEFAULT_ASSET_CATALOG
    repo = AssetCatalogRepository(db)
    for entry in entries:
        repo.upsert(entry)
    db.commit()
    logger.info(f"[AssetCatalog] Seeded {len(entries)} asset configs")
    return len(entries)
