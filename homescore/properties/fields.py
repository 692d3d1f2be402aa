"""Registry of the profile fields that drive completeness, verification and corrections."""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class ProfileField:
    key: str
    label: str
    group: str  # BASICS, SYSTEMS, SAFETY, OCCUPANCY
    risk_relevant: bool = False
    # Document types that count as evidence for the stated value.
    evidence: Tuple[str, ...] = ()


PROFILE_FIELDS: List[ProfileField] = [
    ProfileField("year_built", "Year built", "BASICS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("property_size", "Property size", "BASICS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("property_type", "Property type", "BASICS"),
    ProfileField("zip_code", "ZIP code", "BASICS"),
    ProfileField("heating_type", "Heating type", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("water_heater_type", "Water heater type", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("roof_type", "Roof type", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("foundation_type", "Foundation type", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("hvac_install_year", "HVAC install year", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION", "RECEIPT", "WARRANTY")),
    ProfileField("water_heater_install_year", "Water heater install year", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION", "RECEIPT", "WARRANTY")),
    ProfileField("roof_replacement_year", "Roof replacement year", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION", "RECEIPT")),
    ProfileField("electrical_panel_age", "Electrical panel age", "SYSTEMS", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("has_smoke_detectors", "Smoke detectors", "SAFETY", risk_relevant=True),
    ProfileField("has_co_detectors", "CO detectors", "SAFETY", risk_relevant=True),
    ProfileField("detectors_install_year", "Detector install year", "SAFETY", evidence=("RECEIPT",)),
    ProfileField("is_detector_expired", "Detector expiry", "SAFETY"),
    ProfileField("has_drainage_issues", "Drainage issues", "SAFETY", risk_relevant=True, evidence=("INSPECTION",)),
    ProfileField("has_sump_pump", "Sump pump", "SAFETY"),
    ProfileField("ownership_type", "Ownership", "OCCUPANCY"),
    ProfileField("occupants_count", "Occupants", "OCCUPANCY"),
]

FIELDS_BY_KEY: Dict[str, ProfileField] = {f.key: f for f in PROFILE_FIELDS}

RISK_FIELDS: List[ProfileField] = [f for f in PROFILE_FIELDS if f.risk_relevant]

# Field key for corrections that do not target a single profile field.
GENERAL_FIELD_KEY = "general"


def is_known_field(key: str) -> bool:
    return key == GENERAL_FIELD_KEY or key in FIELDS_BY_KEY


def field_label(key: str) -> str:
    if key == GENERAL_FIELD_KEY:
        return "General"
    field = FIELDS_BY_KEY.get(key)
    return field.label if field else key
