from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

# Names a catalog warning flag may refer to.
WARNING_FLAGS = frozenset({
    "has_smoke_detectors",
    "has_co_detectors",
    "has_detectors",
    "is_detector_expired",
    "has_drainage_issues",
    "has_sump_pump",
    "electrical_panel_age_over_40",
})


class PropertyFacts(BaseModel):
    """Read model of the user-stated attributes of a home."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_user_id: int
    name: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: Optional[str] = None
    is_primary: bool = False

    year_built: Optional[int] = None
    property_size: Optional[int] = None

    heating_type: Optional[str] = None
    cooling_type: Optional[str] = None
    water_heater_type: Optional[str] = None
    roof_type: Optional[str] = None
    foundation_type: Optional[str] = None

    hvac_install_year: Optional[int] = None
    water_heater_install_year: Optional[int] = None
    roof_replacement_year: Optional[int] = None
    detectors_install_year: Optional[int] = None
    electrical_panel_age: Optional[int] = None

    has_smoke_detectors: Optional[bool] = None
    has_co_detectors: Optional[bool] = None
    is_detector_expired: Optional[bool] = None
    has_drainage_issues: Optional[bool] = None
    has_sump_pump: Optional[bool] = None

    ownership_type: Optional[str] = None
    occupants_count: Optional[int] = None

    @property
    def electrical_panel_age_over_40(self) -> bool:
        return self.electrical_panel_age is not None and self.electrical_panel_age > 40

    @property
    def has_detectors(self) -> bool:
        return bool(self.has_smoke_detectors or self.has_co_detectors)

    def flag(self, name: str) -> bool:
        """Resolve a named boolean warning flag; names outside WARNING_FLAGS read as False."""
        if name not in WARNING_FLAGS:
            return False
        return getattr(self, name) is True

    def value_of(self, key: str) -> Any:
        return getattr(self, key, None)


class WarrantyRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_name: Optional[str] = None
    cost: float = 0.0
    expiry_date: Optional[date] = None

    def is_active(self, today: date) -> bool:
        return self.expiry_date is not None and self.expiry_date >= today


class InsurancePolicyRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    carrier_name: Optional[str] = None
    premium_amount: float = 0.0
    expiry_date: Optional[date] = None

    def is_active(self, today: date) -> bool:
        return self.expiry_date is None or self.expiry_date >= today


class ExpenseRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    amount: float
    transaction_date: date


class MaintenanceTaskRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    system_type: Optional[str] = None
    priority: str
    risk_level: Optional[str] = None
    status: str
    source: str
    due_date: Optional[date] = None
