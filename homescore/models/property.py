from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Text,
)

from homescore.db.base import Base
from homescore.utils.timezone import utcnow


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    owner_user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(128), nullable=True)
    address = Column(String(256), nullable=True)
    zip_code = Column(String(10), nullable=True, index=True)
    property_type = Column(String(32), nullable=True)  # SINGLE_FAMILY, TOWNHOME, CONDO, MULTI_UNIT
    is_primary = Column(Boolean, nullable=False, default=False)

    year_built = Column(Integer, nullable=True)
    property_size = Column(Integer, nullable=True)  # square feet

    heating_type = Column(String(32), nullable=True)  # FURNACE, HVAC, HEAT_PUMP, RADIATOR, ...
    cooling_type = Column(String(32), nullable=True)
    water_heater_type = Column(String(32), nullable=True)  # TANK, TANKLESS
    roof_type = Column(String(32), nullable=True)  # SHINGLE, TILE, METAL, FLAT
    foundation_type = Column(String(32), nullable=True)  # SLAB, CONCRETE_SLAB, BASEMENT, CRAWLSPACE

    hvac_install_year = Column(Integer, nullable=True)
    water_heater_install_year = Column(Integer, nullable=True)
    roof_replacement_year = Column(Integer, nullable=True)
    detectors_install_year = Column(Integer, nullable=True)
    electrical_panel_age = Column(Integer, nullable=True)  # years

    has_smoke_detectors = Column(Boolean, nullable=True)
    has_co_detectors = Column(Boolean, nullable=True)
    is_detector_expired = Column(Boolean, nullable=True)
    has_drainage_issues = Column(Boolean, nullable=True)
    has_sump_pump = Column(Boolean, nullable=True)

    ownership_type = Column(String(32), nullable=True)  # OWNER_OCCUPIED, RENTED_OUT, VACATION
    occupants_count = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Warranty(Base):
    __tablename__ = "warranties"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_name = Column(String(128), nullable=True)
    cost = Column(Float, nullable=False, default=0.0)  # annual
    start_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)


class InsurancePolicy(Base):
    __tablename__ = "insurance_policies"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    carrier_name = Column(String(128), nullable=True)
    premium_amount = Column(Float, nullable=False, default=0.0)  # annual
    start_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(32), nullable=False)  # UTILITIES, REPAIRS, TAXES, ...
    amount = Column(Float, nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_expenses_property_category_date", "property_id", "category", "transaction_date"),
    )


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(32), nullable=False)  # INSURANCE_POLICY, WARRANTY, INSPECTION, RECEIPT, OTHER
    name = Column(String(256), nullable=True)

    uploaded_at = Column(DateTime, default=utcnow, nullable=False)


class MaintenanceTask(Base):
    __tablename__ = "maintenance_tasks"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    system_type = Column(String(64), nullable=True)
    priority = Column(String(16), nullable=False, default="MEDIUM")  # LOW, MEDIUM, HIGH, URGENT
    risk_level = Column(String(16), nullable=True)
    status = Column(String(16), nullable=False, default="PENDING")  # PENDING, IN_PROGRESS, COMPLETED, CANCELLED
    source = Column(String(32), nullable=False, default="USER")  # USER, RISK_ASSESSMENT
    due_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_maintenance_tasks_property_status", "property_id", "status"),
    )
