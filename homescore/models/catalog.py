from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint

from homescore.db.base import Base
from homescore.db.types import JSONType
from homescore.utils.timezone import utcnow


class AssetConfig(Base):
    __tablename__ = "asset_configs"

    id = Column(Integer, primary_key=True, index=True)
    system_type = Column(String(64), nullable=False, unique=True)  # e.g. HVAC_FURNACE
    category = Column(String(32), nullable=False)  # STRUCTURE, SYSTEMS, SAFETY, FINANCIAL_GAP
    expected_life = Column(Integer, nullable=False)  # years
    replacement_cost = Column(Float, nullable=False)
    warning_flags = Column(JSONType, nullable=True)  # {"hasDrainageIssues": 0.1}
    config_version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class FinancialBenchmark(Base):
    __tablename__ = "financial_benchmarks"

    id = Column(Integer, primary_key=True, index=True)
    zip_code = Column(String(10), nullable=True, index=True)  # NULL is the type-only default
    property_type = Column(String(32), nullable=False)
    avg_insurance_premium = Column(Float, nullable=False, default=0.0)
    avg_utility_cost = Column(Float, nullable=False, default=0.0)
    avg_warranty_cost = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("zip_code", "property_type", name="uq_financial_benchmark_zip_type"),
    )
