from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey

from homescore.db.base import Base
from homescore.db.types import JSONType
from homescore.utils.timezone import utcnow


class RiskReport(Base):
    __tablename__ = "risk_reports"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, unique=True)
    status = Column(String(16), nullable=False)  # CALCULATED, MISSING_DATA, FAILED
    risk_score = Column(Integer, nullable=False, default=0)
    financial_exposure_total = Column(Float, nullable=False, default=0.0)
    details = Column(JSONType, nullable=False)  # list of AssetRiskDetail payloads
    details_schema_version = Column(Integer, nullable=False, default=1)
    last_calculated_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class FinancialReport(Base):
    __tablename__ = "financial_reports"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, unique=True)
    status = Column(String(16), nullable=False)  # CALCULATED, MISSING_DATA, NO_BENCHMARK
    financial_efficiency_score = Column(Float, nullable=True)
    actual_insurance_cost = Column(Float, nullable=False, default=0.0)
    actual_utility_cost = Column(Float, nullable=False, default=0.0)
    actual_warranty_cost = Column(Float, nullable=False, default=0.0)
    market_average_total = Column(Float, nullable=False, default=0.0)
    benchmark_source = Column(String(16), nullable=False, default="NONE")  # ZIP, TYPE_DEFAULT, NONE
    last_calculated_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
