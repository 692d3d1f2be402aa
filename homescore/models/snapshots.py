from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Index, UniqueConstraint

from homescore.db.base import Base
from homescore.db.types import JSONType
from homescore.utils.timezone import utcnow


class ScoreSnapshot(Base):
    __tablename__ = "score_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    score_type = Column(String(16), nullable=False)  # HEALTH, RISK, FINANCIAL
    week_start = Column(Date, nullable=False)  # ISO week Monday
    score = Column(Float, nullable=False)
    score_max = Column(Float, nullable=False, default=100.0)
    score_band = Column(String(24), nullable=True)
    detail = Column(JSONType, nullable=True)
    schema_version = Column(Integer, nullable=False, default=1)
    computed_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("property_id", "score_type", "week_start", name="uq_score_snapshot_property_type_week"),
        Index("idx_score_snapshot_property_type", "property_id", "score_type"),
    )
