from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text

from homescore.db.base import Base
from homescore.db.types import JSONType
from homescore.utils.timezone import utcnow


class Correction(Base):
    __tablename__ = "home_score_corrections"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    field_key = Column(String(64), nullable=False)
    title = Column(String(256), nullable=False)
    detail = Column(Text, nullable=False)
    current_value = Column(JSONType, nullable=True)  # value at submission time
    proposed_value = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="SUBMITTED")  # SUBMITTED, APPLIED, REJECTED
    submitted_by = Column(Integer, nullable=False)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)
    resolved_by = Column(Integer, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolution_note = Column(Text, nullable=True)


class CorrectionEvent(Base):
    __tablename__ = "home_score_correction_events"

    id = Column(Integer, primary_key=True, index=True)
    correction_id = Column(Integer, ForeignKey("home_score_corrections.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, nullable=False, index=True)
    field_key = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False)
    actor_user_id = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
