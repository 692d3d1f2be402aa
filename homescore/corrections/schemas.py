from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CorrectionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    APPLIED = "APPLIED"
    REJECTED = "REJECTED"


class CorrectionCreate(BaseModel):
    field_key: str = Field(..., max_length=64)
    detail: str
    title: Optional[str] = Field(None, max_length=256)
    proposed_value: Optional[str] = None


class CorrectionTransition(BaseModel):
    status: CorrectionStatus
    note: Optional[str] = None


class CorrectionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    field_key: str
    title: str
    detail: str
    current_value: Optional[Any] = None
    proposed_value: Optional[str] = None
    status: CorrectionStatus
    submitted_by: int
    submitted_at: datetime
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None


class CorrectionEventRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    correction_id: int
    property_id: int
    field_key: str
    status: CorrectionStatus
    actor_user_id: Optional[int] = None
    note: Optional[str] = None
    created_at: datetime
