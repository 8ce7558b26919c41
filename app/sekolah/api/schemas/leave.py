from pydantic import BaseModel, Field, ConfigDict, model_validator
from uuid import UUID
from datetime import date, datetime
from typing import List, Optional

from ...models.db_models import LeaveStatus, LeaveType


class LeaveCreateRequest(BaseModel):
    """Request model for submitting a leave request."""
    request_type: LeaveType = Field(..., description="'izin' (permission) or 'sakit' (sick).")
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=3, description="Why the teacher will be absent.")

    @model_validator(mode='after')
    def check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LeaveRejectRequest(BaseModel):
    rejection_reason: Optional[str] = Field(None, description="Shown to the teacher with the decision.")


class LeaveResponse(BaseModel):
    """Response model for a leave request."""
    id: UUID
    teacher_id: UUID
    request_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReconcileResponse(BaseModel):
    leave_id: UUID
    dates_written: List[date]


class CanTeachResponse(BaseModel):
    teacher_id: UUID
    date: date
    can_teach: bool
