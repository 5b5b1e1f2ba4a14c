"""
Leave schemas
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from app.models.leave import LeaveStatus, ApprovalStatus
from app.utils.datetime_utils import iso_local


class LeaveCreateRequest(BaseModel):
    """Schema for creating a leave request"""
    type_id: int = Field(..., description="Entitlement (leave type) ID")
    doa_id: Optional[int] = Field(None, description="Delegate of authority while on leave")
    reason: Optional[str] = Field(None, description="Reason for leave")
    start_date: date = Field(..., description="First day of leave")
    end_date: date = Field(..., description="Last day of leave")
    uploads: List[int] = Field(default_factory=list, description="IDs of supporting uploads")


class ApproveActionRequest(BaseModel):
    """Schema for approving a step"""
    note: Optional[str] = Field(None, description="Optional note for approval")


class RejectActionRequest(BaseModel):
    """Schema for rejecting a step"""
    note: str = Field(..., min_length=1, description="Reason for rejection")


class ApproverUserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ApprovalOut(BaseModel):
    """One phase of an approval chain"""
    id: int
    leave_request_id: int
    phase: int
    approver_id: int
    approver: Optional[ApproverUserOut] = None
    status: ApprovalStatus
    note: Optional[str] = None
    action_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("action_date", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class LeaveTypeRef(BaseModel):
    id: int
    name: str
    unit: str

    model_config = ConfigDict(from_attributes=True)


class UploadOut(BaseModel):
    id: int
    file_name: str
    url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveOut(BaseModel):
    """Schema for leave request output"""
    id: int
    user_id: int
    type_id: int
    type: Optional[LeaveTypeRef] = None
    doa_id: Optional[int] = None
    start_date: date
    end_date: date
    duration: int
    reason: Optional[str] = None
    status: LeaveStatus
    current_approval_id: Optional[int] = None
    uploads: List[UploadOut] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class LeaveCreatedResponse(BaseModel):
    message: str = "Leave Request Created"
    request: LeaveOut
    current_approval: ApprovalOut


class ApprovalResultResponse(BaseModel):
    """Outcome of an approval action"""
    approval: Optional[ApprovalOut] = Field(None, description="Next active step, None when final")
    is_final: bool
    message: str


class LeaveTypeOut(BaseModel):
    """A leave type available to the caller's level"""
    entitlement_id: int
    name: str
    value: int
    unit: str


class LeaveBalanceOut(BaseModel):
    type_id: int
    leave_type: str
    entitlement: int
    used_leave_days: int
    pending_leave_days: int
    rejected_leave_days: int
    balance: int
    unit: str
