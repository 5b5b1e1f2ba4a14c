"""
Approver schemas
"""
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from app.models.approver import ApproverRole
from app.schemas.leave import ApproverUserOut


class ApproverCreate(BaseModel):
    user_id: int = Field(..., description="User receiving the grant")
    department_id: Optional[int] = Field(None, description="Department scope; omit for a global approver")
    role: ApproverRole = Field(..., description="Approver role")


class ApproverOut(BaseModel):
    id: int
    user_id: int
    user: Optional[ApproverUserOut] = None
    role: ApproverRole
    department_id: Optional[int] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
