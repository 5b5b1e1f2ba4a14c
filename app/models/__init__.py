"""
Database models
"""
from app.models.department import Department
from app.models.user import User, Role
from app.models.level import Level, Entitlement, LevelEntitlement, EntitlementType
from app.models.approver import Approver, ApproverRole
from app.models.leave import LeaveRequest, Approval, LeaveStatus, ApprovalStatus
from app.models.upload import Upload
from app.models.notification import Notification
from app.models.audit_log import AuditLog

__all__ = [
    "Department",
    "User",
    "Role",
    "Level",
    "Entitlement",
    "LevelEntitlement",
    "EntitlementType",
    "Approver",
    "ApproverRole",
    "LeaveRequest",
    "Approval",
    "LeaveStatus",
    "ApprovalStatus",
    "Upload",
    "Notification",
    "AuditLog",
]
