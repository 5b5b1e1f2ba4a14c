"""
Leave request and approval chain models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Text,
    Enum as SQLEnum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from app.db.base import Base


class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type_id = Column(Integer, ForeignKey("entitlements.id"), nullable=False, index=True)
    doa_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # delegate of authority while away
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    duration = Column(Integer, nullable=False)  # business days
    reason = Column(Text, nullable=True)
    status = Column(SQLEnum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING, server_default=text("'PENDING'"))
    # Active step; NULL once the request is terminal
    current_approval_id = Column(
        Integer,
        ForeignKey("approvals.id", use_alter=True, name="fk_leave_requests_current_approval_id"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="leave_requests")
    doa = relationship("User", foreign_keys=[doa_id])
    type = relationship("Entitlement")
    approvals = relationship(
        "Approval",
        foreign_keys="Approval.leave_request_id",
        back_populates="leave_request",
        order_by="Approval.phase",
    )
    current_approval = relationship("Approval", foreign_keys=[current_approval_id], post_update=True)
    uploads = relationship("Upload", back_populates="leave_request")

    __table_args__ = (
        Index("ix_leave_requests_user_type_dates", "user_id", "type_id", "start_date"),
        CheckConstraint("start_date <= end_date", name="check_start_date_le_end_date"),
    )


class Approval(Base):
    """One phase of a leave request's approval chain."""
    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=False, index=True)
    phase = Column(Integer, nullable=False)  # 1-based
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING, server_default=text("'PENDING'"))
    note = Column(Text, nullable=True)
    action_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)

    leave_request = relationship("LeaveRequest", foreign_keys=[leave_request_id], back_populates="approvals")
    approver = relationship("User", foreign_keys=[approver_id])

    __table_args__ = (
        UniqueConstraint("leave_request_id", "phase", name="uq_approvals_request_phase"),
    )
