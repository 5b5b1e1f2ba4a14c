"""
Approver capability model
"""
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from app.db.base import Base


class ApproverRole(str, enum.Enum):
    DEPT_MANAGER = "DEPT_MANAGER"
    LEAVE_MANAGER = "LEAVE_MANAGER"
    HR = "HR"


class Approver(Base):
    """
    Grants a user the right to approve requests.

    department_id = NULL makes the grant global (may approve anyone).
    Records are never deleted, only deactivated.
    """
    __tablename__ = "approvers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(SQLEnum(ApproverRole), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    user = relationship("User", back_populates="approver_records")
    department = relationship("Department", back_populates="approvers")

    @property
    def is_global(self) -> bool:
        return self.department_id is None
