"""
User model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class Role(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"
    HR = "HR"
    DEPT_MANAGER = "DEPT_MANAGER"
    LEAVE_MANAGER = "LEAVE_MANAGER"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    work_email = Column(String, nullable=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    # Base role set; approver-derived roles are computed at authorization time
    user_roles = Column(JSON, nullable=False, default=lambda: [Role.EMPLOYEE.value])
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    # Relationships
    department = relationship("Department", foreign_keys=[department_id], back_populates="members")
    level = relationship("Level", back_populates="users")
    approver_records = relationship("Approver", back_populates="user")
    leave_requests = relationship("LeaveRequest", foreign_keys="LeaveRequest.user_id", back_populates="user")

    @property
    def roles(self) -> set:
        return set(self.user_roles or [])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def contact_email(self) -> str:
        return self.work_email or self.email
