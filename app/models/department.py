"""
Department model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, text
from sqlalchemy.orm import relationship
from app.db.base import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    # One head at a time; departments <-> users is a circular reference
    head_id = Column(
        Integer,
        ForeignKey("users.id", use_alter=True, name="fk_departments_head_id"),
        nullable=True,
        index=True,
    )
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    head = relationship("User", foreign_keys=[head_id], post_update=True)
    members = relationship("User", foreign_keys="User.department_id", back_populates="department")
    approvers = relationship("Approver", back_populates="department")
