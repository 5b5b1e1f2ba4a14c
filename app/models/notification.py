"""
In-app notification model
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=True, index=True)
    type = Column(String, nullable=False)  # LEAVE_REQUESTED, LEAVE_APPROVED, LEAVE_REJECTED
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    # Set explicitly; SQLite server defaults lose sub-second ordering
    created_at = Column(DateTime(timezone=True), nullable=False)

    recipient = relationship("User", foreign_keys=[recipient_id])
    actor = relationship("User", foreign_keys=[actor_id])
