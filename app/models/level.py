"""
Level and entitlement models
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from app.db.base import Base


class EntitlementType(str, enum.Enum):
    LEAVE = "LEAVE"
    CLAIMS = "CLAIMS"


class Level(Base):
    __tablename__ = "levels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)

    users = relationship("User", back_populates="level")
    entitlements = relationship("LevelEntitlement", back_populates="level", cascade="all, delete-orphan")


class Entitlement(Base):
    __tablename__ = "entitlements"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # e.g. "Annual Leave"
    unit = Column(String, nullable=False, default="days")
    type = Column(SQLEnum(EntitlementType), nullable=False, default=EntitlementType.LEAVE)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)

    levels = relationship("LevelEntitlement", back_populates="entitlement")


class LevelEntitlement(Base):
    """Allowance of one entitlement for one level (e.g. Annual Leave = 20 days)."""
    __tablename__ = "level_entitlements"

    id = Column(Integer, primary_key=True, index=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=False, index=True)
    entitlement_id = Column(Integer, ForeignKey("entitlements.id"), nullable=False, index=True)
    value = Column(Integer, nullable=False)

    level = relationship("Level", back_populates="entitlements")
    entitlement = relationship("Entitlement", back_populates="levels")

    __table_args__ = (
        UniqueConstraint("level_id", "entitlement_id", name="uq_level_entitlements_level_entitlement"),
    )
