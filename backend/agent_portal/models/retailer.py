from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agent_portal.core.database import Base
from agent_portal.models.profile import new_id
import enum


class RetailerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    BLOCKED = "blocked"


class TerminalStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Retailer(Base):
    __tablename__ = "retailers"

    id = Column(String(36), primary_key=True, default=new_id)

    # Owning agent (null until assigned)
    agent_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)

    name = Column(String, nullable=False)
    status = Column(String, default="active", nullable=False)  # never hard-deleted, status only
    location = Column(String, nullable=True)

    # Balances
    balance = Column(Numeric(12, 2), default=0, nullable=False)
    commission_balance = Column(Numeric(12, 2), default=0, nullable=False)  # owed to the retailer

    # Contact
    contact_name = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_number = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    agent = relationship("Profile", back_populates="retailers")
    terminals = relationship("Terminal", back_populates="retailer")


class Terminal(Base):
    __tablename__ = "terminals"

    id = Column(String(36), primary_key=True, default=new_id)
    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    status = Column(String, default="active", nullable=False)
    last_active = Column(DateTime(timezone=True), nullable=True)

    retailer = relationship("Retailer", back_populates="terminals")
    sales = relationship("Sale", back_populates="terminal")
