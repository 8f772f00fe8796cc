import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agent_portal.core.database import Base
import enum


def new_id() -> str:
    return str(uuid.uuid4())


class ProfileRole(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"
    RETAILER = "retailer"


class Profile(Base):
    """A portal user; agents are profiles with role "agent"."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    role = Column(String, default="agent", nullable=False, index=True)
    full_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    business_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    retailers = relationship("Retailer", back_populates="agent")
    transactions = relationship("Transaction", back_populates="agent")
    bank_accounts = relationship("BankAccount", back_populates="profile", cascade="all, delete-orphan")
