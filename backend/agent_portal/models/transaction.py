from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agent_portal.core.database import Base
from agent_portal.models.profile import new_id
import enum


class TransactionType(str, enum.Enum):
    COMMISSION_CREDIT = "commission_credit"
    COMMISSION_PAYOUT = "commission_payout"
    ADJUSTMENT = "adjustment"


class Transaction(Base):
    """Agent statement entry. commission_payout rows are money already paid out."""
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)

    agent_profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    retailer_id = Column(String(36), ForeignKey("retailers.id"), nullable=True)

    type = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    agent = relationship("Profile", back_populates="transactions")
    retailer = relationship("Retailer")
