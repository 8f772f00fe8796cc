from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agent_portal.core.database import Base
from agent_portal.models.profile import new_id


class VoucherType(Base):
    __tablename__ = "voucher_types"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)


class Sale(Base):
    """One voucher sale. Rows are never updated after insert."""
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=new_id)

    # Ownership chain: sale -> terminal -> retailer -> agent
    terminal_id = Column(String(36), ForeignKey("terminals.id"), nullable=False, index=True)
    voucher_type_id = Column(String(36), ForeignKey("voucher_types.id"), nullable=True)

    sale_amount = Column(Numeric(12, 2), nullable=False)
    agent_commission = Column(Numeric(12, 2), nullable=False, default=0)  # agent's cut, rate applied upstream

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    terminal = relationship("Terminal", back_populates="sales")
    voucher_type = relationship("VoucherType")
