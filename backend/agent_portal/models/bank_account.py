from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agent_portal.core.database import Base
from agent_portal.models.profile import new_id


class BankAccount(Base):
    """Payout bank details. At most one primary account per profile."""
    __tablename__ = "bank_accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    bank_name = Column(String, nullable=False)
    account_holder = Column(String, nullable=False)
    account_number = Column(String, nullable=False)
    branch_code = Column(String, nullable=True)
    account_type = Column(String, nullable=True)  # cheque, savings, ...

    is_primary = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile", back_populates="bank_accounts")

    __table_args__ = (
        Index(
            "uq_bank_accounts_primary_per_profile",
            "profile_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )
