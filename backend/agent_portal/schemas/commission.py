from pydantic import BaseModel, computed_field, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal


class AgentSummary(BaseModel):
    retailer_count: int
    total_commission: Decimal
    paid_commission: Decimal

    @computed_field
    @property
    def pending_commission(self) -> Decimal:
        return self.total_commission - self.paid_commission


class StatementStats(BaseModel):
    total_commission: Decimal
    paid_commission: Decimal
    pending_commission: Decimal
    transaction_count: int

    @classmethod
    def from_totals(cls, total_commission: Decimal, paid_commission: Decimal,
                    transaction_count: int) -> "StatementStats":
        return cls(
            total_commission=total_commission,
            paid_commission=paid_commission,
            pending_commission=total_commission - paid_commission,
            transaction_count=transaction_count,
        )

    @model_validator(mode="after")
    def check_pending_reconciles(self):
        if self.pending_commission != self.total_commission - self.paid_commission:
            raise ValueError("pending_commission must equal total_commission - paid_commission")
        return self


class StatementLine(BaseModel):
    date: datetime
    retailer_name: Optional[str] = None
    type: str
    value: Decimal
    commission: Decimal
    status: str  # "Pending" or "Paid"


class CommissionStatement(BaseModel):
    start_date: date
    end_date: date
    stats: StatementStats
    pending_transactions: List[StatementLine] = []
    paid_transactions: List[StatementLine] = []


class AgentStatementEntry(BaseModel):
    id: str
    created_at: datetime
    type: str
    amount: Decimal
    balance_after: Optional[Decimal] = None
    retailer_name: Optional[str] = None
    notes: Optional[str] = None
