from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class RetailerBase(BaseModel):
    id: str
    name: str
    status: str
    balance: Decimal = Decimal("0")
    commission_balance: Decimal = Decimal("0")
    location: Optional[str] = None

    class Config:
        from_attributes = True


class RetailerRosterEntry(RetailerBase):
    """A retailer on the agent's roster with all-time sales totals."""
    sales_count: int = 0
    total_sales: Decimal = Decimal("0")
    commission_earned: Decimal = Decimal("0")
    # False when totals could not be read and zeros were substituted
    aggregates_available: bool = True


class TerminalOut(BaseModel):
    id: str
    name: str
    status: str
    last_active: Optional[datetime] = None
    retailer_id: str

    class Config:
        from_attributes = True


class RetailerDetail(RetailerBase):
    contact_name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    created_at: Optional[datetime] = None
    agent_profile_id: str
    terminals: List[TerminalOut] = []


class RetailerSalesSummary(BaseModel):
    today_count: int = 0
    today_value: Decimal = Decimal("0")
    mtd_count: int = 0
    mtd_value: Decimal = Decimal("0")
    total_count: int = 0
    total_value: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")


class RetailerSale(BaseModel):
    id: str
    created_at: datetime
    sale_amount: Decimal
    agent_commission: Decimal
    voucher_type: str = "N/A"
    terminal_name: Optional[str] = None
