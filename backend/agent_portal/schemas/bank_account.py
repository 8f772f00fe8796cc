from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class BankAccountIn(BaseModel):
    bank_name: str = Field(..., min_length=1)
    account_holder: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=4, max_length=34)
    branch_code: Optional[str] = None
    account_type: Optional[str] = None


class BankAccountOut(BankAccountIn):
    id: str
    profile_id: str
    is_primary: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
