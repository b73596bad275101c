from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from splitledger.core.splits import SplitType

class SplitParticipant(BaseModel):
    user_id: int
    amount: Optional[Decimal] = None
    percentage: Optional[Decimal] = None

class ExpenseCreate(BaseModel):
    title: str = Field(min_length=1)
    amount: Decimal
    paid_by: int
    group_id: Optional[int] = None
    description: Optional[str] = None
    paid_at: Optional[datetime] = None
    split_type: SplitType = SplitType.EQUAL
    participants: List[SplitParticipant]

class SplitsCreate(BaseModel):
    split_type: SplitType = SplitType.EQUAL
    participants: List[SplitParticipant]

class SplitOut(BaseModel):
    expense_id: int
    user_id: int
    amount: Decimal
    split_type: SplitType
    percentage: Optional[Decimal] = None
    is_paid: bool

    class Config:
        from_attributes = True

class ExpenseOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    amount: Decimal
    paid_by: int
    group_id: Optional[int] = None
    paid_at: datetime
    splits: List[SplitOut] = []

    class Config:
        from_attributes = True

class UserSplitOut(BaseModel):
    expense_id: int
    expense_title: str
    expense_amount: Decimal
    paid_by: int
    payer_name: str
    paid_at: datetime
    amount: Decimal
    split_type: SplitType
    percentage: Optional[Decimal] = None
    is_paid: bool
