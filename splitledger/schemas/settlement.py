from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional
from splitledger.core.splits import SplitType

class UserRef(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class UserSettlement(BaseModel):
    counterparty_id: int
    counterparty_name: str
    counterparty_email: str
    owed_to_you: Decimal
    owed_by_you: Decimal
    net_amount: Decimal

class SettlementSplit(BaseModel):
    expense_id: int
    expense_title: str
    amount: Decimal
    split_type: SplitType
    percentage: Optional[Decimal] = None
    paid_by: int
    owed_by: int

class SettlementDetail(BaseModel):
    user1: UserRef
    user2: UserRef
    user1_owes_user2: Decimal
    user2_owes_user1: Decimal
    net_amount: Decimal
    splits: List[SettlementSplit]

class BalanceSummary(BaseModel):
    user_id: int
    owes: Decimal
    owed: Decimal
    net_balance: Decimal

class SettleRequest(BaseModel):
    amount: Optional[Decimal] = None

class SettleResult(BaseModel):
    settled_amount: Decimal
    settled_splits_count: int
