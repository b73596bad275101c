from decimal import Decimal
from pydantic import BaseModel
from typing import List
from splitledger.schemas.settlement import UserRef

class GroupMemberBalance(BaseModel):
    user_id: int
    name: str
    email: str
    net_balance: Decimal

class GroupTransfer(BaseModel):
    from_user_id: int
    from_user_name: str
    to_user_id: int
    to_user_name: str
    amount: Decimal

class GroupSettlement(BaseModel):
    group_id: int
    group_name: str
    members: List[GroupMemberBalance]
    optimized_transactions: List[GroupTransfer]
    total_debt: Decimal

class MemberDebt(BaseModel):
    member: UserRef
    total_owed: Decimal
    total_owes: Decimal
    net_balance: Decimal

class GroupMemberDebts(BaseModel):
    group_id: int
    group_name: str
    member_debts: List[MemberDebt]

class TransferIn(BaseModel):
    from_user_id: int
    to_user_id: int
    amount: Decimal

class GroupSettleRequest(BaseModel):
    transactions: List[TransferIn]

class GroupSettleResult(BaseModel):
    settled_amount: Decimal
    settled_splits_count: int
    transactions: int
