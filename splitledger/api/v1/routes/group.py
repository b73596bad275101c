from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.schemas.group import GroupMemberDebts, GroupSettleRequest, GroupSettleResult, GroupSettlement
from splitledger.services.group_services import execute_group_settlement, group_member_debts, group_settlements

router = APIRouter()

@router.get("/{group_id}/settlements", response_model=GroupSettlement)
async def optimized_settlements(group_id: int, db: AsyncSession = Depends(get_db)):
    return await group_settlements(db, group_id)

@router.get("/{group_id}/debts", response_model=GroupMemberDebts)
async def member_debts(group_id: int, db: AsyncSession = Depends(get_db)):
    return await group_member_debts(db, group_id)

@router.post("/{group_id}/settle", response_model=GroupSettleResult)
async def settle_group(group_id: int, data: GroupSettleRequest, db: AsyncSession = Depends(get_db)):
    return await execute_group_settlement(db, group_id, data.transactions)
