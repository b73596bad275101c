from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from splitledger.api.dependencies import get_path_user
from splitledger.db.session import get_db
from splitledger.schemas.settlement import BalanceSummary, SettleRequest, SettleResult, SettlementDetail, UserSettlement
from splitledger.services.settlement_services import balance_summary, settle, settlement_between, settlements_for_user

router = APIRouter()

@router.get("/{user_id}", response_model=List[UserSettlement])
async def user_settlements(
    user = Depends(get_path_user),
    db: AsyncSession = Depends(get_db)
):
    return await settlements_for_user(db, user.id)

@router.get("/{user_id}/summary", response_model=BalanceSummary)
async def user_summary(user_id: int, db: AsyncSession = Depends(get_db)):
    return await balance_summary(db, user_id)

@router.get("/{user_id}/with/{other_user_id}", response_model=SettlementDetail)
async def settlement_with(
    user_id: int,
    other_user_id: int,
    db: AsyncSession = Depends(get_db)
):
    return await settlement_between(db, user_id, other_user_id)

@router.post("/{user_id}/settle/{other_user_id}", response_model=SettleResult)
async def settle_with(
    user_id: int,
    other_user_id: int,
    data: SettleRequest,
    db: AsyncSession = Depends(get_db)
):
    return await settle(db, user_id, other_user_id, data.amount)
