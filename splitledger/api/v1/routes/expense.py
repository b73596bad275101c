from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from splitledger.db.session import get_db
from splitledger.schemas.expense import ExpenseCreate, ExpenseOut, SplitOut, SplitsCreate, UserSplitOut
from splitledger.services.expense_services import (
    add_splits_to_expense,
    delete_expense,
    get_expense,
    get_expense_splits,
    get_user_splits,
    persist_expense_with_splits,
)

router = APIRouter()

@router.post("/", response_model=ExpenseOut)
async def add_expense(data: ExpenseCreate, db: AsyncSession = Depends(get_db)):
    return await persist_expense_with_splits(
        db,
        title=data.title,
        amount=data.amount,
        payer_id=data.paid_by,
        policy=data.split_type,
        participants=data.participants,
        group_id=data.group_id,
        description=data.description,
        paid_at=data.paid_at
    )

@router.get("/user/{user_id}/splits", response_model=List[UserSplitOut])
async def splits_of_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await get_user_splits(db, user_id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(expense_id: int, db: AsyncSession = Depends(get_db)):
    return await get_expense(db, expense_id)

@router.get("/{expense_id}/splits", response_model=List[SplitOut])
async def fetch_splits(expense_id: int, db: AsyncSession = Depends(get_db)):
    return await get_expense_splits(db, expense_id)

@router.post("/{expense_id}/splits", response_model=ExpenseOut)
async def add_splits(expense_id: int, data: SplitsCreate, db: AsyncSession = Depends(get_db)):
    return await add_splits_to_expense(db, expense_id, data.split_type, data.participants)

@router.delete("/{expense_id}")
async def del_expense(expense_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_expense(db, expense_id)
