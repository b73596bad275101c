import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from splitledger.core.exceptions import NotFoundError, ValidationError
from splitledger.core.money import to_money
from splitledger.core.splits import SplitType, ComputedSplit, compute_splits
from splitledger.db.session import transaction
from splitledger.models.expense import Expense
from splitledger.models.expense_split import ExpenseSplit
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
from splitledger.models.user import User
from splitledger.services.user_service import require_user, require_users

logger = logging.getLogger(__name__)

async def _check_group_membership(db: AsyncSession, group_id: int, user_ids: Sequence[int]):
    res = await db.execute(select(Group.id).where(Group.id == group_id))
    if res.scalar_one_or_none() is None:
        raise NotFoundError(f"Group {group_id} not found")

    q = select(GroupMember.user_id).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id.in_(set(user_ids))
    )
    res = await db.execute(q)
    members = set(res.scalars().all())

    outsiders = sorted(set(user_ids) - members)
    if outsiders:
        raise ValidationError(
            f"Users {', '.join(str(u) for u in outsiders)} are not members of group {group_id}"
        )

def _split_rows(expense_id: int, policy: SplitType, computed: List[ComputedSplit]):
    return [
        ExpenseSplit(
            expense_id=expense_id,
            user_id=s.user_id,
            amount=s.amount,
            split_type=policy,
            percentage=s.percentage,
            is_paid=False
        )
        for s in computed
    ]

def _as_utc(paid_at: Optional[datetime]) -> datetime:
    # SQLite drops the offset, so every timestamp is stored in UTC
    if paid_at is None:
        return datetime.now(timezone.utc)
    if paid_at.tzinfo is None:
        return paid_at.replace(tzinfo=timezone.utc)
    return paid_at.astimezone(timezone.utc)


async def persist_expense_with_splits(
    db: AsyncSession,
    *,
    title: str,
    amount: Decimal,
    payer_id: int,
    policy: SplitType,
    participants: Sequence,
    group_id: Optional[int] = None,
    description: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> Expense:
    """
    Compute the splits of a new expense and store the expense together with
    all of its splits. Either everything is written or nothing is.
    """
    amount = to_money(amount)
    policy = SplitType(policy)

    # 1. Pure computation, fails before touching the database
    computed = compute_splits(amount, payer_id, policy, participants)
    user_ids = [s.user_id for s in computed]

    # 2. Everyone involved must exist
    await require_users(db, [payer_id, *user_ids])

    # 3. Group expenses stay inside the group
    if group_id is not None:
        await _check_group_membership(db, group_id, [payer_id, *user_ids])

    async with transaction(db):
        expense = Expense(
            title=title,
            description=description,
            amount=amount,
            paid_by=payer_id,
            group_id=group_id,
            paid_at=_as_utc(paid_at)
        )
        db.add(expense)
        await db.flush()  # gives expense.id

        db.add_all(_split_rows(expense.id, policy, computed))

    logger.info(
        "Created expense %s (%s) paid by %s with %d %s splits",
        expense.id, amount, payer_id, len(computed), policy.value
    )
    return await get_expense(db, expense.id)

async def add_splits_to_expense(
    db: AsyncSession,
    expense_id: int,
    policy: SplitType,
    participants: Sequence,
) -> Expense:
    expense = await get_expense(db, expense_id)

    if expense.splits:
        raise ValidationError(f"Expense {expense_id} already has splits")

    policy = SplitType(policy)
    computed = compute_splits(expense.amount, expense.paid_by, policy, participants)
    user_ids = [s.user_id for s in computed]

    await require_users(db, user_ids)
    if expense.group_id is not None:
        await _check_group_membership(db, expense.group_id, user_ids)

    async with transaction(db):
        db.add_all(_split_rows(expense.id, policy, computed))

    logger.info("Added %d %s splits to expense %s", len(computed), policy.value, expense_id)
    return await get_expense(db, expense_id)

async def get_expense(db: AsyncSession, expense_id: int) -> Expense:
    q = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(Expense.id == expense_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise NotFoundError(f"Expense {expense_id} not found")

    return expense

async def get_expense_splits(db: AsyncSession, expense_id: int) -> List[ExpenseSplit]:
    expense = await get_expense(db, expense_id)
    return list(expense.splits)

async def get_user_splits(db: AsyncSession, user_id: int):
    await require_user(db, user_id)

    q = (
        select(
            ExpenseSplit.expense_id,
            ExpenseSplit.amount,
            ExpenseSplit.split_type,
            ExpenseSplit.percentage,
            ExpenseSplit.is_paid,
            Expense.title,
            Expense.amount.label("expense_amount"),
            Expense.paid_by,
            Expense.paid_at,
            User.name.label("payer_name")
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .join(User, User.id == Expense.paid_by)
        .where(ExpenseSplit.user_id == user_id)
        .order_by(Expense.paid_at.desc(), Expense.id.desc())
    )

    res = await db.execute(q)

    return [
        {
            "expense_id": row.expense_id,
            "expense_title": row.title,
            "expense_amount": row.expense_amount,
            "paid_by": row.paid_by,
            "payer_name": row.payer_name,
            "paid_at": row.paid_at,
            "amount": row.amount,
            "split_type": row.split_type,
            "percentage": row.percentage,
            "is_paid": row.is_paid
        }
        for row in res.all()
    ]

async def delete_expense(db: AsyncSession, expense_id: int):
    res = await db.execute(select(func.count()).select_from(Expense).where(Expense.id == expense_id))
    if not res.scalar():
        raise NotFoundError(f"Expense {expense_id} not found")

    async with transaction(db):
        await db.execute(delete(ExpenseSplit).where(ExpenseSplit.expense_id == expense_id))
        await db.execute(delete(Expense).where(Expense.id == expense_id))

    logger.info("Deleted expense %s and its splits", expense_id)
    return {"status": "deleted"}
