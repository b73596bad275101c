import logging
from collections import defaultdict
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, update, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.core.exceptions import ValidationError
from splitledger.core.money import ZERO, money_sum, to_money
from splitledger.db.session import transaction
from splitledger.models.expense import Expense
from splitledger.models.expense_split import ExpenseSplit
from splitledger.schemas.settlement import (
    BalanceSummary,
    SettleResult,
    SettlementDetail,
    SettlementSplit,
    UserRef,
    UserSettlement,
)
from splitledger.services.user_service import get_users_by_ids, require_user, require_users

logger = logging.getLogger(__name__)

def _unpaid_splits_for(user_id: int):
    """Unpaid splits where ``user_id`` is either the debtor or the creditor, never both."""
    return (
        select(
            ExpenseSplit.user_id.label("debtor_id"),
            Expense.paid_by.label("creditor_id"),
            ExpenseSplit.amount
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.is_paid.is_(False),
            or_(
                and_(ExpenseSplit.user_id == user_id, Expense.paid_by != user_id),
                and_(Expense.paid_by == user_id, ExpenseSplit.user_id != user_id)
            )
        )
    )

async def settlements_for_user(db: AsyncSession, user_id: int) -> List[UserSettlement]:
    """
    Net balance of ``user_id`` with every counterparty that still has unpaid
    splits with them, in either direction.

    Sorted by net amount descending (largest amount owed to the user first),
    then by counterparty id.
    """
    res = await db.execute(_unpaid_splits_for(user_id))

    owed_to_you = defaultdict(lambda: ZERO)
    owed_by_you = defaultdict(lambda: ZERO)

    for debtor_id, creditor_id, amount in res.all():
        if creditor_id == user_id:
            owed_to_you[debtor_id] += amount
        else:
            owed_by_you[creditor_id] += amount

    counterparty_ids = set(owed_to_you) | set(owed_by_you)
    users = await get_users_by_ids(db, counterparty_ids)

    settlements = []
    for cid in counterparty_ids:
        to_you = owed_to_you.get(cid, ZERO)
        by_you = owed_by_you.get(cid, ZERO)
        settlements.append(UserSettlement(
            counterparty_id=cid,
            counterparty_name=users[cid].name,
            counterparty_email=users[cid].email,
            owed_to_you=to_you,
            owed_by_you=by_you,
            net_amount=to_you - by_you
        ))

    settlements.sort(key=lambda s: (-s.net_amount, s.counterparty_id))
    return settlements

async def settlement_between(db: AsyncSession, user_a: int, user_b: int) -> SettlementDetail:
    if user_a == user_b:
        raise ValidationError("Cannot compute a settlement between a user and themself")

    users = await require_users(db, [user_a, user_b])

    q = (
        select(
            ExpenseSplit.expense_id,
            ExpenseSplit.user_id,
            ExpenseSplit.amount,
            ExpenseSplit.split_type,
            ExpenseSplit.percentage,
            Expense.title,
            Expense.paid_by,
            Expense.paid_at
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.is_paid.is_(False),
            or_(
                and_(ExpenseSplit.user_id == user_a, Expense.paid_by == user_b),
                and_(ExpenseSplit.user_id == user_b, Expense.paid_by == user_a)
            )
        )
    )
    res = await db.execute(q)
    rows = sorted(res.all(), key=lambda r: (r.amount, r.paid_at, r.expense_id))

    a_owes_b = money_sum(r.amount for r in rows if r.user_id == user_a)
    b_owes_a = money_sum(r.amount for r in rows if r.user_id == user_b)

    return SettlementDetail(
        user1=UserRef.model_validate(users[user_a]),
        user2=UserRef.model_validate(users[user_b]),
        user1_owes_user2=a_owes_b,
        user2_owes_user1=b_owes_a,
        net_amount=b_owes_a - a_owes_b,
        splits=[
            SettlementSplit(
                expense_id=r.expense_id,
                expense_title=r.title,
                amount=r.amount,
                split_type=r.split_type,
                percentage=r.percentage,
                paid_by=r.paid_by,
                owed_by=r.user_id
            )
            for r in rows
        ]
    )

async def balance_summary(db: AsyncSession, user_id: int) -> BalanceSummary:
    await require_user(db, user_id)

    res = await db.execute(_unpaid_splits_for(user_id))
    rows = res.all()

    owed = money_sum(amount for _, creditor_id, amount in rows if creditor_id == user_id)
    owes = money_sum(amount for debtor_id, _, amount in rows if debtor_id == user_id)

    return BalanceSummary(user_id=user_id, owes=owes, owed=owed, net_balance=owed - owes)

async def settle_in_session(
    db: AsyncSession,
    payer_id: int,
    payee_id: int,
    amount_cap: Optional[Decimal] = None,
    group_id: Optional[int] = None,
):
    """
    Mark whole unpaid splits owed by ``payer_id`` to ``payee_id`` as paid,
    oldest expense first, until the next one would push the total past
    ``amount_cap``. Does not commit.
    """
    q = (
        select(ExpenseSplit.id, ExpenseSplit.amount)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.user_id == payer_id,
            Expense.paid_by == payee_id,
            ExpenseSplit.is_paid.is_(False)
        )
        .order_by(Expense.paid_at.asc(), Expense.id.asc())
    )
    if group_id is not None:
        q = q.where(Expense.group_id == group_id)

    res = await db.execute(q)
    candidates = res.all()

    settled = ZERO
    count = 0

    for split_id, amount in candidates:
        if amount_cap is not None and settled + amount > amount_cap:
            break

        # is_paid is re-checked at write time so a concurrent settle cannot claim the row twice
        upd = (
            update(ExpenseSplit)
            .where(ExpenseSplit.id == split_id, ExpenseSplit.is_paid.is_(False))
            .values(is_paid=True)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(upd)

        if result.rowcount != 1:
            logger.warning("Split %s was already settled by another request", split_id)
            continue

        settled += amount
        count += 1

    return settled, count

async def settle(
    db: AsyncSession,
    payer_id: int,
    payee_id: int,
    amount_cap: Optional[Decimal] = None,
) -> SettleResult:
    if payer_id == payee_id:
        raise ValidationError("Cannot settle debt with yourself")

    if amount_cap is not None:
        amount_cap = to_money(amount_cap)
        if amount_cap <= ZERO:
            raise ValidationError("Settlement amount must be positive")

    await require_users(db, [payer_id, payee_id])

    async with transaction(db):
        settled, count = await settle_in_session(db, payer_id, payee_id, amount_cap)

    logger.info(
        "User %s settled %s with user %s across %d split(s)",
        payer_id, settled, payee_id, count
    )
    return SettleResult(settled_amount=settled, settled_splits_count=count)
