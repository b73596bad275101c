import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.core.exceptions import NotFoundError, ValidationError
from splitledger.core.money import ZERO, money_sum, to_money
from splitledger.core.utils import simplify_debts
from splitledger.db.session import transaction
from splitledger.models.expense import Expense
from splitledger.models.expense_split import ExpenseSplit
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
from splitledger.models.user import User
from splitledger.schemas.group import (
    GroupMemberBalance,
    GroupMemberDebts,
    GroupSettleResult,
    GroupSettlement,
    GroupTransfer,
    MemberDebt,
)
from splitledger.schemas.settlement import UserRef
from splitledger.services.settlement_services import settle_in_session

logger = logging.getLogger(__name__)

async def _get_group(db: AsyncSession, group_id: int) -> Group:
    res = await db.execute(select(Group).where(Group.id == group_id))
    group = res.scalar_one_or_none()

    if not group:
        raise NotFoundError(f"Group {group_id} not found")
    return group

async def _group_members(db: AsyncSession, group_id: int):
    q = (
        select(User)
        .join(GroupMember, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(User.id)
    )
    res = await db.execute(q)
    return res.scalars().all()

async def _group_debt_totals(db: AsyncSession, group_id: int):
    """Per user: (owed to them, owed by them) over unpaid splits of the group's expenses."""
    q = (
        select(
            ExpenseSplit.user_id,
            Expense.paid_by,
            ExpenseSplit.amount
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            Expense.group_id == group_id,
            ExpenseSplit.is_paid.is_(False),
            ExpenseSplit.user_id != Expense.paid_by
        )
    )
    res = await db.execute(q)

    owed: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    owes: Dict[int, Decimal] = defaultdict(lambda: ZERO)

    for debtor_id, creditor_id, amount in res.all():
        owed[creditor_id] += amount
        owes[debtor_id] += amount

    return owed, owes

async def group_settlements(db: AsyncSession, group_id: int) -> GroupSettlement:
    group = await _get_group(db, group_id)
    members = await _group_members(db, group_id)
    owed, owes = await _group_debt_totals(db, group_id)

    names = {m.id: m.name for m in members}
    net = {
        m.id: owed.get(m.id, ZERO) - owes.get(m.id, ZERO)
        for m in members
    }

    transfers = simplify_debts(net)

    return GroupSettlement(
        group_id=group.id,
        group_name=group.name,
        members=[
            GroupMemberBalance(user_id=m.id, name=m.name, email=m.email, net_balance=net[m.id])
            for m in members
        ],
        optimized_transactions=[
            GroupTransfer(
                from_user_id=f,
                from_user_name=names[f],
                to_user_id=t,
                to_user_name=names[t],
                amount=a
            )
            for f, t, a in transfers
        ],
        total_debt=money_sum(b for b in net.values() if b > ZERO)
    )

async def group_member_debts(db: AsyncSession, group_id: int) -> GroupMemberDebts:
    group = await _get_group(db, group_id)
    members = await _group_members(db, group_id)
    owed, owes = await _group_debt_totals(db, group_id)

    debts = [
        MemberDebt(
            member=UserRef.model_validate(m),
            total_owed=owed.get(m.id, ZERO),
            total_owes=owes.get(m.id, ZERO),
            net_balance=owed.get(m.id, ZERO) - owes.get(m.id, ZERO)
        )
        for m in members
    ]
    debts.sort(key=lambda d: (-d.net_balance, d.member.id))

    return GroupMemberDebts(group_id=group.id, group_name=group.name, member_debts=debts)

async def execute_group_settlement(
    db: AsyncSession,
    group_id: int,
    transactions: Sequence,
) -> GroupSettleResult:
    """
    Apply a batch of ``from_user_id -> to_user_id`` payments against the
    group's unpaid splits. Each payment settles whole splits only, oldest
    first. The whole batch is one unit of work.
    """
    await _get_group(db, group_id)

    for t in transactions:
        if t.from_user_id == t.to_user_id:
            raise ValidationError("Cannot settle debt with yourself")
        if to_money(t.amount) <= ZERO:
            raise ValidationError("Settlement amount must be positive")

    total = ZERO
    count = 0

    async with transaction(db):
        for t in transactions:
            settled, n = await settle_in_session(
                db, t.from_user_id, t.to_user_id, to_money(t.amount), group_id=group_id
            )
            total += settled
            count += n

    logger.info(
        "Group %s settlement applied %d transfer(s): %s across %d split(s)",
        group_id, len(transactions), total, count
    )
    return GroupSettleResult(
        settled_amount=total,
        settled_splits_count=count,
        transactions=len(transactions)
    )
