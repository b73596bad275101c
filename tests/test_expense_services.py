from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from splitledger.core.exceptions import NotFoundError, ValidationError
from splitledger.core.splits import SplitType
from splitledger.models.expense import Expense
from splitledger.models.expense_split import ExpenseSplit
from splitledger.schemas.expense import SplitParticipant
from splitledger.services import expense_services
from splitledger.services.expense_services import (
    add_splits_to_expense,
    delete_expense,
    get_expense,
    get_expense_splits,
    get_user_splits,
)
from tests.conftest import equal, exact, make_user, post_expense


async def count(db, model):
    res = await db.execute(select(func.count()).select_from(model))
    return res.scalar()


async def test_expense_and_splits_are_stored_together(db, alice, bob, carol):
    expense = await post_expense(db, alice, "100.00", equal(alice, bob, carol), title="Dinner")

    assert expense.title == "Dinner"
    assert expense.amount == Decimal("100.00")
    assert expense.paid_by == alice.id
    assert [(s.user_id, s.amount, s.is_paid) for s in expense.splits] == [
        (alice.id, Decimal("33.34"), False),
        (bob.id, Decimal("33.33"), False),
        (carol.id, Decimal("33.33"), False),
    ]
    assert sum(s.amount for s in expense.splits) == expense.amount


async def test_amounts_survive_the_database_exactly(db, alice, bob):
    expense = await post_expense(
        db, alice, "0.3", exact((alice, "0.1"), (bob, "0.2")), policy=SplitType.EXACT
    )

    splits = await get_expense_splits(db, expense.id)

    assert [s.amount for s in splits] == [Decimal("0.1"), Decimal("0.2")]
    assert sum(s.amount for s in splits) == Decimal("0.3")


async def test_percentage_split_keeps_percentages(db, alice, bob):
    participants = [
        SplitParticipant(user_id=alice.id, percentage=Decimal("40")),
        SplitParticipant(user_id=bob.id, percentage=Decimal("60")),
    ]
    expense = await post_expense(db, alice, "100.00", participants, policy=SplitType.PERCENTAGE)

    assert [(s.split_type, s.percentage, s.amount) for s in expense.splits] == [
        (SplitType.PERCENTAGE, Decimal("40"), Decimal("40")),
        (SplitType.PERCENTAGE, Decimal("60"), Decimal("60")),
    ]


async def test_validation_failure_writes_nothing(db, alice, bob):
    with pytest.raises(ValidationError):
        await post_expense(db, alice, "100", exact((alice, "50"), (bob, "40")), policy=SplitType.EXACT)

    assert await count(db, Expense) == 0
    assert await count(db, ExpenseSplit) == 0


async def test_unknown_participant(db, alice):
    with pytest.raises(NotFoundError):
        await post_expense(db, alice, "10", [SplitParticipant(user_id=alice.id), SplitParticipant(user_id=999)])

    assert await count(db, Expense) == 0


async def test_failed_split_insert_rolls_back_the_expense(db, alice, bob, monkeypatch):
    original = expense_services._split_rows

    def duplicated_rows(expense_id, policy, computed):
        rows = original(expense_id, policy, computed)
        rows.append(original(expense_id, policy, computed[:1])[0])
        return rows

    monkeypatch.setattr(expense_services, "_split_rows", duplicated_rows)

    with pytest.raises(IntegrityError):
        await post_expense(db, alice, "20", equal(alice, bob))

    assert await count(db, Expense) == 0
    assert await count(db, ExpenseSplit) == 0


async def test_group_expense_requires_members(db, trip, alice, bob):
    outsider = await make_user(db, "Dave")

    with pytest.raises(ValidationError, match="not members"):
        await post_expense(db, alice, "30", equal(alice, outsider), group=trip)

    expense = await post_expense(db, alice, "30", equal(alice, bob), group=trip)
    assert expense.group_id == trip.id


async def test_group_must_exist(db, alice, bob):
    with pytest.raises(NotFoundError):
        await expense_services.persist_expense_with_splits(
            db,
            title="Lost",
            amount=Decimal("10"),
            payer_id=alice.id,
            policy=SplitType.EQUAL,
            participants=equal(alice, bob),
            group_id=42,
        )


async def test_add_splits_to_existing_expense(db, alice, bob):
    expense = Expense(title="Taxi", amount=Decimal("25.00"), paid_by=alice.id)
    db.add(expense)
    await db.commit()

    updated = await add_splits_to_expense(db, expense.id, SplitType.EQUAL, equal(alice, bob))

    assert [s.amount for s in updated.splits] == [Decimal("12.50"), Decimal("12.50")]

    with pytest.raises(ValidationError, match="already has splits"):
        await add_splits_to_expense(db, expense.id, SplitType.EQUAL, equal(alice, bob))


async def test_get_expense_not_found(db):
    with pytest.raises(NotFoundError):
        await get_expense(db, 123)


async def test_user_splits_newest_first(db, alice, bob):
    await post_expense(db, alice, "10", equal(alice, bob), day=0, title="Coffee")
    await post_expense(db, alice, "20", equal(alice, bob), day=1, title="Lunch")

    splits = await get_user_splits(db, bob.id)

    assert [s["expense_title"] for s in splits] == ["Lunch", "Coffee"]
    assert [s["amount"] for s in splits] == [Decimal("10"), Decimal("5")]
    assert all(s["payer_name"] == "Alice" for s in splits)


async def test_delete_expense_removes_splits(db, alice, bob):
    expense = await post_expense(db, alice, "10", equal(alice, bob))

    assert await delete_expense(db, expense.id) == {"status": "deleted"}

    assert await count(db, Expense) == 0
    assert await count(db, ExpenseSplit) == 0

    with pytest.raises(NotFoundError):
        await delete_expense(db, expense.id)
