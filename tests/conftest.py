from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from splitledger.core.splits import SplitType
from splitledger.db.session import Base
from splitledger.models.user import User
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
import splitledger.models.expense  # noqa: F401
import splitledger.models.expense_split  # noqa: F401
from splitledger.schemas.expense import SplitParticipant
from splitledger.services.expense_services import persist_expense_with_splits

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def make_user(db, name):
    user = User(name=name, email=f"{name.lower()}@example.com")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def alice(db):
    return await make_user(db, "Alice")


@pytest.fixture
async def bob(db):
    return await make_user(db, "Bob")


@pytest.fixture
async def carol(db):
    return await make_user(db, "Carol")


@pytest.fixture
async def trip(db, alice, bob, carol):
    group = Group(name="Trip", created_by=alice.id)
    db.add(group)
    await db.flush()
    db.add_all([GroupMember(group_id=group.id, user_id=u.id) for u in (alice, bob, carol)])
    await db.commit()
    return group


def equal(*users):
    return [SplitParticipant(user_id=u.id) for u in users]


def exact(*pairs):
    return [SplitParticipant(user_id=u.id, amount=Decimal(a)) for u, a in pairs]


async def post_expense(db, payer, amount, participants, policy=SplitType.EQUAL, day=0, group=None, title=None):
    return await persist_expense_with_splits(
        db,
        title=title or f"Expense {amount}",
        amount=Decimal(amount),
        payer_id=payer.id,
        policy=policy,
        participants=participants,
        group_id=group.id if group else None,
        paid_at=BASE_TIME + timedelta(days=day),
    )
