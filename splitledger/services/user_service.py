from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from splitledger.core.exceptions import NotFoundError
from splitledger.models.user import User

async def get_user_by_id(db: AsyncSession, id: int):
    result = await db.execute(select(User).where(User.id == id))
    return result.scalar_one_or_none()

async def require_user(db: AsyncSession, id: int) -> User:
    user = await get_user_by_id(db, id)
    if user is None:
        raise NotFoundError(f"User {id} not found")
    return user

async def get_users_by_ids(db: AsyncSession, ids: Iterable[int]) -> Dict[int, User]:
    ids = set(ids)
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}

async def require_users(db: AsyncSession, ids: Iterable[int]) -> Dict[int, User]:
    ids = set(ids)
    users = await get_users_by_ids(db, ids)
    missing = sorted(ids - set(users))
    if missing:
        raise NotFoundError(f"Users not found: {', '.join(str(m) for m in missing)}")
    return users
