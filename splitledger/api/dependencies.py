from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.services.user_service import get_user_by_id

async def get_path_user(user_id: int, db: AsyncSession = Depends(get_db)) -> User:
    user = await get_user_by_id(db, user_id)

    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    return user
