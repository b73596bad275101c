from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from splitledger.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

Base = declarative_base()

async def get_db():
    async with async_session() as session:
        yield session

@asynccontextmanager
async def transaction(db: AsyncSession):
    """Unit of work: commit when the block finishes, roll back and re-raise otherwise."""
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise
