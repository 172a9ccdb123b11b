from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sudojo_api.models.schemas import Base


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    # One factory per process; handed to services instead of imported by them.
    return async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=engine,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create the gamification and access-log tables if they do not exist"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
