from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def create_postgres_engine(database_url: str) -> AsyncEngine:
    """Create the pooled asyncpg engine used by the API process."""
    return create_async_engine(database_url, pool_size=20, max_overflow=20)
