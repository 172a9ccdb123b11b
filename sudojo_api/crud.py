from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, select, update
from datetime import date
import logging

from sudojo_api.models.schema_models import (
    GameSessionSchema,
    PointTransactionSchema,
    UserStatsSchema,
)
from sudojo_api.models.schemas import (
    AccessLog,
    GameSession,
    PointTransaction,
    UserStats,
    utc_now,
)

# These helpers never commit. The caller owns the session and decides
# whether a group of them runs inside one session.begin() block.


class ReadData:
    @staticmethod
    async def read_game_session(user_id: str, session: AsyncSession) -> GameSessionSchema | None:
        """Read the single active game session of a user

        Args:
            user_id (str): Identity provider uid of the user

        Returns:
            GameSessionSchema | None: The active session, None if the user is not playing
        """
        stmt = select(GameSession).where(GameSession.user_id == user_id)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return GameSessionSchema.model_validate(result)

    @staticmethod
    async def read_user_stats(user_id: str, session: AsyncSession) -> UserStatsSchema | None:
        stmt = select(UserStats).where(UserStats.user_id == user_id)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return UserStatsSchema.model_validate(result)

    @staticmethod
    async def read_point_transactions(user_id: str, session: AsyncSession) -> list[PointTransactionSchema]:
        stmt = (
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at, PointTransaction.id)
        )
        result = await session.execute(stmt)
        return [PointTransactionSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def count_access_today(user_id: str, endpoint: str, today: date, session: AsyncSession) -> int:
        """Count how many times a user has opened an endpoint on the given date

        Args:
            user_id (str): Identity provider uid of the user
            endpoint (str): Endpoint identifier such as "boards"
            today (date): UTC date to count for

        Returns:
            int: Number of recorded accesses
        """
        stmt = select(func.count()).select_from(AccessLog).where(
            AccessLog.user_id == user_id,
            AccessLog.endpoint == endpoint,
            AccessLog.access_date == today,
        )
        result = await session.execute(stmt)
        return result.scalar_one()


class CreateData:
    @staticmethod
    async def add_game_session(game_session: GameSessionSchema, session: AsyncSession) -> None:
        session.add(GameSession(**game_session.model_dump()))
        await session.flush()

    @staticmethod
    async def add_user_stats(user_id: str, total_points: int, session: AsyncSession) -> None:
        session.add(UserStats(user_id=user_id, total_points=total_points))
        await session.flush()

    @staticmethod
    async def add_point_transaction(
        user_id: str,
        points: int,
        transaction_type: str,
        metadata: dict,
        session: AsyncSession,
    ) -> None:
        """Append one audit row. Rows in point_transactions are never updated."""
        session.add(
            PointTransaction(
                user_id=user_id,
                points=points,
                transaction_type=transaction_type,
                transaction_metadata=metadata,
            )
        )
        await session.flush()

    @staticmethod
    async def add_access_log(user_id: str, endpoint: str, today: date, session: AsyncSession) -> None:
        session.add(AccessLog(user_id=user_id, endpoint=endpoint, access_date=today))
        await session.flush()


class UpdateData:
    @staticmethod
    async def increment_session_hints(user_id: str, board: str, session: AsyncSession) -> bool:
        """Mark a hint as used on the active session and bump its counter in SQL

        Args:
            user_id (str): Owner of the session
            board (str): Puzzle the hint was given for, the session must still hold it

        Returns:
            bool: False if the session disappeared or now holds another board
        """
        stmt = (
            update(GameSession)
            .where(GameSession.user_id == user_id, GameSession.board == board)
            .values(hint_used=True, hints_count=GameSession.hints_count + 1)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def add_points_to_user_stats(user_id: str, points: int, session: AsyncSession) -> bool:
        """Add points to the stats row of the user

        Returns:
            bool: False if the user has no stats row yet
        """
        stmt = (
            update(UserStats)
            .where(UserStats.user_id == user_id)
            .values(total_points=UserStats.total_points + points, updated_at=utc_now())
        )
        result = await session.execute(stmt)
        return result.rowcount > 0


class DeleteData:
    @staticmethod
    async def delete_access_logs_before(cutoff: date, session: AsyncSession) -> int:
        stmt = delete(AccessLog).where(AccessLog.access_date < cutoff)
        result = await session.execute(stmt)
        logging.info(f"Deleted {result.rowcount} access log rows older than {cutoff}")
        return result.rowcount
