"""DB service layer for hint-usage gamification.

- Routers never touch DB sessions directly; they call HintUsageTracker.
- This layer owns session/transaction boundaries.
- CRUD helpers used here never commit on their own.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sudojo_api.crud import CreateData, ReadData, UpdateData
from sudojo_api.domain.hint_rules import hint_points, scoring_level
from sudojo_api.models.dc_models import TrackingResultModel

HINT_USED_TRANSACTION = "hint_used"

NOT_TRACKED = TrackingResultModel(tracked=False, hint_points=0)


class SessionReplacedError(Exception):
    """The active session ended or moved to another board before the award."""


class HintUsageTracker:
    """Award points for a granted hint when it belongs to the caller's active puzzle."""

    def __init__(self, Session: async_sessionmaker, atomic: bool = True):
        """
        Args:
            Session (async_sessionmaker): Session factory bound to the API database.
            atomic (bool): Apply the session update, stats upsert and point
                transaction in one database transaction. When False every step
                commits on its own.
        """
        self.Session: async_sessionmaker = Session
        self.atomic: bool = atomic

    async def track_hint_usage(
        self,
        user_id: Optional[str],
        original_board: str,
        technique_level: int,
    ) -> TrackingResultModel:
        """Record a granted hint against the user's active game session

        Args:
            user_id (str | None): Verified uid, None for anonymous callers
            original_board (str): 81 character puzzle the hint was requested for
            technique_level (int): Level of the hint returned by the solver

        Returns:
            TrackingResultModel: tracked flag and the points awarded
        """
        if not user_id:
            return NOT_TRACKED

        try:
            async with self.Session() as session:
                game_session = await ReadData.read_game_session(user_id, session)
            if game_session is None:
                logging.debug(f"No active session for user {user_id}, hint not tracked")
                return NOT_TRACKED

            if game_session.board != original_board:
                logging.debug(f"Hint board does not match active session of {user_id}")
                return NOT_TRACKED

            points = hint_points(technique_level)
            metadata = {
                "techniqueLevel": scoring_level(technique_level),
                "puzzleLevel": game_session.level,
                "puzzleType": game_session.puzzle_type,
                "puzzleId": game_session.puzzle_id,
            }

            if self.atomic:
                async with self.Session() as session:
                    async with session.begin():
                        await self._apply_award(user_id, original_board, points, metadata, session)
            else:
                await self._apply_award_stepwise(user_id, original_board, points, metadata)

            logging.info(f"Awarded {points} hint points to user {user_id}")
            return TrackingResultModel(tracked=True, hint_points=points)
        except SessionReplacedError:
            logging.info(f"Active session of {user_id} changed before the hint was recorded")
            return NOT_TRACKED
        except Exception as e:
            logging.error(f"Error tracking hint usage: {e}")
            return NOT_TRACKED

    async def _apply_award(
        self, user_id: str, board: str, points: int, metadata: dict, session: AsyncSession
    ) -> None:
        if not await UpdateData.increment_session_hints(user_id, board, session):
            raise SessionReplacedError()
        await self._upsert_user_stats(user_id, points, session)
        await CreateData.add_point_transaction(
            user_id, points, HINT_USED_TRANSACTION, metadata, session
        )

    async def _apply_award_stepwise(
        self, user_id: str, board: str, points: int, metadata: dict
    ) -> None:
        async with self.Session() as session:
            async with session.begin():
                if not await UpdateData.increment_session_hints(user_id, board, session):
                    raise SessionReplacedError()
        async with self.Session() as session:
            async with session.begin():
                await self._upsert_user_stats(user_id, points, session)
        async with self.Session() as session:
            async with session.begin():
                await CreateData.add_point_transaction(
                    user_id, points, HINT_USED_TRANSACTION, metadata, session
                )

    @staticmethod
    async def _upsert_user_stats(user_id: str, points: int, session: AsyncSession) -> None:
        if not await UpdateData.add_points_to_user_stats(user_id, points, session):
            await CreateData.add_user_stats(user_id, points, session)
