"""DB service layer for the daily content-access gate.

Free users get a fixed number of accesses per endpoint and UTC day.
Subscribers and site administrators never reach this layer.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from sudojo_api.crud import CreateData, DeleteData, ReadData
from sudojo_api.domain.hint_rules import HintAccessPolicy


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyAccessService:
    def __init__(self, Session: async_sessionmaker, policy: HintAccessPolicy):
        self.Session: async_sessionmaker = Session
        self.policy: HintAccessPolicy = policy

    async def check_and_record_access(
        self, user_id: str, endpoint: str, today: Optional[date] = None
    ) -> Tuple[bool, int]:
        """Check if a user can open an endpoint today and record the access if granted

        Args:
            user_id (str): Identity provider uid of the user
            endpoint (str): Endpoint identifier such as "boards"
            today (date, optional): UTC date to use. Defaults to the current date.

        Returns:
            Tuple[bool, int]: granted flag and the accesses left today (0 if denied)
        """
        today = today or utc_today()
        limit = self.policy.daily_limit(endpoint)
        async with self.Session() as session:
            async with session.begin():
                access_count = await ReadData.count_access_today(user_id, endpoint, today, session)
                if access_count >= limit:
                    logging.info(f"Daily limit {limit} reached for {user_id} on {endpoint}")
                    return False, 0
                await CreateData.add_access_log(user_id, endpoint, today, session)
        return True, limit - access_count - 1

    async def delete_expired_access_logs(self, retention_days: int) -> int:
        """Delete access logs older than the retention window. Scheduled daily."""
        cutoff = utc_today() - timedelta(days=retention_days)
        async with self.Session() as session:
            async with session.begin():
                return await DeleteData.delete_access_logs_before(cutoff, session)
