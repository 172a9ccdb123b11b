import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx


class SubscriptionLookupError(Exception):
    """Entitlements could not be fetched from the billing service."""


class SubscriptionClient:
    """Look up active entitlements of a user in RevenueCat."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.revenuecat.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_entitlements(self, user_id: str) -> List[str]:
        """Return the identifiers of the entitlements currently active for the user

        Args:
            user_id (str): App user id, the identity provider uid

        Raises:
            SubscriptionLookupError: The billing service failed or timed out

        Returns:
            List[str]: e.g. ["blue_belt"], empty for free users
        """
        if not self.api_key:
            # Billing not configured, nobody holds an entitlement.
            return []
        try:
            response = await self.client.get(
                f"/v1/subscribers/{user_id}",
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SubscriptionLookupError(str(e)) from e

        entitlements = body.get("subscriber", {}).get("entitlements", {}) or {}
        now = datetime.now(timezone.utc)
        active = [
            name
            for name, entitlement in entitlements.items()
            if _is_active(entitlement.get("expires_date"), now)
        ]
        logging.debug(f"Active entitlements for {user_id}: {active}")
        return active


def _is_active(expires_date: Optional[str], now: datetime) -> bool:
    if expires_date is None:
        return True  # lifetime purchase
    try:
        expires_at = datetime.fromisoformat(expires_date.replace("Z", "+00:00"))
    except ValueError:
        logging.warning(f"Unreadable entitlement expiry: {expires_date}")
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at > now
