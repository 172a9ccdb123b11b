import unittest
from datetime import date, timedelta

import httpx
from fastapi import Depends, FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from sudojo_api.authentication.hint_access import DailyLimitReachedError, require_daily_access
from sudojo_api.authentication.subscription_client import SubscriptionClient
from sudojo_api.domain.hint_rules import HintAccessPolicy, parse_admin_emails
from sudojo_api.main import daily_limit_handler, http_exception_handler
from sudojo_api.models.dc_models import FirebaseUserModel
from sudojo_api.services.access_db import DailyAccessService, utc_today

from tests.support import FakeTokenVerifier, billing_transport, create_test_database

USERS = {
    "token-free": FirebaseUserModel(uid="uid-free", email="free@example.com"),
    "token-blue": FirebaseUserModel(uid="uid-blue", email="blue@example.com"),
    "token-admin": FirebaseUserModel(uid="uid-admin", email="admin@sudojo.app"),
    "token-flaky": FirebaseUserModel(uid="uid-flaky", email="flaky@example.com"),
}


class DailyAccessServiceTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.engine, self.Session = await create_test_database()
        self.service = DailyAccessService(self.Session, HintAccessPolicy())

    async def asyncTearDown(self) -> None:
        await self.engine.dispose()

    async def test_limit_counts_down_then_denies(self):
        today = date(2026, 10, 19)
        self.assertEqual(await self.service.check_and_record_access("u1", "boards", today), (True, 1))
        self.assertEqual(await self.service.check_and_record_access("u1", "boards", today), (True, 0))
        self.assertEqual(await self.service.check_and_record_access("u1", "boards", today), (False, 0))

    async def test_counts_are_per_endpoint_user_and_day(self):
        today = date(2026, 10, 19)
        for _ in range(2):
            await self.service.check_and_record_access("u1", "boards", today)
        self.assertEqual(await self.service.check_and_record_access("u1", "dailies", today), (True, 1))
        self.assertEqual(await self.service.check_and_record_access("u2", "boards", today), (True, 1))
        tomorrow = today + timedelta(days=1)
        self.assertEqual(await self.service.check_and_record_access("u1", "boards", tomorrow), (True, 1))

    async def test_solve_endpoint_has_higher_limit(self):
        granted, remaining = await self.service.check_and_record_access("u1", "solve")
        self.assertTrue(granted)
        self.assertEqual(remaining, 9)

    async def test_expired_logs_are_deleted(self):
        old_day = utc_today() - timedelta(days=45)
        await self.service.check_and_record_access("u1", "boards", old_day)
        await self.service.check_and_record_access("u1", "boards")

        deleted = await self.service.delete_expired_access_logs(retention_days=30)

        self.assertEqual(deleted, 1)
        # The old day's quota is fully available again after purging.
        self.assertEqual(await self.service.check_and_record_access("u1", "boards", old_day), (True, 1))


class DailyAccessDependencyTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.engine, self.Session = await create_test_database()
        policy = HintAccessPolicy(admin_emails=parse_admin_emails("admin@sudojo.app"))
        self.subscription_client = SubscriptionClient(
            "rc-key",
            "http://billing",
            transport=billing_transport({"uid-blue": ["blue_belt"]}, failing=("uid-flaky",)),
        )

        self.app = FastAPI()
        self.app.state.access_policy = policy
        self.app.state.token_verifier = FakeTokenVerifier(USERS)
        self.app.state.subscription_client = self.subscription_client
        self.app.state.daily_access_service = DailyAccessService(self.Session, policy)
        self.app.add_exception_handler(StarletteHTTPException, http_exception_handler)
        self.app.add_exception_handler(DailyLimitReachedError, daily_limit_handler)

        @self.app.get("/boards/random")
        async def random_board(user: FirebaseUserModel = Depends(require_daily_access("boards"))):
            return {"uid": user.uid}

        self.client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app), base_url="http://test"
        )

    async def asyncTearDown(self) -> None:
        await self.client.aclose()
        await self.subscription_client.aclose()
        await self.engine.dispose()

    async def get_board(self, token: str | None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return await self.client.get("/boards/random", headers=headers)

    async def test_credential_is_required(self):
        response = await self.get_board(None)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Authorization header required")

    async def test_non_bearer_scheme_is_rejected(self):
        response = await self.client.get(
            "/boards/random", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.json()["error"], "Invalid authorization format. Use: Bearer <token>"
        )

    async def test_invalid_token(self):
        response = await self.get_board("forged")
        self.assertEqual(response.status_code, 401)

    async def test_free_user_runs_out(self):
        first = await self.get_board("token-free")
        second = await self.get_board("token-free")
        third = await self.get_board("token-free")

        self.assertEqual(first.headers["X-Daily-Remaining"], "1")
        self.assertEqual(second.headers["X-Daily-Remaining"], "0")
        self.assertEqual(third.status_code, 402)
        body = third.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Daily limit reached")
        self.assertEqual(body["action"]["type"], "subscription_required")
        self.assertEqual(body["action"]["options"], ["subscribe", "restore_purchase"])

    async def test_subscribers_and_admins_bypass(self):
        for token in ("token-blue", "token-admin"):
            for _ in range(3):
                response = await self.get_board(token)
                self.assertEqual(response.status_code, 200)
                self.assertNotIn("X-Daily-Remaining", response.headers)

    async def test_billing_failure_falls_back_to_daily_limit(self):
        response = await self.get_board("token-flaky")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-Daily-Remaining"], "1")

    async def test_identity_outage_is_503(self):
        response = await self.get_board(FakeTokenVerifier.OUTAGE_TOKEN)
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
