"""Shared fixtures for the test modules: in-memory database and fake collaborators."""

import json
from datetime import datetime
from typing import Callable, Dict, List, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from uuid6 import uuid7

from sudojo_api.authentication.firebase_authentication import (
    IdentityProviderUnavailableError,
    InvalidTokenError,
)
from sudojo_api.crud import CreateData
from sudojo_api.db import create_session_factory, create_tables
from sudojo_api.models.dc_models import FirebaseUserModel
from sudojo_api.models.schema_models import GameSessionSchema

BOARD_B = "530070000600195000098000060800060003400803001700020006060000280000419005000080079"
BOARD_C = "000260701680070090190004500820100040004602900050003028009300074040050036703018000"
SOLUTION_B = "534678912672195348198342567859761423426853791713924856961537284287419635345286179"


async def create_test_database():
    engine: AsyncEngine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    return engine, create_session_factory(engine)


async def start_game_session(Session, user_id: str, board: str = BOARD_B, level: int = 4) -> None:
    async with Session() as session:
        async with session.begin():
            await CreateData.add_game_session(game_session_row(user_id, board, level), session)


def game_session_row(user_id: str, board: str = BOARD_B, level: int = 4) -> GameSessionSchema:
    return GameSessionSchema(
        id=uuid7(),
        user_id=user_id,
        board=board,
        solution=SOLUTION_B,
        level=level,
        techniques=0,
        hint_used=False,
        hints_count=0,
        started_at=datetime(2026, 10, 19, 8, 0, 0),
        puzzle_type="daily",
        puzzle_id="2026-10-19",
    )


class FakeTokenVerifier:
    """Stands in for FirebaseAuthentication: tokens map straight to users."""

    OUTAGE_TOKEN = "provider-down"

    def __init__(self, users: Dict[str, FirebaseUserModel]):
        self.users = users

    async def verify_token(self, token: str) -> FirebaseUserModel:
        if token == self.OUTAGE_TOKEN:
            raise IdentityProviderUnavailableError("certificates unavailable")
        if token not in self.users:
            raise InvalidTokenError("token rejected")
        return self.users[token]


def billing_transport(entitlements: Dict[str, List[str]], failing: tuple = ()) -> httpx.MockTransport:
    """RevenueCat stand-in. Users in `failing` get a 500."""

    def handler(request: httpx.Request) -> httpx.Response:
        user_id = request.url.path.rsplit("/", 1)[-1]
        if user_id in failing:
            return httpx.Response(500, json={"message": "internal error"})
        body = {
            "subscriber": {
                "entitlements": {
                    name: {"expires_date": None, "product_identifier": f"{name}_monthly"}
                    for name in entitlements.get(user_id, [])
                }
            }
        }
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


def solve_reply(level: int, technique: str = "Naked Single", board: str = BOARD_B) -> dict:
    return {
        "success": True,
        "error": None,
        "data": {
            "board": {"original": board, "user": "0" * 81},
            "hints": {"level": level, "technique": technique, "title": technique},
        },
    }


def error_reply(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}, "data": None}


class SolverStub:
    """Records solver calls and answers them through a callable."""

    def __init__(self, reply: Callable[[httpx.Request], object]):
        self.reply = reply
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, content=json.dumps(reply), headers={"content-type": "application/json"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def techniques_of(self, index: int) -> Optional[str]:
        return self.requests[index].url.params.get("techniques")
