"""FastAPI providers for the handles built in the lifespan.

Every service handle is created once at startup, stored on app.state and
handed to request handlers from here. Tests swap them through
app.dependency_overrides.
"""

from fastapi import Request

from sudojo_api.authentication.firebase_authentication import FirebaseAuthentication
from sudojo_api.authentication.subscription_client import SubscriptionClient
from sudojo_api.domain.hint_rules import HintAccessPolicy
from sudojo_api.services.access_db import DailyAccessService
from sudojo_api.services.hint_tracking import HintUsageTracker
from sudojo_api.solver_client import SolverClient


def get_access_policy(request: Request) -> HintAccessPolicy:
    return request.app.state.access_policy


def get_token_verifier(request: Request) -> FirebaseAuthentication:
    return request.app.state.token_verifier


def get_subscription_client(request: Request) -> SubscriptionClient:
    return request.app.state.subscription_client


def get_solver_client(request: Request) -> SolverClient:
    return request.app.state.solver_client


def get_hint_tracker(request: Request) -> HintUsageTracker:
    return request.app.state.hint_tracker


def get_daily_access_service(request: Request) -> DailyAccessService:
    return request.app.state.daily_access_service
