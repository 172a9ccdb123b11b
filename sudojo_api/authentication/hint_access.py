import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sudojo_api.authentication.firebase_authentication import (
    FirebaseAuthentication,
    IdentityProviderUnavailableError,
    InvalidTokenError,
)
from sudojo_api.authentication.subscription_client import (
    SubscriptionClient,
    SubscriptionLookupError,
)
from sudojo_api.dependencies import (
    get_access_policy,
    get_daily_access_service,
    get_subscription_client,
    get_token_verifier,
)
from sudojo_api.domain.hint_rules import (
    HintAccessPolicy,
    decide_hint_access,
    resolve_user_state,
)
from sudojo_api.models.dc_models import (
    FirebaseUserModel,
    HintAccessContext,
    HintAccessDecision,
    UserState,
)
from sudojo_api.services.access_db import DailyAccessService

security = HTTPBearer(auto_error=False)


class DailyLimitReachedError(Exception):
    """Raised by the daily access gate; rendered as a 402 upsell payload."""

    def __init__(self, endpoint: str):
        super().__init__(f"Daily limit reached for {endpoint}")
        self.endpoint = endpoint


def invalid_token_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_hint_access(
    user: Optional[FirebaseUserModel],
    policy: HintAccessPolicy,
    subscription_client: SubscriptionClient,
) -> HintAccessDecision:
    """Map the caller to a tier and the highest hint level it may see

    Args:
        user (FirebaseUserModel | None): Verified caller, None when anonymous
        policy (HintAccessPolicy): Tier table and site administrators
        subscription_client (SubscriptionClient): Entitlement lookup

    Returns:
        HintAccessDecision: max_hint_level (None for unbounded) and user_state
    """
    if user is None:
        return decide_hint_access(UserState.anonymous, policy)

    if policy.is_site_admin(user.email):
        return decide_hint_access(UserState.admin, policy)

    try:
        entitlements = await subscription_client.get_entitlements(user.uid)
    except SubscriptionLookupError as e:
        # Advisory gate: fall back to the free tier instead of failing the request.
        logging.error(f"Entitlement lookup failed for {user.uid}: {e}")
        entitlements = []

    user_state = resolve_user_state(
        authenticated=True,
        is_admin=False,
        entitlements=entitlements,
    )
    return decide_hint_access(user_state, policy)


async def hint_access_check(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    policy: HintAccessPolicy = Depends(get_access_policy),
    token_verifier: FirebaseAuthentication = Depends(get_token_verifier),
    subscription_client: SubscriptionClient = Depends(get_subscription_client),
) -> HintAccessContext:
    """Pre-request gate for hint endpoints. Anonymous callers are allowed.

    Raises:
        HTTPException: 401 when a bearer token is sent but rejected

    Returns:
        HintAccessContext: The access decision plus the verified user, if any
    """
    user: Optional[FirebaseUserModel] = None
    if credentials is not None:
        try:
            user = await token_verifier.verify_token(credentials.credentials)
        except InvalidTokenError:
            raise invalid_token_exception()
        except IdentityProviderUnavailableError as e:
            logging.warning(f"Identity provider unavailable, treating caller as anonymous: {e}")

    decision = await resolve_hint_access(user, policy, subscription_client)
    logging.debug(f"Hint access: {decision.user_state.value}, max level {decision.max_hint_level}")
    return HintAccessContext(decision=decision, user=user)


def require_daily_access(endpoint: str):
    """Build a dependency that limits free users to a number of accesses per day

    Args:
        endpoint (str): Identifier used for counting, e.g. "boards"

    Returns:
        Callable: FastAPI dependency returning the verified user
    """

    async def daily_access_check(
        request: Request,
        response: Response,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        policy: HintAccessPolicy = Depends(get_access_policy),
        token_verifier: FirebaseAuthentication = Depends(get_token_verifier),
        subscription_client: SubscriptionClient = Depends(get_subscription_client),
        access_service: DailyAccessService = Depends(get_daily_access_service),
    ) -> FirebaseUserModel:
        if credentials is None:
            detail = (
                "Invalid authorization format. Use: Bearer <token>"
                if request.headers.get("Authorization")
                else "Authorization header required"
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=detail,
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            user = await token_verifier.verify_token(credentials.credentials)
        except InvalidTokenError:
            raise invalid_token_exception()
        except IdentityProviderUnavailableError:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication service unavailable",
            )

        if policy.is_site_admin(user.email):
            return user

        try:
            if await subscription_client.get_entitlements(user.uid):
                return user
        except SubscriptionLookupError as e:
            logging.error(f"Entitlement lookup failed for {user.uid}: {e}")

        granted, remaining = await access_service.check_and_record_access(user.uid, endpoint)
        if not granted:
            raise DailyLimitReachedError(endpoint)

        response.headers["X-Daily-Remaining"] = str(remaining)
        return user

    return daily_access_check
