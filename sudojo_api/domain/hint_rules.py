"""Hint access and hint scoring rules that are independent from HTTP and DB.

Rule of thumb:
- OK: tier lookup, gate decisions, point arithmetic.
- Not OK: touching DB sessions, token verification, subscription lookups.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional

from sudojo_api.models.dc_models import Entitlement, HintAccessDecision, UserState

FREE_MAX_HINT_LEVEL = 3
BLUE_BELT_MAX_HINT_LEVEL = 5
HINT_POINTS_MULTIPLIER = 2

# None means every hint level is visible.
DEFAULT_TIER_LIMITS: Mapping[UserState, Optional[int]] = MappingProxyType(
    {
        UserState.admin: None,
        UserState.red_belt: None,
        UserState.blue_belt: BLUE_BELT_MAX_HINT_LEVEL,
        UserState.free: FREE_MAX_HINT_LEVEL,
        UserState.anonymous: FREE_MAX_HINT_LEVEL,
    }
)

DEFAULT_DAILY_LIMITS: Mapping[str, int] = MappingProxyType(
    {
        "boards": 2,
        "dailies": 2,
        "challenges": 2,
        "solve": 10,
    }
)
DEFAULT_DAILY_LIMIT = 2


@dataclass(frozen=True)
class HintAccessPolicy:
    """Immutable access configuration, built once at startup and injected."""

    admin_emails: FrozenSet[str] = frozenset()
    tier_limits: Mapping[UserState, Optional[int]] = field(default_factory=lambda: DEFAULT_TIER_LIMITS)
    daily_limits: Mapping[str, int] = field(default_factory=lambda: DEFAULT_DAILY_LIMITS)
    default_daily_limit: int = DEFAULT_DAILY_LIMIT

    def is_site_admin(self, email: Optional[str]) -> bool:
        if not email:
            return False
        return email.strip().lower() in self.admin_emails

    def daily_limit(self, endpoint: str) -> int:
        return self.daily_limits.get(endpoint, self.default_daily_limit)


def parse_admin_emails(raw: str) -> FrozenSet[str]:
    return frozenset(
        email.strip().lower() for email in raw.split(",") if email.strip()
    )


def resolve_user_state(
    *,
    authenticated: bool,
    is_admin: bool = False,
    entitlements: Iterable[str] = (),
) -> UserState:
    """First matching rule wins: admin, red_belt, blue_belt, free, anonymous."""
    if not authenticated:
        return UserState.anonymous
    if is_admin:
        return UserState.admin
    held = set(entitlements)
    if Entitlement.red_belt.value in held:
        return UserState.red_belt
    if Entitlement.blue_belt.value in held:
        return UserState.blue_belt
    return UserState.free


def decide_hint_access(user_state: UserState, policy: HintAccessPolicy) -> HintAccessDecision:
    return HintAccessDecision(
        max_hint_level=policy.tier_limits[user_state],
        user_state=user_state,
    )


def is_hint_allowed(hint_level: int, decision: HintAccessDecision) -> bool:
    # Equality is allowed: a level-3 hint is visible with max level 3.
    if decision.max_hint_level is None:
        return True
    return hint_level <= decision.max_hint_level


def get_required_entitlement(hint_level: int) -> Optional[Entitlement]:
    """Inverse of the tier table: which entitlement unlocks this hint level."""
    if hint_level <= FREE_MAX_HINT_LEVEL:
        return None
    if hint_level <= BLUE_BELT_MAX_HINT_LEVEL:
        return Entitlement.blue_belt
    return Entitlement.red_belt


@dataclass(frozen=True)
class HintDenial:
    hint_level: int
    max_hint_level: Optional[int]
    required_entitlement: Optional[Entitlement]
    user_state: UserState


def check_hint_gate(hint_level: int, decision: HintAccessDecision) -> Optional[HintDenial]:
    """Return None when the hint may be shown, otherwise the denial details."""
    if is_hint_allowed(hint_level, decision):
        return None
    return HintDenial(
        hint_level=hint_level,
        max_hint_level=decision.max_hint_level,
        required_entitlement=get_required_entitlement(hint_level),
        user_state=decision.user_state,
    )


def scoring_level(technique_level: int) -> int:
    # A level-0 (auto-fill) hint still scores as level 1.
    return max(technique_level, 1)


def hint_points(technique_level: int) -> int:
    return HINT_POINTS_MULTIPLIER * scoring_level(technique_level)
