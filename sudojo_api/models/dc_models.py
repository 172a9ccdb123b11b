from pydantic import BaseModel
from enum import Enum
from typing import Any, Dict, List, Optional

EMPTY_BOARD = "0" * 81
EMPTY_PENCILMARKS = "," * 80  # 81 empty cells


class UserState(str, Enum):
    anonymous = "anonymous"
    free = "free"
    blue_belt = "blue_belt"
    red_belt = "red_belt"
    admin = "admin"


class Entitlement(str, Enum):
    blue_belt = "blue_belt"
    red_belt = "red_belt"


class HintAccessDecision(BaseModel):
    """Outcome of one access check. max_hint_level None means unbounded."""

    max_hint_level: Optional[int]
    user_state: UserState


class FirebaseUserModel(BaseModel):
    uid: str
    email: Optional[str] = None


class HintAccessContext(BaseModel):
    decision: HintAccessDecision
    user: Optional[FirebaseUserModel] = None


class SolverErrorModel(BaseModel):
    code: str
    message: str


class SolverResponseModel(BaseModel):
    success: bool
    error: Optional[SolverErrorModel] = None
    data: Optional[Dict[str, Any]] = None

    def error_message(self, fallback: str) -> str:
        if self.error is None:
            return fallback
        return f"{self.error.code}: {self.error.message}"

    @property
    def hint_level(self) -> int:
        """Level of the returned hint, 0 when the solver found no technique hint.

        Raises:
            ValueError: The solver sent a level that is not an integer
        """
        if not self.data:
            return 0
        hints = self.data.get("hints")
        if not isinstance(hints, dict):
            return 0
        level = hints.get("level") or 0
        try:
            return int(level)
        except TypeError as e:
            raise ValueError(f"Invalid hint level: {level!r}") from e


class HintPointsModel(BaseModel):
    points: int
    techniqueLevel: int


class TrackingResultModel(BaseModel):
    tracked: bool
    hint_points: int


class HintAccessDeniedErrorModel(BaseModel):
    code: str = "HINT_ACCESS_DENIED"
    message: str
    hintLevel: int
    requiredEntitlement: Optional[Entitlement]
    userState: UserState


class SubscriptionActionModel(BaseModel):
    type: str = "subscription_required"
    options: List[str] = ["subscribe", "restore_purchase"]
