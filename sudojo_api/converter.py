from datetime import datetime, timezone
from typing import Any, Dict

from sudojo_api.domain.hint_rules import HintDenial
from sudojo_api.models.dc_models import HintAccessDeniedErrorModel, SubscriptionActionModel


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ResponseConverter:
    """This class is used to wrap payloads in the API response envelope."""

    def success_response(self, data: Any) -> Dict[str, Any]:
        return {"success": True, "data": data, "timestamp": timestamp()}

    def error_response(self, message: str) -> Dict[str, Any]:
        return {"success": False, "error": message, "timestamp": timestamp()}

    def hint_access_denied_response(self, denial: HintDenial) -> Dict[str, Any]:
        """Convert a hint gate denial into the 402 payload

        Args:
            denial (HintDenial): The hint level that was refused and why

        Returns:
            Dict[str, Any]: Error envelope whose error object carries
                hintLevel, requiredEntitlement and userState
        """
        max_level = "unlimited" if denial.max_hint_level is None else denial.max_hint_level
        error = HintAccessDeniedErrorModel(
            message=(
                "This hint requires a higher subscription tier. "
                f"Hint level: {denial.hint_level}, your max level: {max_level}"
            ),
            hintLevel=denial.hint_level,
            requiredEntitlement=denial.required_entitlement,
            userState=denial.user_state,
        )
        return {
            "success": False,
            "error": error.model_dump(mode="json"),
            "timestamp": timestamp(),
        }

    def daily_limit_response(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": "Daily limit reached",
            "message": (
                "You've reached your daily puzzle limit. Subscribe to unlock "
                "unlimited puzzles and support the app."
            ),
            "action": SubscriptionActionModel().model_dump(),
            "timestamp": timestamp(),
        }
