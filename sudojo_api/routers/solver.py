import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from sudojo_api.authentication.hint_access import hint_access_check
from sudojo_api.converter import ResponseConverter
from sudojo_api.dependencies import get_hint_tracker, get_solver_client
from sudojo_api.domain.hint_rules import check_hint_gate, scoring_level
from sudojo_api.models.dc_models import (
    EMPTY_BOARD,
    EMPTY_PENCILMARKS,
    HintAccessContext,
    HintPointsModel,
)
from sudojo_api.services.hint_tracking import HintUsageTracker
from sudojo_api.services.solver_proxy import fetch_hint
from sudojo_api.solver_client import SolverClient, SolverUnavailableError

DEFAULT_AUTOPENCILMARKS = "false"
BOARD_LENGTH = 81

solver_router = APIRouter(prefix="/solver")
response_converter = ResponseConverter()


def solver_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Solver service unavailable",
    )


class SolverAPI:
    @staticmethod
    @solver_router.get("/solve")
    async def solve(
        original: str = "",
        user: str = EMPTY_BOARD,
        autopencilmarks: str = DEFAULT_AUTOPENCILMARKS,
        pencilmarks: str = EMPTY_PENCILMARKS,
        techniques: Optional[str] = None,
        hint_access: HintAccessContext = Depends(hint_access_check),
        solver_client: SolverClient = Depends(get_solver_client),
        hint_tracker: HintUsageTracker = Depends(get_hint_tracker),
    ):
        """Get the next hint for a puzzle, gated by the caller's subscription tier

        Args:
            original (str): 81 character puzzle
            user (str): 81 character fill state of the user, 0 for empty
            autopencilmarks (str): "true" or "false"
            pencilmarks (str): 81 comma separated pencilmark cells
            techniques (str, optional): Comma delimited technique filter
            hint_access (HintAccessContext): Tier decision and verified user

        Returns:
            dict: Success envelope with the solver data, plus points when tracked.
                402 with a HINT_ACCESS_DENIED error when the hint is above the tier.
        """
        try:
            result = await fetch_hint(
                solver_client=solver_client,
                original=original,
                user=user,
                autopencilmarks=autopencilmarks,
                pencilmarks=pencilmarks,
                techniques=techniques,
            )
            if not result.success or not result.data:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=result.error_message("Solver error"),
                )
            hint_level = result.hint_level
        except SolverUnavailableError as e:
            logging.error(f"Solver proxy error: {e}")
            raise solver_unavailable()
        except ValueError as e:
            logging.error(f"Solver sent an unreadable hint: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solver error: invalid hint level",
            )

        denial = check_hint_gate(hint_level, hint_access.decision)
        if denial is not None:
            logging.info(
                f"Hint level {hint_level} denied for {denial.user_state.value} caller"
            )
            return JSONResponse(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                content=response_converter.hint_access_denied_response(denial),
            )

        response_data = dict(result.data)
        if hint_access.user is not None:
            tracking = await hint_tracker.track_hint_usage(
                hint_access.user.uid, original, hint_level
            )
            if tracking.tracked:
                response_data["points"] = HintPointsModel(
                    points=tracking.hint_points,
                    techniqueLevel=scoring_level(hint_level),
                ).model_dump()

        return response_converter.success_response(response_data)

    @staticmethod
    @solver_router.get("/validate")
    async def validate(
        request: Request,
        original: str = "",
        solver_client: SolverClient = Depends(get_solver_client),
    ):
        """Validate a puzzle: uniqueness, difficulty level and solution. Public."""
        if len(original) != BOARD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid puzzle: original must be 81 characters",
            )
        try:
            result = await solver_client.validate(dict(request.query_params))
        except SolverUnavailableError as e:
            logging.error(f"Validate error: {e}")
            raise solver_unavailable()

        if not result.success or not result.data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=result.error_message("Validation failed"),
            )
        return response_converter.success_response(result.data)

    @staticmethod
    @solver_router.get("/generate")
    async def generate(
        request: Request,
        solver_client: SolverClient = Depends(get_solver_client),
    ):
        """Generate a random puzzle. Public."""
        try:
            result = await solver_client.generate(dict(request.query_params))
        except SolverUnavailableError as e:
            logging.error(f"Generate error: {e}")
            raise solver_unavailable()

        if not result.success or not result.data:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=result.error_message("Generation failed"),
            )
        return response_converter.success_response(result.data)
