import asyncio
import logging
from typing import Dict, Optional

import httpx

from sudojo_api.models.dc_models import SolverResponseModel

SOLVER_TIMEOUT_SECONDS = 120.0


class SolverUnavailableError(Exception):
    """The solver could not be reached, timed out or answered with a non-2xx status."""


class SolverClient:
    """Thin async proxy to the external solving engine."""

    def __init__(
        self,
        base_url: str,
        timeout: float = SOLVER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def request(self, endpoint: str, params: Dict[str, str]) -> SolverResponseModel:
        """Call {base_url}/api/{endpoint} and decode the solver envelope

        Args:
            endpoint (str): "solve", "validate" or "generate"
            params (Dict[str, str]): Query parameters forwarded verbatim

        Raises:
            SolverUnavailableError: On timeout, transport failure or non-2xx status

        Returns:
            SolverResponseModel: success flag, error and data as sent by the solver
        """
        try:
            # httpx limits each phase separately, the deadline covers the whole call
            response = await asyncio.wait_for(
                self.client.get(f"/api/{endpoint}", params=params), self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logging.error(f"Solver request timed out after {self.timeout}s for {endpoint}")
            raise SolverUnavailableError(f"Solver service timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logging.error(f"Failed to fetch {endpoint} from solver: {e}")
            raise SolverUnavailableError(str(e)) from e

        if response.is_error:
            logging.error(f"Solver returned {response.status_code} for {endpoint}")
            raise SolverUnavailableError(f"Solver service error: {response.status_code}")

        try:
            return SolverResponseModel.model_validate(response.json())
        except ValueError as e:
            logging.error(f"Solver sent an unreadable body for {endpoint}: {e}")
            raise SolverUnavailableError("Solver service sent an invalid response") from e

    async def solve(
        self,
        original: str,
        user: str,
        autopencilmarks: str,
        pencilmarks: str,
        techniques: Optional[str] = None,
    ) -> SolverResponseModel:
        params = {
            "original": original,
            "user": user,
            "autopencilmarks": autopencilmarks,
            "pencilmarks": pencilmarks,
        }
        if techniques:
            params["techniques"] = techniques
        return await self.request("solve", params)

    async def validate(self, params: Dict[str, str]) -> SolverResponseModel:
        return await self.request("validate", params)

    async def generate(self, params: Dict[str, str]) -> SolverResponseModel:
        return await self.request("generate", params)
