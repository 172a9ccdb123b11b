import logging
from typing import Optional

from sudojo_api.models.dc_models import SolverResponseModel
from sudojo_api.solver_client import SolverClient


async def fetch_hint(
    *,
    solver_client: SolverClient,
    original: str,
    user: str,
    autopencilmarks: str,
    pencilmarks: str,
    techniques: Optional[str] = None,
) -> SolverResponseModel:
    """Ask the solver for the next hint, widening a technique filter once if needed.

    A filtered request that is rejected, or that only yields a level-0
    auto-pencilmark hint, is retried once without the filter. Transport
    failures are not retried and surface as SolverUnavailableError.
    """
    if not techniques:
        return await solver_client.solve(original, user, autopencilmarks, pencilmarks)

    result = await solver_client.solve(original, user, autopencilmarks, pencilmarks, techniques)
    if not result.success or not result.data or result.hint_level == 0:
        logging.info(f"No hint for techniques={techniques}, retrying without technique filter")
        result = await solver_client.solve(original, user, autopencilmarks, pencilmarks)
    return result
