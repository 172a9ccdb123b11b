from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sudojo_api import load_secrets
from sudojo_api.authentication.firebase_authentication import FirebaseAuthentication
from sudojo_api.authentication.hint_access import DailyLimitReachedError
from sudojo_api.authentication.subscription_client import SubscriptionClient
from sudojo_api.converter import ResponseConverter
from sudojo_api.create_postgres_engine import create_postgres_engine
from sudojo_api.db import create_session_factory, create_tables
from sudojo_api.domain.hint_rules import HintAccessPolicy, parse_admin_emails
from sudojo_api.routers import solver
from sudojo_api.services.access_db import DailyAccessService
from sudojo_api.services.hint_tracking import HintUsageTracker
from sudojo_api.solver_client import SolverClient

logging.basicConfig(level=logging.INFO)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

HEALTH_RESPONSE = {
    "name": "Sudojo API",
    "version": "1.0.0",
    "status": "healthy",
}

response_converter = ResponseConverter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build every service handle once and hand it to the routers via app.state.
    This function is called to start the server.
    """
    solver_url = load_secrets.get_required_env("SOLVER_URL")

    engine = create_postgres_engine(load_secrets.database_url)
    await create_tables(engine)
    Session = create_session_factory(engine)

    policy = HintAccessPolicy(admin_emails=parse_admin_emails(load_secrets.siteadmin_emails))
    app.state.access_policy = policy
    app.state.token_verifier = FirebaseAuthentication(load_secrets.firebase_project_id)
    app.state.subscription_client = SubscriptionClient(
        load_secrets.revenuecat_api_key, load_secrets.revenuecat_url
    )
    app.state.solver_client = SolverClient(solver_url, load_secrets.solver_timeout)
    app.state.hint_tracker = HintUsageTracker(Session, atomic=load_secrets.hint_tracking_atomic)
    app.state.daily_access_service = DailyAccessService(Session, policy)
    logging.info(f"Hint tracking atomic transaction: {load_secrets.hint_tracking_atomic}")

    scheduler = AsyncIOScheduler()
    # Access logs are only needed for the current day's count
    scheduler.add_job(
        app.state.daily_access_service.delete_expired_access_logs,
        "interval",
        hours=24,
        args=[load_secrets.access_log_retention_days],
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        await app.state.solver_client.aclose()
        await app.state.subscription_client.aclose()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Daily-Remaining"],
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(solver.solver_router)
app.include_router(api_router)


@app.get("/")
@app.get("/health")
async def health():
    return response_converter.success_response(HEALTH_RESPONSE)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Not found" if exc.detail == "Not Found" else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=response_converter.error_response(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=response_converter.error_response(
            "Invalid request: " + "; ".join(str(error["msg"]) for error in exc.errors())
        ),
    )


@app.exception_handler(DailyLimitReachedError)
async def daily_limit_handler(request: Request, exc: DailyLimitReachedError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content=response_converter.daily_limit_response(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.error(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response_converter.error_response("Internal server error"),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=load_secrets.server_port)
