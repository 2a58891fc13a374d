"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from prepwise_payments.api.router import router as payments_router
from prepwise_payments.config import settings
from prepwise_payments.database.engine import async_session_factory, init_db
from prepwise_payments.errors import InvalidInput, PaymentOTPError
from prepwise_payments.services.challenge_store import ChallengeStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


async def purge_expired_challenges_forever(interval: float) -> None:
    """Periodically delete challenges whose validity window has closed."""
    while True:
        await asyncio.sleep(interval)
        try:
            async with async_session_factory() as session:
                await ChallengeStore(session).purge_expired()
        except Exception:
            logger.exception("Expired challenge purge failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    await init_db()
    logger.info("Database initialised")
    purge_task = asyncio.create_task(
        purge_expired_challenges_forever(settings.otp_cleanup_interval_seconds)
    )
    yield
    purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await purge_task
    logger.info("Shutting down %s …", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="OTP-gated payment confirmation for PrepWise training registrations",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(payments_router)


@app.exception_handler(PaymentOTPError)
async def payment_otp_error_handler(request: Request, exc: PaymentOTPError) -> JSONResponse:
    logger.info("%s %s → %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    detail = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    error = InvalidInput(detail)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name}
