"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trip_settlement.api.routes import finance_router, health_router, settlements_router
from trip_settlement.calculators.engine import TripNotSettleableError
from trip_settlement.calculators.pay_modes import (
    InvalidPercentError,
    InvalidRateParameterError,
    MissingRateParameterError,
    MissingTripMetricError,
    UnknownPayModeError,
)
from trip_settlement.calculators.types import InvalidRecordError
from trip_settlement.config import get_settings
from trip_settlement.database import dispose_db, init_db
from trip_settlement.logging_config import configure_logging
from trip_settlement.services.settlement_service import (
    InvalidPaymentMethodError,
    SettlementAlreadyExistsError,
)
from trip_settlement.services.state_machine import InvalidTransitionError, SettlementLockedError
from trip_settlement.services.trip_repository import NotFoundError

logger = logging.getLogger(__name__)

# Domain error -> (HTTP status, error code)
ERROR_CODES: dict[type[Exception], tuple[int, str]] = {
    MissingRateParameterError: (status.HTTP_400_BAD_REQUEST, "MISSING_RATE_PARAMETER"),
    InvalidRateParameterError: (status.HTTP_400_BAD_REQUEST, "INVALID_RATE_PARAMETER"),
    InvalidPercentError: (status.HTTP_400_BAD_REQUEST, "INVALID_PERCENT"),
    UnknownPayModeError: (status.HTTP_400_BAD_REQUEST, "UNKNOWN_PAY_MODE"),
    MissingTripMetricError: (status.HTTP_400_BAD_REQUEST, "MISSING_TRIP_METRIC"),
    InvalidRecordError: (status.HTTP_400_BAD_REQUEST, "INVALID_RECORD"),
    TripNotSettleableError: (status.HTTP_400_BAD_REQUEST, "TRIP_NOT_SETTLEABLE"),
    InvalidPaymentMethodError: (status.HTTP_400_BAD_REQUEST, "INVALID_PAYMENT_METHOD"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    SettlementAlreadyExistsError: (status.HTTP_409_CONFLICT, "SETTLEMENT_ALREADY_EXISTS"),
    SettlementLockedError: (status.HTTP_409_CONFLICT, "SETTLEMENT_LOCKED"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Trip Settlement API",
        description="Trip settlement and driver compensation",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Map domain errors to their status code and error code."""
        status_code, code = ERROR_CODES[type(exc)]
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})

    for exc_class in ERROR_CODES:
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(settlements_router, prefix="/api/v1")
    app.include_router(finance_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
