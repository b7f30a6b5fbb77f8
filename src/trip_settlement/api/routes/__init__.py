"""API routes."""

from trip_settlement.api.routes.finance import router as finance_router
from trip_settlement.api.routes.health import router as health_router
from trip_settlement.api.routes.settlements import router as settlements_router

__all__ = ["settlements_router", "finance_router", "health_router"]
