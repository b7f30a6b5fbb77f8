"""Finance summary endpoint."""

from typing import Annotated

from fastapi import APIRouter, Query

from trip_settlement.api.dependencies import DbSession, OwnerId
from trip_settlement.api.schemas import FinanceSummaryResponse
from trip_settlement.services.finance_service import FinanceSummaryService

router = APIRouter(prefix="/finance", tags=["finance"])


@router.get("/summary", response_model=FinanceSummaryResponse)
async def get_finance_summary(
    db: DbSession,
    owner_id: OwnerId,
    period_days: Annotated[int | None, Query(ge=1)] = None,
) -> FinanceSummaryResponse:
    """Totals, open receivables, top companies and recent settlements."""
    summary = await FinanceSummaryService(db).get_summary(owner_id, period_days)
    return FinanceSummaryResponse.model_validate(summary.to_dict())
