"""Settlement API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, status

from trip_settlement.api.dependencies import DbSession, OwnerId
from trip_settlement.api.schemas import (
    ErrorResponse,
    MarkPaidRequest,
    PayComponentResponse,
    PayPreviewRequest,
    PayPreviewResponse,
    SettlementResponse,
    TransitionRequest,
)
from trip_settlement.calculators.pay_modes import PayModeCalculator
from trip_settlement.calculators.types import TripMetrics
from trip_settlement.services.settlement_service import SettlementService

router = APIRouter(tags=["settlements"])


# ============================================================================
# Pay preview
# ============================================================================


@router.post(
    "/pay-preview",
    response_model=PayPreviewResponse,
    responses={400: {"model": ErrorResponse}},
)
async def preview_pay(payload: PayPreviewRequest) -> PayPreviewResponse:
    """Compute gross pay for a pay configuration without touching storage."""
    metrics = TripMetrics(
        miles=payload.miles,
        cubic_feet=payload.cubic_feet,
        revenue=payload.revenue,
        days=payload.days,
    )
    result = PayModeCalculator.calculate_from_fields(
        payload.pay_mode,
        metrics,
        rate_per_mile=payload.rate_per_mile,
        rate_per_cuft=payload.rate_per_cuft,
        percent_of_revenue=payload.percent_of_revenue,
        flat_daily_rate=payload.flat_daily_rate,
    )
    return PayPreviewResponse(
        pay_mode=result.pay_mode,
        gross_pay=result.gross_pay,
        rounding_adjustment=result.rounding_adjustment,
        components=[
            PayComponentResponse(
                kind=c.kind.value,
                quantity=c.quantity,
                rate=c.rate,
                amount=c.amount,
                description=c.description,
            )
            for c in result.components
        ],
    )


# ============================================================================
# Trip settlement
# ============================================================================


@router.post(
    "/trips/{trip_id}/settlement",
    response_model=SettlementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def close_and_settle(
    db: DbSession,
    owner_id: OwnerId,
    trip_id: Annotated[UUID, Path()],
) -> SettlementResponse:
    """Close a trip and create (or recompute) its settlement."""
    service = SettlementService(db)
    settlement = await service.close_and_settle(trip_id, owner_id)
    await db.commit()
    return SettlementResponse.model_validate(settlement)


@router.get(
    "/trips/{trip_id}/settlement",
    response_model=SettlementResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_trip_settlement(
    db: DbSession,
    owner_id: OwnerId,
    trip_id: Annotated[UUID, Path()],
) -> SettlementResponse:
    """Get the settlement for a trip."""
    service = SettlementService(db)
    settlement = await service.get_settlement_for_trip(trip_id, owner_id)
    if settlement is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trip {trip_id} has no settlement",
        )
    return SettlementResponse.model_validate(settlement)


@router.post(
    "/settlements/{settlement_id}/recalculate",
    response_model=SettlementResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def recalculate_settlement(
    db: DbSession,
    owner_id: OwnerId,
    settlement_id: Annotated[UUID, Path()],
) -> SettlementResponse:
    """Recompute an unpaid settlement from the trip's current data."""
    service = SettlementService(db)
    settlement = await service.recalculate(settlement_id, owner_id)
    await db.commit()
    return SettlementResponse.model_validate(settlement)


@router.post(
    "/settlements/{settlement_id}/transition",
    response_model=SettlementResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def transition_settlement(
    db: DbSession,
    owner_id: OwnerId,
    settlement_id: Annotated[UUID, Path()],
    payload: TransitionRequest,
) -> SettlementResponse:
    """Move a settlement to review or approved, or reopen it."""
    service = SettlementService(db)
    settlement = await service.transition_status(settlement_id, owner_id, payload.to_status)
    await db.commit()
    return SettlementResponse.model_validate(settlement)


@router.post(
    "/settlements/{settlement_id}/mark-paid",
    response_model=SettlementResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def mark_settlement_paid(
    db: DbSession,
    owner_id: OwnerId,
    settlement_id: Annotated[UUID, Path()],
    payload: MarkPaidRequest,
) -> SettlementResponse:
    """Record payment of a settlement."""
    service = SettlementService(db)
    settlement = await service.mark_paid(
        settlement_id,
        owner_id,
        method=payload.method,
        reference=payload.reference,
        notes=payload.notes,
    )
    await db.commit()
    return SettlementResponse.model_validate(settlement)
