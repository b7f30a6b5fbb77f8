"""Settlement service - close & settle, recalculate, transition and payment."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trip_settlement.calculators.engine import (
    SettlementCalculation,
    SettlementEngine,
    TripNotSettleableError,
)
from trip_settlement.calculators.line_builder import SettlementLineBuilder
from trip_settlement.calculators.trip_totals import compute_trip_totals
from trip_settlement.calculators.types import round_to_cents
from trip_settlement.config import SettlementPolicy
from trip_settlement.models import (
    SettlementLineItem,
    SettlementPayable,
    SettlementReceivable,
    Trip,
    TripSettlement,
)
from trip_settlement.models.base import utcnow
from trip_settlement.services.state_machine import (
    EntryStatus,
    InvalidTransitionError,
    SettlementLockedError,
    SettlementStateMachine,
    SettlementStatus,
)
from trip_settlement.services.trip_repository import NotFoundError, TripInputs, TripRepository

logger = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    """How a driver settlement was paid out."""

    DIRECT_DEPOSIT = "direct_deposit"
    CHECK = "check"
    CASH = "cash"
    ZELLE = "zelle"
    VENMO = "venmo"


class InvalidPaymentMethodError(ValueError):
    """Raised when mark-paid is given an unknown payment method."""

    def __init__(self, method: str):
        self.method = method
        allowed = ", ".join(m.value for m in PaymentMethod)
        super().__init__(f"Unknown payment method {method!r} (expected one of: {allowed})")


class SettlementAlreadyExistsError(Exception):
    """Raised when a trip already has a settlement that cannot be recomputed."""

    def __init__(self, trip_id: UUID, settlement_id: UUID | None = None):
        self.trip_id = trip_id
        self.settlement_id = settlement_id
        msg = f"Trip {trip_id} already has a settlement"
        if settlement_id:
            msg += f" ({settlement_id})"
        super().__init__(msg)


class SettlementService:
    """Service for the settlement lifecycle.

    Operations:
    - close_and_settle: Compute and persist the settlement for a trip
    - recalculate: Recompute an unpaid settlement in place
    - transition_status: Move between pending, review and approved
    - mark_paid: Record payment and lock the settlement

    Every computation completes before the first row is written. The caller
    owns the transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: SettlementEngine | None = None,
        policy: SettlementPolicy | None = None,
    ):
        self.session = session
        self.policy = policy or (engine.policy if engine else SettlementPolicy())
        self.engine = engine or SettlementEngine(self.policy)
        self.trips = TripRepository(session)

    def _settlement_query(self):
        return select(TripSettlement).options(
            selectinload(TripSettlement.receivables),
            selectinload(TripSettlement.payables),
            selectinload(TripSettlement.line_items),
        ).execution_options(populate_existing=True)

    async def get_settlement(self, settlement_id: UUID, owner_id: UUID) -> TripSettlement:
        """Load a settlement with receivables, payables and line items."""
        result = await self.session.execute(
            self._settlement_query().where(
                TripSettlement.settlement_id == settlement_id,
                TripSettlement.owner_id == owner_id,
            )
        )
        settlement = result.scalar_one_or_none()
        if settlement is None:
            raise NotFoundError("Settlement", settlement_id)
        return settlement

    async def get_settlement_for_trip(
        self, trip_id: UUID, owner_id: UUID
    ) -> TripSettlement | None:
        result = await self.session.execute(
            self._settlement_query().where(
                TripSettlement.trip_id == trip_id,
                TripSettlement.owner_id == owner_id,
            )
        )
        return result.scalar_one_or_none()

    async def close_and_settle(self, trip_id: UUID, owner_id: UUID) -> TripSettlement:
        """Close a trip and create its settlement.

        If the trip already has an unpaid settlement it is recomputed in
        place and returned.

        Raises:
            NotFoundError: If the trip does not exist for this owner
            TripNotSettleableError: If the trip has no driver or was cancelled
            SettlementAlreadyExistsError: If the trip's settlement is paid, or
                a concurrent settle inserted one first
        """
        trip, inputs = await self.trips.load_snapshot(trip_id, owner_id)
        if trip.status == "cancelled":
            raise TripNotSettleableError(trip_id, "trip was cancelled")
        calculation = self._calculate(inputs)

        existing = await self.get_settlement_for_trip(trip_id, owner_id)
        if existing is not None:
            if existing.is_paid:
                raise SettlementAlreadyExistsError(trip_id, existing.settlement_id)
            await self._replace_results(existing, calculation)
            existing.recalculation_count += 1
            self._update_trip(trip, inputs, calculation)
            await self.session.flush()
            logger.info(
                "Trip %s already settled as %s; recomputed in place",
                trip_id,
                existing.settlement_id,
            )
            return existing

        settlement = TripSettlement(
            owner_id=owner_id,
            trip_id=trip_id,
            status=SettlementStatus.PENDING.value,
            recalculation_count=0,
            receivables=[],
            payables=[],
            line_items=[],
        )
        self._apply_totals(settlement, calculation)
        self.session.add(settlement)

        # Children are attached after this flush; their failures propagate as is
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise SettlementAlreadyExistsError(trip_id) from exc

        settlement.receivables.extend(self._build_receivables(settlement, calculation))
        settlement.payables.extend(self._build_payables(settlement, calculation))
        settlement.line_items.extend(self._build_line_items(calculation))
        self._update_trip(trip, inputs, calculation)
        await self.session.flush()

        logger.info(
            "Settled trip %s as %s: revenue %s, driver pay %s, net %s %s",
            trip_id,
            settlement.settlement_id,
            settlement.total_revenue,
            settlement.total_driver_pay,
            settlement.net_amount,
            settlement.net_direction,
        )
        return settlement

    async def recalculate(self, settlement_id: UUID, owner_id: UUID) -> TripSettlement:
        """Recompute a settlement from the trip's current loads and expenses.

        Unchanged inputs reproduce the same calculation id and amounts.

        Raises:
            SettlementLockedError: If the settlement is paid
        """
        settlement = await self.get_settlement(settlement_id, owner_id)
        SettlementStateMachine.validate_recalculation(settlement.status, settlement_id)

        trip, inputs = await self.trips.load_snapshot(settlement.trip_id, owner_id)
        calculation = self._calculate(inputs)

        if calculation.calculation_id == settlement.calculation_id:
            logger.info(
                "Settlement %s unchanged (calculation %s)",
                settlement_id,
                calculation.calculation_id,
            )
        else:
            await self._replace_results(settlement, calculation)
            logger.info(
                "Recalculated settlement %s: net %s %s",
                settlement_id,
                settlement.net_amount,
                settlement.net_direction,
            )
        settlement.recalculation_count += 1
        self._update_trip(trip, inputs, calculation)
        await self.session.flush()
        return settlement

    async def transition_status(
        self, settlement_id: UUID, owner_id: UUID, to_status: str
    ) -> TripSettlement:
        """Move a settlement between pending, review and approved.

        Payment goes through mark_paid, which records the method.

        Raises InvalidTransitionError if transition is not allowed.
        """
        settlement = await self.get_settlement(settlement_id, owner_id)
        from_status = settlement.status

        if to_status == SettlementStatus.PAID:
            raise InvalidTransitionError(from_status, to_status, "use mark-paid to record payment")
        SettlementStateMachine.validate_transition(from_status, to_status, self.policy)

        settlement.status = SettlementStatus(to_status).value
        await self.session.flush()

        if SettlementStateMachine.is_reopen(from_status, to_status):
            logger.info("Settlement %s reopened for review", settlement_id)
        else:
            logger.info("Settlement %s: %s -> %s", settlement_id, from_status, to_status)
        return settlement

    async def mark_paid(
        self,
        settlement_id: UUID,
        owner_id: UUID,
        method: str,
        reference: str | None = None,
        notes: str | None = None,
        paid_at: datetime | None = None,
    ) -> TripSettlement:
        """Record payment of a settlement and lock it.

        Repeating the call with the same method and reference is a no-op.

        Raises:
            InvalidPaymentMethodError: If method is not a known payment method
            SettlementLockedError: If already paid with different details
            InvalidTransitionError: If policy requires approval first
        """
        try:
            payment_method = PaymentMethod(method)
        except ValueError:
            raise InvalidPaymentMethodError(method) from None

        settlement = await self.get_settlement(settlement_id, owner_id)

        if settlement.is_paid:
            if (
                settlement.payment_method == payment_method.value
                and settlement.payment_reference == reference
            ):
                return settlement
            raise SettlementLockedError(settlement_id, "change payment details")

        SettlementStateMachine.validate_transition(
            settlement.status, SettlementStatus.PAID, self.policy
        )

        settlement.status = SettlementStatus.PAID.value
        settlement.payment_method = payment_method.value
        settlement.payment_reference = reference
        settlement.payment_notes = notes
        settlement.paid_at = paid_at or utcnow()
        for payable in settlement.payables:
            payable.status = EntryStatus.PAID.value
        await self.session.flush()

        logger.info(
            "Settlement %s paid via %s: %s %s",
            settlement_id,
            payment_method.value,
            settlement.net_amount,
            settlement.net_direction,
        )
        return settlement

    # ===== Internals =====

    def _calculate(self, inputs: TripInputs) -> SettlementCalculation:
        trip = inputs.trip
        if trip.driver_id is None:
            raise TripNotSettleableError(trip.trip_id, "no driver assigned")
        if inputs.pay_config is None:
            raise TripNotSettleableError(trip.trip_id, f"driver {trip.driver_id} not found")
        return self.engine.calculate(trip, inputs.pay_config, inputs.loads, inputs.expenses)

    async def _replace_results(
        self, settlement: TripSettlement, calculation: SettlementCalculation
    ) -> None:
        # Old rows must be gone before new ones hit the per-driver unique key.
        settlement.receivables.clear()
        settlement.payables.clear()
        settlement.line_items.clear()
        await self.session.flush()

        self._apply_totals(settlement, calculation)
        settlement.receivables.extend(self._build_receivables(settlement, calculation))
        settlement.payables.extend(self._build_payables(settlement, calculation))
        settlement.line_items.extend(self._build_line_items(calculation))
        await self.session.flush()

    @staticmethod
    def _apply_totals(settlement: TripSettlement, calculation: SettlementCalculation) -> None:
        settlement.driver_id = calculation.driver_id
        settlement.total_revenue = calculation.total_revenue
        settlement.total_driver_pay = calculation.total_driver_pay
        settlement.total_expenses = calculation.total_expenses
        settlement.total_profit = calculation.total_profit
        settlement.total_reimbursements = round_to_cents(calculation.expenses.driver_paid)
        settlement.total_collected = round_to_cents(calculation.revenue.total_collected)
        settlement.net_amount = calculation.net.net_amount
        settlement.net_direction = calculation.net.direction.value
        settlement.has_overcollection = calculation.has_overcollection
        settlement.pay_mode = calculation.pay.pay_mode
        settlement.pay_breakdown_json = calculation.pay.to_dict()
        settlement.calculation_id = calculation.calculation_id
        settlement.inputs_fingerprint = calculation.inputs_fingerprint

    @staticmethod
    def _build_receivables(
        settlement: TripSettlement, calculation: SettlementCalculation
    ) -> list[SettlementReceivable]:
        return [
            SettlementReceivable(
                owner_id=settlement.owner_id,
                trip_id=settlement.trip_id,
                position=position,
                company_id=candidate.company_id,
                company_name=candidate.company_name,
                revenue=candidate.revenue,
                collected=candidate.collected,
                amount=candidate.amount,
                overcollected=candidate.overcollected,
                status=EntryStatus.OPEN.value,
            )
            for position, candidate in enumerate(calculation.receivables)
        ]

    @staticmethod
    def _build_payables(
        settlement: TripSettlement, calculation: SettlementCalculation
    ) -> list[SettlementPayable]:
        payable = calculation.payable
        return [
            SettlementPayable(
                owner_id=settlement.owner_id,
                trip_id=settlement.trip_id,
                driver_id=payable.driver_id,
                gross_pay=payable.gross_pay,
                reimbursements=payable.reimbursements,
                collections=payable.collections,
                amount=payable.amount,
                status=EntryStatus.OPEN.value,
            )
        ]

    @staticmethod
    def _build_line_items(calculation: SettlementCalculation) -> list[SettlementLineItem]:
        return [
            SettlementLineItem(
                position=position,
                line_type=line.line_type.value,
                description=line.description,
                amount=line.amount,
                quantity=line.quantity,
                rate=line.rate,
                load_id=line.load_id,
                company_id=line.company_id,
                expense_id=line.expense_id,
                calculation_id=calculation.calculation_id,
                line_hash=SettlementLineBuilder.compute_line_hash(line),
            )
            for position, line in enumerate(calculation.lines)
        ]

    @staticmethod
    def _update_trip(trip: Trip, inputs: TripInputs, calculation: SettlementCalculation) -> None:
        totals = compute_trip_totals(
            inputs.loads, inputs.expenses, driver_pay=calculation.total_driver_pay
        )
        trip.revenue_total = totals.revenue_total
        trip.driver_pay_total = totals.driver_pay_total
        trip.fuel_total = totals.fuel_total
        trip.tolls_total = totals.tolls_total
        trip.other_expenses_total = totals.other_expenses_total
        trip.profit_total = totals.profit_total
        trip.actual_miles = calculation.metrics.miles
        if trip.status != "settled":
            trip.status = "settled"
            trip.settled_at = utcnow()
