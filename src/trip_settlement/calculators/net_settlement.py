"""Net settlement: one unsigned amount and a direction."""

from __future__ import annotations

from decimal import Decimal

from trip_settlement.calculators.types import (
    NetSettlement,
    SettlementDirection,
    round_to_cents,
)


class NetSettlementCalculator:
    """Folds the driver payable into a net amount and direction.

    The payable is rounded to cents first, then compared against exact zero.
    """

    @staticmethod
    def calculate(payable_amount: Decimal) -> NetSettlement:
        amount = round_to_cents(payable_amount)

        if amount > 0:
            direction = SettlementDirection.COMPANY_OWES_DRIVER
        elif amount < 0:
            direction = SettlementDirection.DRIVER_OWES_COMPANY
        else:
            direction = SettlementDirection.EVEN

        return NetSettlement(net_amount=abs(amount), direction=direction)
