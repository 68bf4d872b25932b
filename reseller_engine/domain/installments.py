"""Installment schedule for a financed payment"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import List

from reseller_engine.domain.models import to_decimal


@dataclass(frozen=True)
class Installment:
    """Single payment in a card installment plan"""

    number: int
    amount: Decimal


def split_installments(amount, installment_count: int, places: int = 2) -> List[Installment]:
    """
    Split a financed amount into equal installments.

    Requirements:
    - Equal installments rounded down to the currency unit
    - Last installment absorbs rounding remainder so the schedule sums to amount

    Example:
        1000.01 / 3 -> [333.33, 333.33, 333.35]
    """
    if installment_count <= 0:
        raise ValueError(f"Installment count must be positive, got {installment_count}")

    amount = to_decimal(amount)
    if amount <= 0:
        return []

    unit = Decimal(1).scaleb(-places)
    base_amount = (amount / installment_count).quantize(unit, rounding=ROUND_DOWN)
    remainder = amount - base_amount * installment_count

    installments = []
    for i in range(installment_count):
        # Last installment absorbs remainder to ensure exact total
        value = base_amount + (remainder if i == installment_count - 1 else 0)
        installments.append(Installment(number=i + 1, amount=value))

    return installments
