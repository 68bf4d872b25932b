"""Financing surcharge calculation - core pricing logic for mixed payments"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from reseller_engine.domain.currency import normalize_payment
from reseller_engine.domain.exceptions import AmbiguousFinancingError, InvalidAmountError
from reseller_engine.domain.models import PaymentEntry, ResolvedPayment, to_decimal
from reseller_engine.domain.payment_plans import PaymentPlanCatalog

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class FinancingBreakdown:
    """Intermediate figures of a financing calculation, settlement currency"""

    base_total: Decimal
    discount_amount: Decimal
    paid_no_interest: Decimal
    remaining_after_no_interest: Decimal
    multiplier: Decimal
    surcharge_amount: Decimal
    final_total: Decimal
    payments: Tuple[ResolvedPayment, ...]
    financed_payment: Optional[ResolvedPayment] = None


def resolve_payments(
    payments: Iterable[PaymentEntry],
    catalog: PaymentPlanCatalog,
    rate=None,
) -> Tuple[ResolvedPayment, ...]:
    """Attach multiplier and settlement-currency amount to each entry, keeping order"""
    return tuple(
        ResolvedPayment(
            entry=entry,
            multiplier=catalog.multiplier_for(entry.instrument_id, entry.installment_count),
            amount_settlement=normalize_payment(entry, rate),
        )
        for entry in payments
    )


def calculate_financing(
    base_total,
    payments: Iterable[PaymentEntry],
    catalog: PaymentPlanCatalog,
    discount_amount=ZERO,
    rate=None,
) -> FinancingBreakdown:
    """
    Compute interest surcharge and final amount due.

    Requirements:
    - Payments at multiplier 1 are paid first, without interest
    - The single financed payment (multiplier > 1) pays interest only on what
      is left after discount and no-interest payments
    - final_total = base_total - discount + surcharge
    - No rounding between steps

    Example:
        base 1000, cash 400, card at 1.10
        remaining 600 -> surcharge 60 -> final 1060

    Raises:
        InvalidAmountError: Negative base total, or discount outside [0, base_total]
        AmbiguousFinancingError: More than one financed payment
        InvalidRateError: A base-currency payment without a valid rate
    """
    base_total = to_decimal(base_total)
    discount_amount = to_decimal(discount_amount)

    if base_total < 0:
        raise InvalidAmountError(f"Base total cannot be negative, got {base_total}")
    if discount_amount < 0:
        raise InvalidAmountError(f"Discount cannot be negative, got {discount_amount}")
    if discount_amount > base_total:
        raise InvalidAmountError(f"Discount {discount_amount} exceeds the base total {base_total}")

    resolved = resolve_payments(payments, catalog, rate)

    financed = [p for p in resolved if p.financed]
    if len(financed) > 1:
        raise AmbiguousFinancingError([p.entry.instrument_id for p in financed])

    paid_no_interest = sum((p.amount_settlement for p in resolved if not p.financed), ZERO)

    # Discount reduces the financed base
    remaining = max(base_total - discount_amount - paid_no_interest, ZERO)

    if financed:
        financed_payment = financed[0]
        multiplier = financed_payment.multiplier
        surcharge = remaining * (multiplier - ONE)
    else:
        financed_payment = None
        multiplier = ONE
        surcharge = ZERO

    return FinancingBreakdown(
        base_total=base_total,
        discount_amount=discount_amount,
        paid_no_interest=paid_no_interest,
        remaining_after_no_interest=remaining,
        multiplier=multiplier,
        surcharge_amount=surcharge,
        final_total=base_total - discount_amount + surcharge,
        payments=resolved,
        financed_payment=financed_payment,
    )
