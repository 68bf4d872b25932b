"""Payment reconciliation against the computed final total"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from reseller_engine.config import settings
from reseller_engine.domain.currency import normalize_payment, quantize_money
from reseller_engine.domain.exceptions import UnbalancedPaymentError
from reseller_engine.domain.models import PaymentEntry, to_decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class Reconciliation:
    """Tendered vs owed, settlement currency"""

    final_total: Decimal
    total_tendered: Decimal
    remaining_balance: Decimal
    overpaid_amount: Decimal
    balanced: bool


class PaymentReconciler:
    """Checks that tendered payments cover the final total exactly"""

    def __init__(self, epsilon: Decimal | None = None, places: int | None = None):
        self.epsilon = to_decimal(epsilon if epsilon is not None else settings.reconciliation_epsilon)
        self.places = places if places is not None else settings.money_places

    def total_tendered(self, payments: Iterable[PaymentEntry], rate=None) -> Decimal:
        return sum((normalize_payment(p, rate) for p in payments), ZERO)

    def reconcile(self, final_total, payments: Iterable[PaymentEntry], rate=None) -> Reconciliation:
        """
        Compare tendered payments with the final total.

        remaining_balance pre-fills the UI "remaining" shortcut; it is never
        applied to the payments automatically.
        """
        final_total = to_decimal(final_total)
        return self.reconcile_tendered(final_total, self.total_tendered(payments, rate))

    def reconcile_tendered(self, final_total: Decimal, tendered: Decimal) -> Reconciliation:
        # Epsilon is exclusive: one full currency unit short or over is unbalanced
        difference = quantize_money(final_total, self.places) - quantize_money(tendered, self.places)
        return Reconciliation(
            final_total=final_total,
            total_tendered=tendered,
            remaining_balance=max(final_total - tendered, ZERO),
            overpaid_amount=max(tendered - final_total, ZERO),
            balanced=abs(difference) < self.epsilon,
        )

    def ensure_balanced(self, final_total, payments: Iterable[PaymentEntry], rate=None) -> Reconciliation:
        """
        Raises:
            UnbalancedPaymentError: Tendered differs from final total beyond epsilon
        """
        result = self.reconcile(final_total, payments, rate)
        if not result.balanced:
            raise UnbalancedPaymentError(result.final_total, result.total_tendered)
        return result
