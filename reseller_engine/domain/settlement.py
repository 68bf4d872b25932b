"""Settlement assembly - composes pricing, financing, commission and reconciliation"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from reseller_engine.domain.commission_rules import CommissionRuleResolver
from reseller_engine.domain.currency import to_settlement, validate_rate
from reseller_engine.domain.exceptions import UnbalancedPaymentError
from reseller_engine.domain.financing import calculate_financing
from reseller_engine.domain.models import (
    OrderLine,
    PaymentEntry,
    SaleItem,
    Settlement,
    commission_fields,
)
from reseller_engine.domain.commissions import snapshot_item
from reseller_engine.domain.payment_plans import PaymentPlanCatalog
from reseller_engine.domain.reconciliation import PaymentReconciler

ZERO = Decimal("0")


def snapshot_items(lines: Iterable[OrderLine], resolver: Optional[CommissionRuleResolver] = None) -> List[SaleItem]:
    """
    Resolve each line's commission once and copy it onto the sale item.

    Without a resolver only lines carrying their own commission can be priced.
    """
    resolver = resolver or CommissionRuleResolver([])
    return [snapshot_item(line, resolver.resolve_line(line.catalog_line)) for line in lines]


def assemble(
    lines: Iterable[OrderLine],
    payments: Iterable[PaymentEntry],
    rate,
    catalog: PaymentPlanCatalog,
    discount=ZERO,
    resolver: Optional[CommissionRuleResolver] = None,
    reconciler: Optional[PaymentReconciler] = None,
) -> Settlement:
    """
    Price a cart against tendered payments.

    Flow:
    1. Validate the rate (no zero/absent rate ever reaches the math)
    2. Snapshot sale items with their commission
    3. base_total = subtotal_base * rate
    4. Financing surcharge and final total
    5. Tendered vs final total

    Does not require payments to balance; a quote may be partially paid.
    Use settle() before handing the result to the persistence boundary.
    """
    rate = validate_rate(rate)
    payments = list(payments)
    reconciler = reconciler or PaymentReconciler()

    items = snapshot_items(lines, resolver)
    subtotal_base = sum((item.subtotal_base for item in items), ZERO)
    base_total = to_settlement(subtotal_base, rate)

    breakdown = calculate_financing(base_total, payments, catalog, discount_amount=discount, rate=rate)
    tendered = sum((p.amount_settlement for p in breakdown.payments), ZERO)
    reconciliation = reconciler.reconcile_tendered(breakdown.final_total, tendered)

    return Settlement(
        items=tuple(items),
        subtotal_base=subtotal_base,
        base_total=base_total,
        surcharge_amount=breakdown.surcharge_amount,
        discount_amount=breakdown.discount_amount,
        final_total=breakdown.final_total,
        payments=breakdown.payments,
        total_tendered=tendered,
        remaining_balance=reconciliation.remaining_balance,
        overpaid_amount=reconciliation.overpaid_amount,
        balanced=reconciliation.balanced,
        rate_used=rate,
        multiplier=breakdown.multiplier,
        financed_payment=breakdown.financed_payment,
    )


def settle(
    lines: Iterable[OrderLine],
    payments: Iterable[PaymentEntry],
    rate,
    catalog: PaymentPlanCatalog,
    discount=ZERO,
    resolver: Optional[CommissionRuleResolver] = None,
    reconciler: Optional[PaymentReconciler] = None,
) -> Settlement:
    """
    Assemble and require payments to balance.

    Raises:
        UnbalancedPaymentError: Before anything reaches persistence
    """
    settlement = assemble(lines, payments, rate, catalog, discount, resolver, reconciler)
    if not settlement.balanced:
        raise UnbalancedPaymentError(settlement.final_total, settlement.total_tendered)
    return settlement


def to_persistence_payload(settlement: Settlement, customer_id: int, seller_id: Optional[str]) -> Dict[str, Any]:
    """Shape expected by the all-or-nothing sale writer"""
    items = []
    for item in settlement.items:
        pct, fixed = commission_fields(item.commission)
        items.append(
            {
                "variant_id": item.variant_id,
                "quantity": item.quantity,
                "serials": list(item.serials),
                "usd_price": item.usd_price,
                "commission_pct": pct,
                "commission_fixed": fixed,
            }
        )

    payments = [
        {
            "instrument_id": p.entry.instrument_id,
            "amount": p.amount_settlement,
            "installments": p.entry.installment_count,
            "reference": p.entry.reference,
            "multiplier": p.multiplier,
        }
        for p in settlement.payments
        if p.amount_settlement > 0
    ]

    return {
        "customer_id": customer_id,
        "seller_id": seller_id,
        "fx_rate": settlement.rate_used,
        "items": items,
        "payments": payments,
        "total_base": settlement.subtotal_base,
        "total_settlement": settlement.final_total,
        "discount": settlement.discount_amount,
        "surcharge": settlement.surcharge_amount,
    }
