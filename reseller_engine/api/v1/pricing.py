"""Request -> engine inputs and engine results -> response schemas"""

from decimal import Decimal
from typing import List

from reseller_engine.api.v1.schemas import (
    CartLineSchema,
    InstallmentSchema,
    PaymentSchema,
    ResolvedPaymentSchema,
    SaleItemSchema,
    SettlementResponse,
)
from reseller_engine.config import settings
from reseller_engine.domain.commissions import item_commission
from reseller_engine.domain.currency import quantize_money, select_active_rate
from reseller_engine.domain.installments import split_installments
from reseller_engine.domain.models import (
    Currency,
    OrderLine,
    PaymentEntry,
    ResolvedPayment,
    Settlement,
    commission_fields,
)
from reseller_engine.infrastructure.database.repositories import ReferenceDataRepository


def money(value: Decimal) -> Decimal:
    return quantize_money(value, settings.money_places)


def active_rate(reference: ReferenceDataRepository) -> Decimal:
    """Current rate of the configured source; raises InvalidRateError when missing"""
    return select_active_rate(reference.get_rates(settings.fx_source), settings.fx_source).rate


def to_order_lines(reference: ReferenceDataRepository, lines: List[CartLineSchema]) -> List[OrderLine]:
    catalog_lines = reference.get_catalog_lines(line.variant_id for line in lines)
    return [
        OrderLine(catalog_line=catalog_lines[line.variant_id], quantity=line.quantity, serials=tuple(line.serials))
        for line in lines
    ]


def to_payment_entries(payments: List[PaymentSchema]) -> List[PaymentEntry]:
    return [
        PaymentEntry(
            instrument_id=p.instrument_id,
            amount=p.amount,
            currency=Currency(p.currency),
            installment_count=p.installments,
            reference=p.reference,
        )
        for p in payments
    ]


def installment_plan(amount: Decimal, payment: ResolvedPayment | None) -> List[InstallmentSchema]:
    if payment is None or not payment.entry.installment_count:
        return []
    return [
        InstallmentSchema(number=i.number, amount=i.amount)
        for i in split_installments(amount, payment.entry.installment_count, settings.money_places)
    ]


def payment_response(payment: ResolvedPayment) -> ResolvedPaymentSchema:
    return ResolvedPaymentSchema(
        instrument_id=payment.entry.instrument_id,
        installments=payment.entry.installment_count,
        currency=payment.entry.currency.value,
        amount=money(payment.entry.amount),
        amount_settlement=money(payment.amount_settlement),
        multiplier=payment.multiplier,
        financed=payment.financed,
        reference=payment.entry.reference,
    )


def settlement_response(settlement: Settlement) -> SettlementResponse:
    """Presentation boundary: the only place settlement money gets rounded"""
    items = []
    for item in settlement.items:
        pct, fixed = commission_fields(item.commission)
        items.append(
            SaleItemSchema(
                variant_id=item.variant_id,
                quantity=item.quantity,
                usd_price=money(item.usd_price),
                serials=list(item.serials),
                commission_pct=pct,
                commission_fixed=fixed,
                commission_base=money(item_commission(item)),
            )
        )

    financed = settlement.financed_payment
    return SettlementResponse(
        items=items,
        subtotal_base=money(settlement.subtotal_base),
        rate_used=settlement.rate_used,
        base_total=money(settlement.base_total),
        discount_amount=money(settlement.discount_amount),
        surcharge_amount=money(settlement.surcharge_amount),
        final_total=money(settlement.final_total),
        total_tendered=money(settlement.total_tendered),
        remaining_balance=money(settlement.remaining_balance),
        overpaid_amount=money(settlement.overpaid_amount),
        balanced=settlement.balanced,
        multiplier=settlement.multiplier,
        payments=[payment_response(p) for p in settlement.payments],
        financed_payment=payment_response(financed) if financed else None,
        installment_plan=installment_plan(money(settlement.financed_amount), financed),
    )
