"""Unit tests for payment reconciliation"""

import pytest
from decimal import Decimal
from reseller_engine.domain.exceptions import UnbalancedPaymentError
from reseller_engine.domain.models import Currency, PaymentEntry
from reseller_engine.domain.reconciliation import PaymentReconciler


def test_exact_payment_is_balanced():
    reconciler = PaymentReconciler(epsilon=Decimal("0.01"))
    payments = [
        PaymentEntry(instrument_id=1, amount=Decimal("400")),
        PaymentEntry(instrument_id=4, amount=Decimal("660")),
    ]

    result = reconciler.ensure_balanced(Decimal("1060"), payments)

    assert result.balanced is True
    assert result.remaining_balance == 0
    assert result.overpaid_amount == 0


def test_underpayment_reports_remaining_and_is_rejected():
    reconciler = PaymentReconciler(epsilon=Decimal("0.01"))
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("1000"))]

    result = reconciler.reconcile(Decimal("1060"), payments)
    assert result.balanced is False
    assert result.remaining_balance == Decimal("60")

    with pytest.raises(UnbalancedPaymentError) as exc_info:
        reconciler.ensure_balanced(Decimal("1060"), payments)
    assert exc_info.value.difference == Decimal("60")
    assert "60 still owed" in str(exc_info.value)


def test_overpayment_is_rejected():
    reconciler = PaymentReconciler(epsilon=Decimal("0.01"))
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("1100"))]

    result = reconciler.reconcile(Decimal("1060"), payments)
    assert result.remaining_balance == 0
    assert result.overpaid_amount == Decimal("40")

    with pytest.raises(UnbalancedPaymentError, match="overpaid"):
        reconciler.ensure_balanced(Decimal("1060"), payments)


def test_sub_unit_difference_is_balanced():
    """Differences below the currency unit come from unrounded financing math"""
    reconciler = PaymentReconciler(epsilon=Decimal("0.01"))
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("1333.33"))]

    assert reconciler.reconcile(Decimal("1333.3333"), payments).balanced is True
    assert reconciler.reconcile(Decimal("1333.35"), payments).balanced is False


def test_one_cent_short_is_not_paid():
    reconciler = PaymentReconciler()
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("999.99"))]

    result = reconciler.reconcile(Decimal("1000.00"), payments)

    assert result.balanced is False
    assert result.remaining_balance == Decimal("0.01")
    with pytest.raises(UnbalancedPaymentError, match="0.01 still owed"):
        reconciler.ensure_balanced(Decimal("1000.00"), payments)


def test_one_cent_over_is_not_balanced():
    reconciler = PaymentReconciler()
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("1000.01"))]

    result = reconciler.reconcile(Decimal("1000.00"), payments)

    assert result.balanced is False
    assert result.overpaid_amount == Decimal("0.01")


def test_configurable_epsilon():
    reconciler = PaymentReconciler(epsilon=Decimal("5"), places=0)
    payments = [PaymentEntry(instrument_id=1, amount=Decimal("999"))]

    assert reconciler.reconcile(Decimal("1000"), payments).balanced is True
    assert reconciler.reconcile(Decimal("1003.4"), payments).balanced is True  # rounds to 1003
    assert reconciler.reconcile(Decimal("1003.5"), payments).balanced is False  # rounds to 1004
    assert reconciler.reconcile(Decimal("1004"), payments).balanced is False


def test_base_currency_payment_normalized_with_rate():
    reconciler = PaymentReconciler()
    payments = [
        PaymentEntry(instrument_id=1, amount=Decimal("100"), currency=Currency.BASE),
        PaymentEntry(instrument_id=2, amount=Decimal("60000")),
    ]

    result = reconciler.ensure_balanced(Decimal("160000"), payments, rate=Decimal("1000"))

    assert result.total_tendered == Decimal("160000")


def test_defaults_from_settings():
    reconciler = PaymentReconciler()
    assert reconciler.epsilon == Decimal("0.01")
    assert reconciler.places == 2
