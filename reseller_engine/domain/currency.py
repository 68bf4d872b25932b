"""Base <-> settlement currency conversion with a single scalar rate"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from reseller_engine.domain.exceptions import InvalidRateError
from reseller_engine.domain.models import Currency, ExchangeRate, PaymentEntry, to_decimal


def validate_rate(rate) -> Decimal:
    """Return rate as Decimal, refusing absent, zero or negative rates"""
    if rate is None:
        raise InvalidRateError()
    value = to_decimal(rate)
    if value <= 0:
        raise InvalidRateError(value)
    return value


def to_settlement(amount_base, rate) -> Decimal:
    """Base currency (USD) -> settlement currency (ARS)"""
    return to_decimal(amount_base) * validate_rate(rate)


def to_base(amount_settlement, rate) -> Decimal:
    """Settlement currency (ARS) -> base currency (USD)"""
    return to_decimal(amount_settlement) / validate_rate(rate)


def quantize_money(amount, places: int = 2) -> Decimal:
    """Round for presentation only; never call between calculation steps"""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def select_active_rate(rates: Iterable[ExchangeRate], source: Optional[str] = None) -> ExchangeRate:
    """
    Pick the active rate from an append-only rate history.

    A newly captured active rate supersedes older ones, so when several records
    of the same source are still flagged active the latest capture wins.

    Raises:
        InvalidRateError: No active rate for the source, or its value is not positive
    """
    candidates = [r for r in rates if r.is_active and (source is None or r.source == source)]
    if not candidates:
        raise InvalidRateError(source=source)

    current = max(candidates, key=lambda r: r.captured_at)
    validate_rate(current.rate)
    return current


def normalize_payment(entry: PaymentEntry, rate=None) -> Decimal:
    """Payment amount in settlement currency; base currency entries need a valid rate"""
    if entry.currency == Currency.BASE:
        return to_settlement(entry.amount, rate)
    return entry.amount
