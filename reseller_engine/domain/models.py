"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from reseller_engine.domain.exceptions import InvalidAmountError, InvalidCommissionError


def to_decimal(value) -> Decimal:
    """Coerce int/str/float/Decimal to Decimal without binary float artifacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class Currency(str, Enum):
    """Currency a payment is tendered in"""

    BASE = "base"  # Catalog and commission currency (USD)
    SETTLEMENT = "settlement"  # Currency the customer pays in (ARS)


class SaleStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    VOID = "void"


@dataclass(frozen=True)
class ExchangeRate:
    """Exchange rate record, base -> settlement. Append-only history."""

    source: str
    rate: Decimal
    is_active: bool
    captured_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "rate", to_decimal(self.rate))


@dataclass(frozen=True)
class PaymentInstrument:
    """Payment method; base_multiplier applies when paid without installments"""

    id: int
    name: str
    base_multiplier: Decimal = Decimal("1")

    def __post_init__(self):
        multiplier = to_decimal(self.base_multiplier)
        if multiplier < 1:
            raise ValueError(f"Instrument {self.id} multiplier must be >= 1, got {multiplier}")
        object.__setattr__(self, "base_multiplier", multiplier)


@dataclass(frozen=True)
class InstallmentTier:
    """Interest multiplier for paying an instrument in N installments"""

    instrument_id: int
    installment_count: int
    multiplier: Decimal
    description: Optional[str] = None

    def __post_init__(self):
        if self.installment_count <= 0:
            raise ValueError(f"Installment count must be positive, got {self.installment_count}")
        multiplier = to_decimal(self.multiplier)
        if multiplier < 1:
            raise ValueError(f"Tier multiplier must be >= 1, got {multiplier}")
        object.__setattr__(self, "multiplier", multiplier)


@dataclass(frozen=True)
class PercentageCommission:
    """Commission as a percentage of the line's base price"""

    pct: Decimal

    def __post_init__(self):
        pct = to_decimal(self.pct)
        if pct < 0:
            raise InvalidAmountError(f"Commission percentage cannot be negative, got {pct}")
        object.__setattr__(self, "pct", pct)


@dataclass(frozen=True)
class FixedCommission:
    """Commission as a fixed base-currency amount per unit"""

    amount: Decimal

    def __post_init__(self):
        amount = to_decimal(self.amount)
        if amount < 0:
            raise InvalidAmountError(f"Fixed commission cannot be negative, got {amount}")
        object.__setattr__(self, "amount", amount)


Commission = Union[PercentageCommission, FixedCommission]


def commission_from_fields(pct=None, fixed=None) -> Optional[Commission]:
    """Build a commission variant from loose record fields (commission_pct / commission_fixed)"""
    if pct is not None and fixed is not None:
        raise ValueError("A commission is either a percentage or a fixed amount, not both")
    if pct is not None:
        return PercentageCommission(pct)
    if fixed is not None:
        return FixedCommission(fixed)
    return None


def commission_fields(commission: Commission) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """Inverse of commission_from_fields: (commission_pct, commission_fixed)"""
    if isinstance(commission, PercentageCommission):
        return commission.pct, None
    return None, commission.amount


@dataclass(frozen=True)
class CommissionRule:
    """Commission rule matched by brand/category; both None is the global default"""

    id: int
    commission: Commission
    priority: int = 0  # Lower value wins within the same specificity
    brand_id: Optional[int] = None
    category_id: Optional[int] = None


@dataclass(frozen=True)
class CatalogLine:
    """Product or variant as priced in the catalog"""

    variant_id: int
    usd_price: Decimal
    brand_id: Optional[int] = None
    category_id: Optional[int] = None
    own_commission: Optional[Commission] = None  # Product-level override, wins over rules
    name: Optional[str] = None

    def __post_init__(self):
        price = to_decimal(self.usd_price)
        if price <= 0:
            raise InvalidAmountError(f"Catalog price must be positive, got {price} for variant {self.variant_id}")
        object.__setattr__(self, "usd_price", price)


@dataclass(frozen=True)
class OrderLine:
    """Catalog line placed in a cart"""

    catalog_line: CatalogLine
    quantity: int = 1
    serials: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.quantity <= 0:
            raise InvalidAmountError(f"Quantity must be positive, got {self.quantity}")
        object.__setattr__(self, "serials", tuple(self.serials))


@dataclass(frozen=True)
class SaleItem:
    """Line snapshot taken at transaction time; later rule edits never touch it"""

    variant_id: int
    usd_price: Decimal
    quantity: int
    commission: Commission
    serials: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.quantity <= 0:
            raise InvalidAmountError(f"Quantity must be positive, got {self.quantity}")
        if not isinstance(self.commission, (PercentageCommission, FixedCommission)):
            raise InvalidCommissionError("Sale item for variant", self.variant_id, "has no commission snapshot")
        object.__setattr__(self, "usd_price", to_decimal(self.usd_price))
        object.__setattr__(self, "serials", tuple(self.serials))

    @property
    def subtotal_base(self) -> Decimal:
        return self.usd_price * self.quantity


@dataclass(frozen=True)
class PaymentEntry:
    """Single tendered payment"""

    instrument_id: int
    amount: Decimal
    currency: Currency = Currency.SETTLEMENT
    installment_count: Optional[int] = None
    reference: Optional[str] = None

    def __post_init__(self):
        amount = to_decimal(self.amount)
        if amount < 0:
            raise InvalidAmountError(f"Payment amount cannot be negative, got {amount}")
        if self.installment_count is not None and self.installment_count <= 0:
            raise InvalidAmountError(f"Installment count must be positive, got {self.installment_count}")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", Currency(self.currency))


@dataclass(frozen=True)
class ResolvedPayment:
    """Payment entry with its multiplier resolved and amount in settlement currency"""

    entry: PaymentEntry
    multiplier: Decimal
    amount_settlement: Decimal

    @property
    def financed(self) -> bool:
        return self.multiplier > 1


@dataclass(frozen=True)
class Settlement:
    """
    Immutable result of pricing a cart.

    final_total = base_total - discount_amount + surcharge_amount
    remaining_balance = max(final_total - sum(normalized payments), 0)
    """

    items: Tuple[SaleItem, ...]
    subtotal_base: Decimal  # Base currency
    base_total: Decimal  # Settlement currency, before discount and surcharge
    surcharge_amount: Decimal
    discount_amount: Decimal
    final_total: Decimal
    payments: Tuple[ResolvedPayment, ...]
    total_tendered: Decimal
    remaining_balance: Decimal
    overpaid_amount: Decimal
    balanced: bool  # Tendered matches final_total within the reconciliation epsilon
    rate_used: Decimal
    multiplier: Decimal = Decimal("1")
    financed_payment: Optional[ResolvedPayment] = None

    @property
    def financed_amount(self) -> Decimal:
        """What the financed instrument must cover, interest included"""
        if self.financed_payment is None:
            return Decimal("0")
        paid_no_interest = sum((p.amount_settlement for p in self.payments if not p.financed), Decimal("0"))
        return max(self.final_total - paid_no_interest, Decimal("0"))


@dataclass(frozen=True)
class Sale:
    """Recorded sale used for commission reporting"""

    sale_id: int
    seller_id: str
    sale_date: datetime
    status: SaleStatus
    items: Tuple[SaleItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "status", SaleStatus(self.status))
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class SellerCommissionSummary:
    """Commission earned by one seller over a reporting period"""

    seller_id: str
    total_commission_base: Decimal
    sales_count: int
    total_commission_settlement: Optional[Decimal] = None
    display_rate: Optional[Decimal] = None
