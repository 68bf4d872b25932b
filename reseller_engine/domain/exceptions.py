"""Domain-specific exceptions"""

from decimal import Decimal


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRateError(DomainException):
    """No active exchange rate, or the rate is zero or negative"""

    def __init__(self, rate: object = None, source: str | None = None):
        self.rate = rate
        self.source = source
        if rate is None:
            where = f" for source '{source}'" if source else ""
            message = f"No active exchange rate{where}; load a rate before pricing"
        else:
            message = f"Exchange rate must be greater than zero, got {rate}"
        super().__init__(message)


class NoApplicableRuleError(DomainException):
    """No commission rule matches a catalog line and no global default exists"""

    def __init__(self, brand_id: int | None, category_id: int | None):
        self.brand_id = brand_id
        self.category_id = category_id
        super().__init__(
            f"No commission rule applies to brand={brand_id} category={category_id}; "
            "add a matching rule, a global default, or an own commission on the product"
        )


class UnbalancedPaymentError(DomainException):
    """Tendered payments do not add up to the final total"""

    def __init__(self, final_total: Decimal, total_tendered: Decimal):
        self.final_total = final_total
        self.total_tendered = total_tendered
        self.difference = final_total - total_tendered
        if self.difference > 0:
            detail = f"{self.difference} still owed"
        else:
            detail = f"{-self.difference} overpaid"
        super().__init__(
            f"Payments total {total_tendered} but the sale total is {final_total} ({detail})"
        )


class AmbiguousFinancingError(DomainException):
    """More than one payment carries an interest multiplier"""

    def __init__(self, instrument_ids: list[int]):
        self.instrument_ids = instrument_ids
        super().__init__(
            f"Only one financed payment is allowed per sale, got {len(instrument_ids)} "
            f"(instruments {instrument_ids}); combine them into a single financed payment"
        )


class InvalidAmountError(DomainException):
    """Negative amount, or a discount outside the base total"""

    pass


class InvalidCommissionError(DomainException):
    """Stored commission data that is not exactly one of percentage or fixed amount"""

    def __init__(self, owner: str, owner_id: object, reason: str):
        self.owner = owner
        self.owner_id = owner_id
        self.reason = reason
        super().__init__(
            f"{owner} {owner_id} {reason}; set exactly one of commission_pct or commission_fixed"
        )


class PersistenceError(DomainException):
    """Base exception for the sale persistence boundary"""

    pass


class StockExhaustedError(PersistenceError):
    """Requested quantity exceeds available stock"""

    def __init__(self, variant_id: int, requested: int, available: int):
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for variant {variant_id}: requested {requested}, available {available}"
        )


class DuplicateSerialError(PersistenceError):
    """Serial number already sold or repeated within the sale"""

    def __init__(self, serial: str):
        self.serial = serial
        super().__init__(f"Serial number {serial} is already assigned to a sale")


class UnknownVariantError(PersistenceError):
    """Sale references a variant that does not exist"""

    def __init__(self, variant_id: int):
        self.variant_id = variant_id
        super().__init__(f"Variant {variant_id} does not exist")


class DocumentRenderError(DomainException):
    """Document renderer rejected or never acknowledged a settlement"""

    pass
