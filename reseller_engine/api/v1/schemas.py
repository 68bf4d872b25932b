"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CartLineSchema(BaseModel):
    """Catalog variant placed in the cart"""

    variant_id: int
    quantity: int = Field(1, gt=0)
    serials: List[str] = Field(default_factory=list, description="IMEI or serial per unit")


class PaymentSchema(BaseModel):
    """Tendered payment"""

    instrument_id: int
    amount: Decimal = Field(..., ge=0)
    currency: Literal["base", "settlement"] = "settlement"
    installments: Optional[int] = Field(None, gt=0)
    reference: Optional[str] = None


class QuoteRequest(BaseModel):
    """Request body for POST /v1/quote"""

    lines: List[CartLineSchema] = Field(..., min_length=1)
    payments: List[PaymentSchema] = Field(default_factory=list)
    discount: Decimal = Field(Decimal("0"), ge=0, description="Discount in settlement currency")
    render: bool = Field(False, description="Send the quote to the document renderer")


class QuickQuoteRequest(BaseModel):
    """Request body for POST /v1/quick-quote"""

    base_amount: Decimal = Field(..., ge=0, description="Amount in settlement currency")
    payments: List[PaymentSchema] = Field(default_factory=list)
    discount: Decimal = Field(Decimal("0"), ge=0)


class SaleRequest(BaseModel):
    """Request body for POST /v1/sales"""

    customer_id: int
    seller_id: Optional[str] = None
    lines: List[CartLineSchema] = Field(..., min_length=1)
    payments: List[PaymentSchema] = Field(..., min_length=1)
    discount: Decimal = Field(Decimal("0"), ge=0)


class InstallmentSchema(BaseModel):
    """Single installment of the financed payment"""

    number: int
    amount: Decimal


class ResolvedPaymentSchema(BaseModel):
    instrument_id: int
    installments: Optional[int]
    currency: str
    amount: Decimal
    amount_settlement: Decimal
    multiplier: Decimal
    financed: bool
    reference: Optional[str] = None


class SaleItemSchema(BaseModel):
    variant_id: int
    quantity: int
    usd_price: Decimal
    serials: List[str]
    commission_pct: Optional[Decimal] = None
    commission_fixed: Optional[Decimal] = None
    commission_base: Decimal


class SettlementResponse(BaseModel):
    """Priced cart; money rounded to the currency unit"""

    items: List[SaleItemSchema]
    subtotal_base: Decimal
    rate_used: Decimal
    base_total: Decimal
    discount_amount: Decimal
    surcharge_amount: Decimal
    final_total: Decimal
    total_tendered: Decimal
    remaining_balance: Decimal
    overpaid_amount: Decimal
    balanced: bool
    multiplier: Decimal
    payments: List[ResolvedPaymentSchema]
    financed_payment: Optional[ResolvedPaymentSchema] = None
    installment_plan: List[InstallmentSchema] = Field(default_factory=list)


class FinancingResponse(BaseModel):
    """Response for POST /v1/quick-quote"""

    base_total: Decimal
    discount_amount: Decimal
    paid_no_interest: Decimal
    remaining_after_no_interest: Decimal
    multiplier: Decimal
    surcharge_amount: Decimal
    final_total: Decimal
    total_tendered: Decimal
    remaining_balance: Decimal
    balanced: bool
    installment_plan: List[InstallmentSchema] = Field(default_factory=list)


class SaleResponse(BaseModel):
    """Response for POST /v1/sales"""

    sale_id: int
    settlement: SettlementResponse


class InstallmentTierSchema(BaseModel):
    installments: int
    multiplier: Decimal
    description: Optional[str] = None


class PaymentInstrumentSchema(BaseModel):
    id: int
    name: str
    multiplier: Decimal
    tiers: List[InstallmentTierSchema]


class PaymentPlansResponse(BaseModel):
    """Response for GET /v1/payment-plans"""

    instruments: List[PaymentInstrumentSchema]


class SellerCommissionSchema(BaseModel):
    seller_id: str
    sales_count: int
    total_commission_base: Decimal
    total_commission_settlement: Optional[Decimal] = None


class CommissionReportResponse(BaseModel):
    """Response for GET /v1/sellers/commissions"""

    start: datetime
    end: datetime
    display_rate: Optional[Decimal] = None
    sellers: List[SellerCommissionSchema]
