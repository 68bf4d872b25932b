"""Data access layer: reference data snapshots and the all-or-nothing sale writer"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reseller_engine.domain.commission_rules import CommissionRuleResolver
from reseller_engine.domain.exceptions import (
    DuplicateSerialError,
    InvalidAmountError,
    InvalidCommissionError,
    StockExhaustedError,
    UnknownVariantError,
)
from reseller_engine.domain.models import (
    CatalogLine,
    Commission,
    CommissionRule,
    ExchangeRate,
    InstallmentTier,
    PaymentInstrument,
    Sale,
    SaleItem,
    commission_from_fields,
)
from reseller_engine.domain.payment_plans import PaymentPlanCatalog
from reseller_engine.utils.date_utils import ensure_utc
from reseller_engine.infrastructure.database.models import (
    CommissionRuleRecord,
    FxRate,
    PaymentMethod,
    ProductVariant,
    SaleItemRecord,
    SaleItemSerial,
    SalePaymentRecord,
    SaleRecord,
)


def stored_commission(owner: str, owner_id: int, pct, fixed, required: bool = True) -> Optional[Commission]:
    """
    Commission variant from a row's commission_pct / commission_fixed columns.

    Raises:
        InvalidCommissionError: Both columns set, a negative value, or neither
            set where the row must carry a commission
    """
    try:
        commission = commission_from_fields(pct, fixed)
    except (ValueError, InvalidAmountError) as e:
        raise InvalidCommissionError(owner, owner_id, f"is malformed ({e})") from e

    if commission is None and required:
        raise InvalidCommissionError(owner, owner_id, "has no commission")
    return commission


class ReferenceDataRepository:
    """Read-only snapshots of rates, payment plans, rules and catalog lines"""

    def __init__(self, db: Session):
        self.db = db

    def get_rates(self, source: str | None = None) -> List[ExchangeRate]:
        """Rate history, newest first"""
        query = self.db.query(FxRate)
        if source is not None:
            query = query.filter(FxRate.source == source)
        return [
            ExchangeRate(source=r.source, rate=r.rate, is_active=r.is_active, captured_at=r.captured_at)
            for r in query.order_by(FxRate.captured_at.desc()).all()
        ]

    def get_payment_catalog(self) -> PaymentPlanCatalog:
        methods = self.db.query(PaymentMethod).order_by(PaymentMethod.id).all()
        instruments = [PaymentInstrument(id=m.id, name=m.name, base_multiplier=m.multiplier) for m in methods]
        tiers = [
            InstallmentTier(
                instrument_id=m.id,
                installment_count=i.installments,
                multiplier=i.multiplier,
                description=i.description,
            )
            for m in methods
            for i in m.installments
        ]
        return PaymentPlanCatalog(instruments, tiers)

    def get_commission_resolver(self) -> CommissionRuleResolver:
        rules = [
            CommissionRule(
                id=r.id,
                brand_id=r.brand_id,
                category_id=r.category_id,
                commission=stored_commission("Commission rule", r.id, r.commission_pct, r.commission_fixed),
                priority=r.priority,
            )
            for r in self.db.query(CommissionRuleRecord).order_by(CommissionRuleRecord.priority).all()
        ]
        return CommissionRuleResolver(rules)

    def get_catalog_lines(self, variant_ids: Iterable[int]) -> Dict[int, CatalogLine]:
        """
        Catalog lines keyed by variant id.

        Raises:
            UnknownVariantError: Any requested id is missing
        """
        ids = set(variant_ids)
        variants = self.db.query(ProductVariant).filter(ProductVariant.id.in_(ids)).all()
        found = {v.id: v for v in variants}

        missing = sorted(ids - found.keys())
        if missing:
            raise UnknownVariantError(missing[0])

        return {
            v.id: CatalogLine(
                variant_id=v.id,
                usd_price=v.usd_price,
                brand_id=v.product.brand_id,
                category_id=v.product.category_id,
                own_commission=stored_commission(
                    "Product", v.product.id, v.product.commission_pct, v.product.commission_fixed, required=False
                ),
                name=" ".join(filter(None, [v.product.name, v.variant_name])),
            )
            for v in variants
        }


class SaleRepository:
    """Persistence boundary for committed sales"""

    def __init__(self, db: Session):
        self.db = db

    def commit_sale(self, payload: Dict[str, Any]) -> SaleRecord:
        """
        Write a sale, its items, serials and payments, decrementing stock.

        Runs inside the caller's transaction; the caller commits or rolls back.
        Any failure leaves nothing written once rolled back.

        Raises:
            UnknownVariantError: Variant does not exist
            StockExhaustedError: Conditional stock decrement matched no row
            DuplicateSerialError: Serial repeated in the sale or already sold
        """
        self._check_serials(payload["items"])

        sale = SaleRecord(
            customer_id=payload["customer_id"],
            seller_id=payload["seller_id"],
            status="completed",
            fx_rate_used=payload["fx_rate"],
            total_usd=payload["total_base"],
            total_ars=payload["total_settlement"],
            discount_ars=payload.get("discount", 0),
            surcharge_ars=payload.get("surcharge", 0),
            sale_date=payload.get("sale_date") or datetime.now(timezone.utc),
        )
        self.db.add(sale)
        self.db.flush()

        for item in payload["items"]:
            self._decrement_stock(item["variant_id"], item["quantity"])
            db_item = SaleItemRecord(
                sale_id=sale.id,
                variant_id=item["variant_id"],
                quantity=item["quantity"],
                usd_price=item["usd_price"],
                commission_pct=item.get("commission_pct"),
                commission_fixed=item.get("commission_fixed"),
            )
            db_item.serials = [SaleItemSerial(serial=s) for s in item.get("serials", [])]
            self.db.add(db_item)

        for payment in payload["payments"]:
            self.db.add(
                SalePaymentRecord(
                    sale_id=sale.id,
                    payment_method_id=payment["instrument_id"],
                    amount=payment["amount"],
                    installments=payment.get("installments"),
                    multiplier=payment.get("multiplier", 1),
                    reference=payment.get("reference"),
                )
            )

        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateSerialError(self._first_serial(payload["items"])) from e

        return sale

    def get_sales_between(self, start: datetime, end: datetime) -> List[Sale]:
        """Sales of every status dated in [start, end), as domain snapshots"""
        records = (
            self.db.query(SaleRecord)
            .filter(SaleRecord.sale_date >= start, SaleRecord.sale_date < end)
            .order_by(SaleRecord.sale_date)
            .all()
        )
        return [
            Sale(
                sale_id=r.id,
                seller_id=r.seller_id,
                sale_date=ensure_utc(r.sale_date),
                status=r.status,
                items=tuple(
                    SaleItem(
                        variant_id=i.variant_id,
                        usd_price=i.usd_price,
                        quantity=i.quantity,
                        commission=stored_commission("Sale item", i.id, i.commission_pct, i.commission_fixed),
                        serials=tuple(s.serial for s in i.serials),
                    )
                    for i in r.items
                ),
            )
            for r in records
            if r.seller_id is not None
        ]

    def _decrement_stock(self, variant_id: int, quantity: int) -> None:
        # Conditional update so two concurrent sales cannot both take the last unit
        result = self.db.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id, ProductVariant.stock >= quantity)
            .values(stock=ProductVariant.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            variant = self.db.get(ProductVariant, variant_id, populate_existing=True)
            if variant is None:
                raise UnknownVariantError(variant_id)
            raise StockExhaustedError(variant_id, quantity, variant.stock)

    def _check_serials(self, items: List[Dict[str, Any]]) -> None:
        seen = set()
        for item in items:
            for serial in item.get("serials", []):
                if serial in seen:
                    raise DuplicateSerialError(serial)
                seen.add(serial)

        if seen:
            taken = self.db.query(SaleItemSerial.serial).filter(SaleItemSerial.serial.in_(seen)).first()
            if taken is not None:
                raise DuplicateSerialError(taken[0])

    @staticmethod
    def _first_serial(items: List[Dict[str, Any]]) -> str:
        for item in items:
            for serial in item.get("serials", []):
                return serial
        return "unknown"
