"""SQLAlchemy ORM models for reference data and committed sales"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(18, 4, asdecimal=True)

# Exactly one commission kind; products may also carry none
EXACTLY_ONE_COMMISSION = "(commission_pct IS NULL) <> (commission_fixed IS NULL)"
AT_MOST_ONE_COMMISSION = "commission_pct IS NULL OR commission_fixed IS NULL"


class FxRate(Base):
    """Exchange rate history; a new active row supersedes the previous one"""

    __tablename__ = "fx_rate"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(Text, nullable=False, index=True)
    rate = Column(Money, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    captured_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentMethod(Base):
    """Payment instrument"""

    __tablename__ = "payment_method"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    multiplier = Column(Numeric(8, 4, asdecimal=True), nullable=False, default=1)

    installments = relationship("PaymentInstallment", back_populates="method", cascade="all, delete-orphan")


class PaymentInstallment(Base):
    """Installment tier of a payment method"""

    __tablename__ = "payment_installment"
    __table_args__ = (UniqueConstraint("payment_method_id", "installments", name="uq_method_installments"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_method_id = Column(Integer, ForeignKey("payment_method.id", ondelete="CASCADE"), nullable=False)
    installments = Column(Integer, nullable=False)
    multiplier = Column(Numeric(8, 4, asdecimal=True), nullable=False)
    description = Column(Text, nullable=True)

    method = relationship("PaymentMethod", back_populates="installments")


class CommissionRuleRecord(Base):
    """Commission rule table row; exactly one of pct/fixed is set"""

    __tablename__ = "commission_rule"
    __table_args__ = (CheckConstraint(EXACTLY_ONE_COMMISSION, name="ck_commission_rule_one_kind"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(Integer, nullable=True)
    category_id = Column(Integer, nullable=True)
    commission_pct = Column(Numeric(8, 4, asdecimal=True), nullable=True)
    commission_fixed = Column(Money, nullable=True)
    priority = Column(Integer, nullable=False, default=0)


class Product(Base):
    """Catalog product; commission columns hold its own rule when set"""

    __tablename__ = "product"
    __table_args__ = (CheckConstraint(AT_MOST_ONE_COMMISSION, name="ck_product_commission_kind"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    brand_id = Column(Integer, nullable=True)
    category_id = Column(Integer, nullable=True)
    commission_pct = Column(Numeric(8, 4, asdecimal=True), nullable=True)
    commission_fixed = Column(Money, nullable=True)

    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")


class ProductVariant(Base):
    """Sellable variant with its own USD price and stock"""

    __tablename__ = "product_variant"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    variant_name = Column(Text, nullable=True)
    usd_price = Column(Money, nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")


class SaleRecord(Base):
    """Committed sale"""

    __tablename__ = "sale"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, nullable=False, index=True)
    seller_id = Column(Text, nullable=True, index=True)
    status = Column(Text, nullable=False, default="completed")
    fx_rate_used = Column(Money, nullable=False)
    total_usd = Column(Money, nullable=False)
    total_ars = Column(Money, nullable=False)
    discount_ars = Column(Money, nullable=False, default=0)
    surcharge_ars = Column(Money, nullable=False, default=0)
    sale_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items = relationship("SaleItemRecord", back_populates="sale", cascade="all, delete-orphan")
    payments = relationship("SalePaymentRecord", back_populates="sale", cascade="all, delete-orphan")


class SaleItemRecord(Base):
    """Sale line with commission snapshot"""

    __tablename__ = "sale_item"
    __table_args__ = (CheckConstraint(EXACTLY_ONE_COMMISSION, name="ck_sale_item_one_kind"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sale.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variant.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    usd_price = Column(Money, nullable=False)
    commission_pct = Column(Numeric(8, 4, asdecimal=True), nullable=True)
    commission_fixed = Column(Money, nullable=True)

    sale = relationship("SaleRecord", back_populates="items")
    serials = relationship("SaleItemSerial", back_populates="item", cascade="all, delete-orphan")


class SaleItemSerial(Base):
    """Per-unit serial number (IMEI); unique across all sales"""

    __tablename__ = "sale_item_serial"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_item_id = Column(Integer, ForeignKey("sale_item.id", ondelete="CASCADE"), nullable=False)
    serial = Column(Text, nullable=False, unique=True)

    item = relationship("SaleItemRecord", back_populates="serials")


class SalePaymentRecord(Base):
    """Tendered payment of a sale, settlement currency"""

    __tablename__ = "sale_payment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sale.id", ondelete="CASCADE"), nullable=False)
    payment_method_id = Column(Integer, ForeignKey("payment_method.id"), nullable=False)
    amount = Column(Money, nullable=False)
    installments = Column(Integer, nullable=True)
    multiplier = Column(Numeric(8, 4, asdecimal=True), nullable=False, default=1)
    reference = Column(Text, nullable=True)

    sale = relationship("SaleRecord", back_populates="payments")
