"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from reseller_engine.api.main import create_app
from reseller_engine.config import settings
from reseller_engine.domain.commission_rules import CommissionRuleResolver
from reseller_engine.domain.models import (
    CommissionRule,
    InstallmentTier,
    PaymentInstrument,
    PercentageCommission,
)
from reseller_engine.domain.payment_plans import PaymentPlanCatalog
from reseller_engine.infrastructure.database.models import (
    Base,
    CommissionRuleRecord,
    FxRate,
    PaymentInstallment,
    PaymentMethod,
    Product,
    ProductVariant,
)
from reseller_engine.infrastructure.database.session import get_db

CASH = 1
TRANSFER = 2
CARD = 3
BANK_CARD = 4

BRAND_A = 1
BRAND_B = 2
PHONES = 10
ACCESSORIES = 20


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def payment_catalog() -> PaymentPlanCatalog:
    """Cash and transfer at par, a card with installment tiers, a bank card with a flat surcharge"""
    return PaymentPlanCatalog(
        instruments=[
            PaymentInstrument(id=CASH, name="Cash"),
            PaymentInstrument(id=TRANSFER, name="Transfer"),
            PaymentInstrument(id=CARD, name="Card"),
            PaymentInstrument(id=BANK_CARD, name="Bank card", base_multiplier=Decimal("1.10")),
        ],
        tiers=[
            InstallmentTier(instrument_id=CARD, installment_count=3, multiplier=Decimal("1.25")),
            InstallmentTier(instrument_id=CARD, installment_count=6, multiplier=Decimal("1.40")),
            InstallmentTier(instrument_id=CARD, installment_count=12, multiplier=Decimal("1.95")),
        ],
    )


@pytest.fixture
def resolver() -> CommissionRuleResolver:
    """Brand rule, brand+category rule and a global default"""
    return CommissionRuleResolver(
        [
            CommissionRule(id=1, brand_id=BRAND_A, commission=PercentageCommission(Decimal("3")), priority=1),
            CommissionRule(
                id=2, brand_id=BRAND_A, category_id=PHONES, commission=PercentageCommission(Decimal("7")), priority=1
            ),
            CommissionRule(id=3, commission=PercentageCommission(Decimal("1")), priority=5),
        ]
    )


@pytest.fixture
def reference_data(db: Session) -> Session:
    """Seed rates, payment methods, commission rules and catalog"""
    now = datetime.now(timezone.utc)
    db.add_all(
        [
            FxRate(source=settings.fx_source, rate=Decimal("900"), is_active=False, captured_at=now - timedelta(days=2)),
            FxRate(source=settings.fx_source, rate=Decimal("1000"), is_active=True, captured_at=now - timedelta(hours=1)),
        ]
    )

    card = PaymentMethod(id=CARD, name="Card", multiplier=Decimal("1"))
    card.installments = [
        PaymentInstallment(installments=12, multiplier=Decimal("1.95"), description="12 cuotas"),
        PaymentInstallment(installments=3, multiplier=Decimal("1.25"), description="3 cuotas"),
        PaymentInstallment(installments=6, multiplier=Decimal("1.40"), description="6 cuotas"),
    ]
    db.add_all(
        [
            PaymentMethod(id=CASH, name="Cash", multiplier=Decimal("1")),
            PaymentMethod(id=TRANSFER, name="Transfer", multiplier=Decimal("1")),
            card,
        ]
    )

    db.add_all(
        [
            CommissionRuleRecord(id=1, brand_id=BRAND_A, commission_pct=Decimal("3"), priority=1),
            CommissionRuleRecord(id=2, brand_id=BRAND_A, category_id=PHONES, commission_pct=Decimal("7"), priority=1),
            CommissionRuleRecord(id=3, commission_pct=Decimal("1"), priority=5),
        ]
    )

    phone = Product(id=1, name="Phone A", brand_id=BRAND_A, category_id=PHONES)
    phone.variants = [ProductVariant(id=101, variant_name="128GB", usd_price=Decimal("500"), stock=5)]
    tablet = Product(id=2, name="Tablet B", brand_id=BRAND_B, category_id=PHONES, commission_fixed=Decimal("20"))
    tablet.variants = [ProductVariant(id=201, variant_name="64GB", usd_price=Decimal("300"), stock=2)]
    db.add_all([phone, tablet])

    db.commit()
    return db
