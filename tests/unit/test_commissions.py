"""Unit tests for seller commission computation and aggregation"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from reseller_engine.domain.commissions import item_commission, rank_sellers, seller_totals, snapshot_item
from reseller_engine.domain.exceptions import InvalidCommissionError, InvalidRateError
from reseller_engine.domain.models import (
    CatalogLine,
    FixedCommission,
    OrderLine,
    PercentageCommission,
    Sale,
    SaleItem,
    SaleStatus,
)

PERIOD_START = datetime(2026, 9, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2026, 10, 1, tzinfo=timezone.utc)


def pct_item(price: str, quantity: int, pct: str) -> SaleItem:
    return SaleItem(variant_id=1, usd_price=Decimal(price), quantity=quantity, commission=PercentageCommission(Decimal(pct)))


def fixed_item(price: str, quantity: int, amount: str) -> SaleItem:
    return SaleItem(variant_id=2, usd_price=Decimal(price), quantity=quantity, commission=FixedCommission(Decimal(amount)))


def test_percentage_commission():
    assert item_commission(pct_item("500", 2, "5")) == Decimal("50")


def test_fixed_commission():
    assert item_commission(fixed_item("500", 3, "20")) == Decimal("60")


def test_snapshot_item_copies_commission():
    """Later rule changes cannot rewrite a snapshotted line"""
    line = OrderLine(
        catalog_line=CatalogLine(variant_id=7, usd_price=Decimal("450")),
        quantity=2,
        serials=("IMEI-1", "IMEI-2"),
    )

    item = snapshot_item(line, PercentageCommission(Decimal("4")))

    assert item.variant_id == 7
    assert item.usd_price == Decimal("450")
    assert item.commission == PercentageCommission(Decimal("4"))
    assert item.serials == ("IMEI-1", "IMEI-2")
    assert item_commission(item) == Decimal("36")


@pytest.fixture
def sales() -> list[Sale]:
    day = PERIOD_START + timedelta(days=10)
    return [
        Sale(sale_id=1, seller_id="ana", sale_date=day, status=SaleStatus.COMPLETED, items=[pct_item("500", 2, "5")]),
        Sale(
            sale_id=2,
            seller_id="ana",
            sale_date=day,
            status=SaleStatus.COMPLETED,
            items=[fixed_item("300", 1, "20"), pct_item("100", 1, "10")],
        ),
        Sale(sale_id=3, seller_id="ana", sale_date=day, status=SaleStatus.CANCELLED, items=[pct_item("900", 1, "50")]),
        Sale(sale_id=4, seller_id="bruno", sale_date=day, status=SaleStatus.COMPLETED, items=[fixed_item("300", 3, "20")]),
        Sale(sale_id=5, seller_id="bruno", sale_date=day, status="void", items=[fixed_item("300", 3, "20")]),
        # Outside [start, end)
        Sale(sale_id=6, seller_id="bruno", sale_date=PERIOD_END, status=SaleStatus.COMPLETED, items=[fixed_item("1", 1, "99")]),
        Sale(
            sale_id=7,
            seller_id="carla",
            sale_date=PERIOD_START - timedelta(seconds=1),
            status=SaleStatus.COMPLETED,
            items=[fixed_item("1", 1, "99")],
        ),
    ]


def test_seller_totals(sales: list[Sale]):
    summaries = {s.seller_id: s for s in seller_totals(sales, PERIOD_START, PERIOD_END)}

    assert set(summaries) == {"ana", "bruno"}
    assert summaries["ana"].total_commission_base == Decimal("80")  # 50 + 20 + 10
    assert summaries["ana"].sales_count == 2  # Distinct sales, not lines
    assert summaries["bruno"].total_commission_base == Decimal("60")
    assert summaries["bruno"].sales_count == 1
    assert summaries["ana"].total_commission_settlement is None


def test_cancelled_sales_excluded(sales: list[Sale]):
    only_cancelled = [s for s in sales if s.status != SaleStatus.COMPLETED]
    assert seller_totals(only_cancelled, PERIOD_START, PERIOD_END) == []


def test_period_start_inclusive_end_exclusive():
    at_start = Sale(sale_id=1, seller_id="ana", sale_date=PERIOD_START, status="completed", items=[fixed_item("1", 1, "5")])
    at_end = Sale(sale_id=2, seller_id="ana", sale_date=PERIOD_END, status="completed", items=[fixed_item("1", 1, "7")])

    [summary] = seller_totals([at_start, at_end], PERIOD_START, PERIOD_END)

    assert summary.total_commission_base == Decimal("5")


def test_display_uses_given_current_rate(sales: list[Sale]):
    """Settlement figures use the rate passed in, whatever rate each sale used"""
    summaries = {s.seller_id: s for s in seller_totals(sales, PERIOD_START, PERIOD_END, Decimal("1200"))}

    assert summaries["ana"].total_commission_settlement == Decimal("96000")
    assert summaries["ana"].display_rate == Decimal("1200")


def test_display_rate_must_be_valid(sales: list[Sale]):
    with pytest.raises(InvalidRateError):
        seller_totals(sales, PERIOD_START, PERIOD_END, Decimal("0"))


def test_rank_sellers(sales: list[Sale]):
    summaries = seller_totals(sales, PERIOD_START, PERIOD_END)

    assert [s.seller_id for s in rank_sellers(summaries)] == ["ana", "bruno"]
    assert [s.seller_id for s in rank_sellers(summaries, by="sales")] == ["ana", "bruno"]
    with pytest.raises(ValueError):
        rank_sellers(summaries, by="revenue")


def test_sale_item_requires_commission_snapshot():
    with pytest.raises(InvalidCommissionError, match="variant 3"):
        SaleItem(variant_id=3, usd_price=Decimal("100"), quantity=1, commission=None)
