"""Seller commission computation and period aggregation"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Set

from reseller_engine.domain.currency import to_settlement
from reseller_engine.domain.models import (
    Commission,
    OrderLine,
    PercentageCommission,
    Sale,
    SaleItem,
    SaleStatus,
    SellerCommissionSummary,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def item_commission(item: SaleItem) -> Decimal:
    """
    Commission earned on one sale line, base currency.

    Percentage: usd_price * quantity * pct / 100
    Fixed:      amount * quantity
    """
    if isinstance(item.commission, PercentageCommission):
        return item.usd_price * item.quantity * (item.commission.pct / HUNDRED)
    return item.commission.amount * item.quantity


def snapshot_item(line: OrderLine, commission: Commission) -> SaleItem:
    """Freeze price and commission onto the sale line at transaction time"""
    return SaleItem(
        variant_id=line.catalog_line.variant_id,
        usd_price=line.catalog_line.usd_price,
        quantity=line.quantity,
        commission=commission,
        serials=line.serials,
    )


def sale_commission(sale: Sale) -> Decimal:
    return sum((item_commission(i) for i in sale.items), ZERO)


def seller_totals(
    sales: Iterable[Sale],
    start: datetime,
    end: datetime,
    display_rate=None,
) -> List[SellerCommissionSummary]:
    """
    Aggregate commissions per seller for sales dated in [start, end).

    Only completed sales count; cancelled, void and pending sales are excluded.
    display_rate is the rate active *now*, not at sale time: commissions are
    earned in base currency and the settlement figure is informational.
    """
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    sale_ids: Dict[str, Set[int]] = defaultdict(set)

    for sale in sales:
        if sale.status != SaleStatus.COMPLETED:
            continue
        if not (start <= sale.sale_date < end):
            continue
        totals[sale.seller_id] += sale_commission(sale)
        sale_ids[sale.seller_id].add(sale.sale_id)

    summaries = []
    for seller_id in sorted(totals):
        total = totals[seller_id]
        summaries.append(
            SellerCommissionSummary(
                seller_id=seller_id,
                total_commission_base=total,
                sales_count=len(sale_ids[seller_id]),
                total_commission_settlement=to_settlement(total, display_rate) if display_rate is not None else None,
                display_rate=display_rate,
            )
        )
    return summaries


def rank_sellers(summaries: Iterable[SellerCommissionSummary], by: str = "commission") -> List[SellerCommissionSummary]:
    """Leaderboard order: highest commission (or sales count) first, seller id breaks ties"""
    if by == "commission":
        return sorted(summaries, key=lambda s: (-s.total_commission_base, s.seller_id))
    if by == "sales":
        return sorted(summaries, key=lambda s: (-s.sales_count, s.seller_id))
    raise ValueError(f"Unknown ranking '{by}', expected 'commission' or 'sales'")
