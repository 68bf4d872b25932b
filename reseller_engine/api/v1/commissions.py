"""GET /v1/sellers/commissions - Seller commission totals for a period"""

import logging
from datetime import date, datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from reseller_engine.api.v1.pricing import active_rate, money
from reseller_engine.api.v1.schemas import CommissionReportResponse, SellerCommissionSchema
from reseller_engine.domain.commissions import rank_sellers, seller_totals
from reseller_engine.domain.exceptions import InvalidRateError
from reseller_engine.infrastructure.database.repositories import ReferenceDataRepository, SaleRepository
from reseller_engine.infrastructure.database.session import get_db
from reseller_engine.utils.date_utils import ensure_utc, month_bounds

router = APIRouter()


@router.get("/sellers/commissions", response_model=CommissionReportResponse)
def get_seller_commissions(
    start: Optional[datetime] = Query(None, description="Period start, inclusive (default: first of this month)"),
    end: Optional[datetime] = Query(None, description="Period end, exclusive (default: first of next month)"),
    rank_by: Literal["commission", "sales"] = Query("commission"),
    db: Session = Depends(get_db),
):
    """
    Commission earned per seller on completed sales in [start, end).

    Settlement-currency figures use the rate active now, not the rate of each
    sale. They are informational; commissions are earned in base currency.
    """
    default_start, default_end = month_bounds(date.today())
    start = ensure_utc(start) if start else default_start
    end = ensure_utc(end) if end else default_end
    if end <= start:
        raise HTTPException(status_code=422, detail="Period end must be after start")

    try:
        display_rate = active_rate(ReferenceDataRepository(db))
    except InvalidRateError as e:
        logging.warning(f"Commission report without settlement figures: {e}")
        display_rate = None

    sales = SaleRepository(db).get_sales_between(start, end)
    summaries = rank_sellers(seller_totals(sales, start, end, display_rate), by=rank_by)

    return CommissionReportResponse(
        start=start,
        end=end,
        display_rate=display_rate,
        sellers=[
            SellerCommissionSchema(
                seller_id=s.seller_id,
                sales_count=s.sales_count,
                total_commission_base=money(s.total_commission_base),
                total_commission_settlement=(
                    money(s.total_commission_settlement) if s.total_commission_settlement is not None else None
                ),
            )
            for s in summaries
        ],
    )
