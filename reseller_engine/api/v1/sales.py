"""POST /v1/sales - settle a cart and commit it through the persistence boundary"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from reseller_engine.api.dependencies import get_request_id
from reseller_engine.api.v1.pricing import active_rate, settlement_response, to_order_lines, to_payment_entries
from reseller_engine.api.v1.schemas import SaleRequest, SaleResponse
from reseller_engine.domain.exceptions import (
    AmbiguousFinancingError,
    DuplicateSerialError,
    InvalidAmountError,
    InvalidCommissionError,
    InvalidRateError,
    NoApplicableRuleError,
    PersistenceError,
    StockExhaustedError,
    UnbalancedPaymentError,
    UnknownVariantError,
)
from reseller_engine.domain.settlement import settle, to_persistence_payload
from reseller_engine.infrastructure.database.repositories import ReferenceDataRepository, SaleRepository
from reseller_engine.infrastructure.database.session import get_db
from reseller_engine.infrastructure.observability.logging import log_sale_committed, log_settlement
from reseller_engine.infrastructure.observability.metrics import (
    persistence_conflict_counter,
    record_engine_error,
    record_settlement,
    sale_committed_counter,
    unbalanced_payment_counter,
)

router = APIRouter()

CONFLICT_REASONS = {
    StockExhaustedError: "stock",
    DuplicateSerialError: "serial",
    UnknownVariantError: "variant",
}


@router.post("/sales", response_model=SaleResponse)
def create_sale(request_body: SaleRequest, request: Request, db: Session = Depends(get_db)):
    """
    Record a sale.

    Flow:
    1. Price the cart at the active rate, snapshotting commissions
    2. Require tendered payments to match the final total
    3. Commit sale, items, serials, payments and stock in one transaction

    Any failure rolls back the whole transaction; nothing is retried.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        reference = ReferenceDataRepository(db)
        settlement = settle(
            to_order_lines(reference, request_body.lines),
            to_payment_entries(request_body.payments),
            active_rate(reference),
            reference.get_payment_catalog(),
            discount=request_body.discount,
            resolver=reference.get_commission_resolver(),
        )

        payload = to_persistence_payload(settlement, request_body.customer_id, request_body.seller_id)
        sale = SaleRepository(db).commit_sale(payload)
        db.commit()

    except InvalidRateError as e:
        db.rollback()
        record_engine_error(e)
        logging.error(f"Exchange rate unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail=str(e))

    except UnbalancedPaymentError as e:
        db.rollback()
        unbalanced_payment_counter.inc()
        logging.warning(f"Unbalanced payments: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except (NoApplicableRuleError, InvalidCommissionError, AmbiguousFinancingError, InvalidAmountError) as e:
        db.rollback()
        record_engine_error(e)
        logging.warning(f"Sale rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except PersistenceError as e:
        db.rollback()
        persistence_conflict_counter.labels(reason=CONFLICT_REASONS.get(type(e), "other")).inc()
        logging.warning(f"Persistence rejected sale: {e}", extra={"request_id": request_id})
        status_code = 404 if isinstance(e, UnknownVariantError) else 409
        raise HTTPException(status_code=status_code, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    sale_committed_counter.inc()
    record_settlement("sale", settlement.financed_payment is not None)
    log_settlement(request_id, "sale", settlement, duration_ms)
    log_sale_committed(request_id, sale.id, request_body.seller_id, settlement)

    return SaleResponse(sale_id=sale.id, settlement=settlement_response(settlement))
