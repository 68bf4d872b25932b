"""POST /v1/quote and POST /v1/quick-quote - price a cart without committing it"""

import time
import logging
from decimal import Decimal
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from reseller_engine.api.dependencies import get_renderer_client, get_request_id
from reseller_engine.api.v1.pricing import (
    active_rate,
    installment_plan,
    money,
    settlement_response,
    to_order_lines,
    to_payment_entries,
)
from reseller_engine.api.v1.schemas import FinancingResponse, QuickQuoteRequest, QuoteRequest, SettlementResponse
from reseller_engine.domain.exceptions import (
    AmbiguousFinancingError,
    InvalidAmountError,
    InvalidCommissionError,
    InvalidRateError,
    NoApplicableRuleError,
    UnknownVariantError,
)
from reseller_engine.domain.financing import calculate_financing
from reseller_engine.domain.reconciliation import PaymentReconciler
from reseller_engine.domain.settlement import assemble
from reseller_engine.infrastructure.clients.renderer import RendererClient
from reseller_engine.infrastructure.database.repositories import ReferenceDataRepository
from reseller_engine.infrastructure.database.session import get_db
from reseller_engine.infrastructure.observability.logging import log_settlement
from reseller_engine.infrastructure.observability.metrics import record_engine_error, record_settlement

router = APIRouter()


@router.post("/quote", response_model=SettlementResponse)
def create_quote(
    request_body: QuoteRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    renderer: RendererClient = Depends(get_renderer_client),
):
    """
    Price a cart at the active exchange rate.

    Flow:
    1. Load rate, payment plans, commission rules and catalog lines
    2. Assemble the settlement (payments need not balance yet)
    3. Optionally hand the quote to the document renderer
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        reference = ReferenceDataRepository(db)
        settlement = assemble(
            to_order_lines(reference, request_body.lines),
            to_payment_entries(request_body.payments),
            active_rate(reference),
            reference.get_payment_catalog(),
            discount=request_body.discount,
            resolver=reference.get_commission_resolver(),
        )

    except InvalidRateError as e:
        record_engine_error(e)
        logging.error(f"Exchange rate unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail=str(e))

    except UnknownVariantError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except (NoApplicableRuleError, InvalidCommissionError, AmbiguousFinancingError, InvalidAmountError) as e:
        record_engine_error(e)
        logging.warning(f"Quote rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    response = settlement_response(settlement)

    duration_ms = (time.time() - start_time) * 1000
    record_settlement("quote", settlement.financed_payment is not None)
    log_settlement(request_id, "quote", settlement, duration_ms)

    if request_body.render:
        background_tasks.add_task(
            renderer.send_document,
            {"document": "quote", "request_id": request_id, "settlement": jsonable_encoder(response)},
        )

    return response


@router.post("/quick-quote", response_model=FinancingResponse)
def create_quick_quote(request_body: QuickQuoteRequest, request: Request, db: Session = Depends(get_db)):
    """
    Financing for a bare settlement-currency amount, no catalog involved.

    The rate is only required when a payment is tendered in base currency.
    """
    request_id = get_request_id(request)
    reference = ReferenceDataRepository(db)
    payments = to_payment_entries(request_body.payments)

    try:
        rate = active_rate(reference) if any(p.currency == "base" for p in request_body.payments) else None
        breakdown = calculate_financing(
            request_body.base_amount,
            payments,
            reference.get_payment_catalog(),
            discount_amount=request_body.discount,
            rate=rate,
        )

    except InvalidRateError as e:
        record_engine_error(e)
        raise HTTPException(status_code=503, detail=str(e))

    except (AmbiguousFinancingError, InvalidAmountError) as e:
        record_engine_error(e)
        logging.warning(f"Quick quote rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    tendered = sum((p.amount_settlement for p in breakdown.payments), Decimal("0"))
    reconciliation = PaymentReconciler().reconcile_tendered(breakdown.final_total, tendered)
    financed_amount = breakdown.remaining_after_no_interest * breakdown.multiplier
    record_settlement("quick_quote", breakdown.financed_payment is not None)

    return FinancingResponse(
        base_total=money(breakdown.base_total),
        discount_amount=money(breakdown.discount_amount),
        paid_no_interest=money(breakdown.paid_no_interest),
        remaining_after_no_interest=money(breakdown.remaining_after_no_interest),
        multiplier=breakdown.multiplier,
        surcharge_amount=money(breakdown.surcharge_amount),
        final_total=money(breakdown.final_total),
        total_tendered=money(tendered),
        remaining_balance=money(reconciliation.remaining_balance),
        balanced=reconciliation.balanced,
        installment_plan=installment_plan(money(financed_amount), breakdown.financed_payment),
    )
