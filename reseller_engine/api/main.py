"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from reseller_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from reseller_engine.api.dependencies import get_request_id
from reseller_engine.api.v1 import commissions, payment_plans, quote, sales
from reseller_engine.config import settings
from reseller_engine.domain.exceptions import DomainException
from reseller_engine.infrastructure.observability.logging import setup_logging
from reseller_engine.infrastructure.observability.metrics import record_engine_error

setup_logging(settings.log_level)

V1_ROUTERS = [
    (quote.router, "quotes"),
    (sales.router, "sales"),
    (payment_plans.router, "payment-plans"),
    (commissions.router, "commissions"),
]


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Domain errors a route did not map itself are client errors, never 500s"""
    record_engine_error(exc)
    logging.warning(f"Unhandled domain error: {exc}", extra={"request_id": get_request_id(request)})
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Reseller Pricing Engine",
        description=(
            f"Prices carts in {settings.base_currency}, settles them in {settings.settlement_currency} "
            "and reports seller commissions"
        ),
        version="0.1.0",
    )

    # Last added runs first: request id must exist before metrics and handlers
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(DomainException, domain_exception_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "fx_source": settings.fx_source}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
