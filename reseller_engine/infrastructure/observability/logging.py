"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from reseller_engine.config import settings
from reseller_engine.domain.models import Settlement


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(request_id: str, kind: str, settlement: Settlement, duration_ms: float) -> None:
    """Log structured settlement outcome; amounts as strings to keep Decimal precision"""
    logging.info(
        "Settlement computed",
        extra={
            "request_id": request_id,
            "step": f"{kind}_computed",
            "item_count": len(settlement.items),
            "rate_used": str(settlement.rate_used),
            "final_total": str(settlement.final_total),
            "surcharge_amount": str(settlement.surcharge_amount),
            "financed": settlement.financed_payment is not None,
            "balanced": settlement.balanced,
            "duration_ms": duration_ms,
        },
    )


def log_sale_committed(request_id: str, sale_id: int, seller_id: str | None, settlement: Settlement) -> None:
    """Log a sale accepted by the persistence boundary"""
    logging.info(
        "Sale committed",
        extra={
            "request_id": request_id,
            "step": "sale_committed",
            "sale_id": sale_id,
            "seller_id": seller_id,
            "total_base": str(settlement.subtotal_base),
            "total_settlement": str(settlement.final_total),
        },
    )
