"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from budget_forecast.config import settings


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


def log_forecast(
    request_id: str,
    user_id: str,
    mode: str,
    days: int,
    lowest_balance: float,
    duration_ms: float,
    safe_to_spend_per_day: Optional[float] = None,
) -> None:
    """Log structured forecast outcome for analysis"""
    logging.info(
        "Forecast computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "forecast_complete",
            "mode": mode,
            "days": days,
            "lowest_balance": lowest_balance,
            "safe_to_spend_per_day": safe_to_spend_per_day,
            "duration_ms": duration_ms,
        },
    )


def log_candidate_scan(
    request_id: str,
    user_id: str,
    lookback_days: int,
    candidate_count: int,
    duration_ms: float,
) -> None:
    """Log structured subscription-candidate scan outcome"""
    logging.info(
        "Subscription candidates detected",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "candidate_scan_complete",
            "lookback_days": lookback_days,
            "candidate_count": candidate_count,
            "duration_ms": duration_ms,
        },
    )
