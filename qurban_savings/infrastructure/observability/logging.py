"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from qurban_savings.config import settings


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

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_savings_created(request_id: str, savings_id: str, savings_number: str, target_amount: int, actor_id: str) -> None:
    logging.info(
        "Savings created",
        extra={
            "request_id": request_id,
            "savings_id": savings_id,
            "savings_number": savings_number,
            "target_amount": target_amount,
            "actor_id": actor_id,
            "step": "savings_created",
        },
    )


def log_deposit_recorded(request_id: str, deposit_id: str, savings_id: str, amount: int) -> None:
    logging.info(
        "Deposit recorded",
        extra={
            "request_id": request_id,
            "deposit_id": deposit_id,
            "savings_id": savings_id,
            "amount": amount,
            "step": "deposit_recorded",
        },
    )


def log_transition(
    request_id: str,
    deposit_id: str,
    actor_id: str,
    outcome: str,
    detail: Optional[str] = None,
) -> None:
    """Log one verify/reject attempt; conflicts and failures go out as warnings"""
    level = logging.INFO if outcome in ("verified", "rejected") else logging.WARNING
    logging.log(
        level,
        f"Deposit {outcome}",
        extra={
            "request_id": request_id,
            "deposit_id": deposit_id,
            "actor_id": actor_id,
            "step": "deposit_transition",
            "outcome": outcome,
            "detail": detail,
        },
    )


def log_bulk_verification(
    request_id: str,
    actor_id: str,
    requested: int,
    succeeded: int,
    duration_ms: float,
) -> None:
    """Log structured bulk verification outcome"""
    logging.info(
        "Bulk verification completed",
        extra={
            "request_id": request_id,
            "actor_id": actor_id,
            "step": "bulk_verify_complete",
            "requested": requested,
            "succeeded": succeeded,
            "failed": requested - succeeded,
            "duration_ms": duration_ms,
        },
    )
