"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "budget-confidence"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


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


def log_confidence_update(
    planned_expense_id: str,
    user_id: str,
    confidence_level: str,
    score: int,
    can_afford: bool,
    duration_ms: float,
) -> None:
    """Log structured confidence outcome for analysis"""
    logging.getLogger("budget_confidence.confidence").info(
        "Confidence updated",
        extra={
            "planned_expense_id": planned_expense_id,
            "user_id": user_id,
            "step": "confidence_update",
            "confidence_level": confidence_level,
            "score": score,
            "can_afford": can_afford,
            "duration_ms": duration_ms,
        },
    )
