"""Structured JSON logging for the statistics engine

Domain code logs through the root logger with context in ``extra``; the
formatter flattens those fields into each JSON line.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from booking_stats.config import settings


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


def log_stats_computed(
    kind: str,
    scope: str,
    record_count: int,
    cache_hit: bool,
    duration_ms: float,
    category: str | None = None,
) -> None:
    """Log one statistics computation for later analysis"""
    logging.info(
        "Statistics computed",
        extra={
            "step": "stats_complete",
            "kind": kind,
            "scope": scope,
            "category": category,
            "record_count": record_count,
            "cache_hit": cache_hit,
            "duration_ms": duration_ms,
        },
    )


def log_reconciliation_mismatch(channel_total: float, total_collection: float, tolerance: float) -> None:
    """Warn when payment-channel sums drift from Total Paid"""
    logging.warning(
        "Payment channel totals do not match Total Paid",
        extra={
            "step": "reconciliation",
            "channel_total": channel_total,
            "total_collection": total_collection,
            "difference": abs(channel_total - total_collection),
            "tolerance": tolerance,
        },
    )
