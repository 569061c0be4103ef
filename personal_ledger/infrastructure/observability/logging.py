"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from personal_ledger.config import settings


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


def log_transaction(user_email: str, kind: str, amount: Decimal, transaction_id: int, skimmed: Decimal) -> None:
    """Log a recorded ledger entry"""
    logging.info(
        "Transaction recorded",
        extra={
            "user_email": user_email,
            "step": "transaction_recorded",
            "kind": kind,
            "amount": str(amount),
            "transaction_id": transaction_id,
            "skimmed": str(skimmed),
        },
    )


def log_repayment(user_email: str, loan_id: int, amount_paid: Decimal, outstanding: Decimal, status: str) -> None:
    """Log a loan repayment outcome"""
    logging.info(
        "Loan repayment applied",
        extra={
            "user_email": user_email,
            "step": "loan_repayment",
            "loan_id": loan_id,
            "amount_paid": str(amount_paid),
            "outstanding_balance": str(outstanding),
            "loan_status": status,
        },
    )


def log_sweep(swept: int, failed: int, total_amount: Decimal, duration_ms: float) -> None:
    """Log the outcome of a savings sweep pass"""
    logging.info(
        "Savings sweep completed",
        extra={
            "step": "savings_sweep",
            "users_swept": swept,
            "users_failed": failed,
            "total_amount": str(total_amount),
            "duration_ms": duration_ms,
        },
    )
