"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

RAW_TEXT_LOG_LIMIT = 500


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "cardsavvy-gateway"


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


def log_request(request_id: str, method: str, path: str, status: int, duration_ms: float) -> None:
    """Log one line per API request"""
    logging.info(
        f"{method} {path} {status}",
        extra={
            "request_id": request_id,
            "method": method,
            "path": path,
            "status": status,
            "duration_ms": round(duration_ms, 2),
        },
    )


def log_recommendations(
    user_id: str,
    candidate_count: int,
    returned_count: int,
    fallback_count: int,
    duration_ms: float,
) -> None:
    """Log structured recommendation batch outcome"""
    logging.info(
        "Recommendations generated",
        extra={
            "user_id": user_id,
            "step": "recommendations_complete",
            "candidate_count": candidate_count,
            "returned_count": returned_count,
            "fallback_count": fallback_count,
            "duration_ms": round(duration_ms, 2),
        },
    )


def log_llm_fallback(stage: str, reason: str, raw_text: str = "") -> None:
    """Record a substituted model result together with the text that caused it"""
    logging.warning(
        f"LLM fallback used for {stage}",
        extra={
            "step": "llm_fallback",
            "stage": stage,
            "reason": reason,
            "raw_text": raw_text[:RAW_TEXT_LOG_LIMIT],
        },
    )


def log_chat_turn(user_id: str, context: str, confidence: float) -> None:
    """Record the classified context of a completed chat exchange"""
    logging.info(
        "Chat turn completed",
        extra={
            "user_id": user_id,
            "step": "chat_turn",
            "context": context,
            "confidence": confidence,
        },
    )
