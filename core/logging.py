"""
Logging for CarLeads

JSON lines in deployed environments, plain text locally. Credentials passed
through ``extra`` (passwords, tokens, magic links) are masked before any
handler formats the record.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import settings

REDACTED_FIELDS = {"password", "password_hash", "temp_password", "token", "link", "session", "authorization"}
REDACTED_VALUE = "[REDACTED]"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


class CarLeadsJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping each record with app, environment and UTC event time"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["app"] = settings.app_name
        log_record["environment"] = settings.environment

        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


class RedactingFilter(logging.Filter):
    """Masks credential-bearing attributes passed through ``extra``"""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in REDACTED_FIELDS:
            if getattr(record, field, None):
                setattr(record, field, REDACTED_VALUE)
        return True


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return CarLeadsJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.log_level).upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(log_format or settings.log_format))
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.database_echo else logging.WARNING)


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter merging fixed context (domain, component) into every record"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Logger carrying fixed context fields

    Example:
        logger = get_logger("commission_service", domain="commissions")
        logger.info("Commission created", extra={"lead_id": lead.id})
    """
    return LoggerAdapter(logging.getLogger(name), context)


setup_logging()
