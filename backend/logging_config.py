"""
Structured logging configuration
"""
import logging
import sys
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger
from typing import Any, Dict


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds timestamp, level and parking context fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        # Standard envelope
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name

        # Traceback for logger.exception calls
        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        # Context passed through extra=
        if hasattr(record, 'request_id'):
            log_record['request_id'] = record.request_id

        if hasattr(record, 'lot_id'):
            log_record['lot_id'] = record.lot_id


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure application logging"""

    # Start from a clean root logger
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler on stdout
    console_handler = logging.StreamHandler(sys.stdout)

    if log_format == "json":
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler.setFormatter(formatter)

    # Attach to root logger
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance"""
    return logging.getLogger(name)
