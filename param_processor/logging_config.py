"""
Structured logging configuration for the parameter processor.

Nothing is configured on import; applications call ``setup_logging`` (or
``setup_logging_from_config``) once at startup.
"""

import logging
import logging.config
import json
import sys
from datetime import datetime, timezone
from typing import Optional
from pathlib import Path

from . import __version__


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def __init__(self, service_name: str = "param-processor", version: str = __version__):
        super().__init__()
        self.service_name = service_name
        self.version = version

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "version": self.version,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, 'extra'):
            log_entry.update(record.extra)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        return json.dumps(log_entry, default=str)


def setup_logging(
    log_level: str = "INFO",
    structured: bool = True,
    log_file_path: Optional[str] = None,
    service_name: str = "param-processor"
) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Emit JSON records instead of plain text
        log_file_path: Also write to this rotating log file when set
        service_name: Name of the service for log entries
    """
    formatter = "structured" if structured else "simple"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
                "service_name": service_name,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": formatter,
                "stream": sys.stdout
            }
        },
        "loggers": {
            "param_processor": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": formatter,
            "filename": log_file_path,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "encoding": "utf8"
        }
        config["loggers"]["param_processor"]["handlers"].append("file")

    logging.config.dictConfig(config)


def setup_logging_from_config(config_manager) -> None:
    """Apply the logging section of a ConfigManager."""
    settings = config_manager.config.logging
    setup_logging(
        log_level=settings.level,
        structured=settings.structured,
        log_file_path=settings.log_file,
    )
