"""Logging configuration for the relay admin CLI."""

# Standard library imports
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Third-party imports
import structlog

# Local application imports
from .._version import __version__
from ..config import settings
from ..config.logging import LoggingConfig

REDACTED = "***"


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structured logging for the CLI.

    Logs go to stderr so they never interleave with operator output.
    """
    config = config or settings.logging

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=config.level_number,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
        add_service_context,
    ]

    if config.use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if config.file:
        setup_file_logging(config)

    configure_third_party_loggers()


def setup_file_logging(config: LoggingConfig) -> Optional[logging.Handler]:
    """Attach a rotating file handler to the root logger."""
    if not config.file:
        return None

    log_file_path = Path(config.file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )

    if config.use_json:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    file_handler.setFormatter(formatter)
    file_handler.setLevel(config.level_number)

    logging.getLogger().addHandler(file_handler)
    return file_handler


def configure_third_party_loggers() -> None:
    """Configure logging levels for third-party libraries."""
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def redact_secrets(logger, method_name, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask any field whose name mentions a password.

    Plaintext credentials are shown to the operator once and never reach a log.
    """
    for key in list(event_dict):
        if "password" in key.lower():
            event_dict[key] = REDACTED
    return event_dict


def add_service_context(logger, method_name, event_dict):
    """Add service context information to log entries."""
    event_dict["service"] = "relay-admin"
    event_dict["version"] = __version__
    return event_dict


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
