"""Utility modules for the relay admin control plane."""

from .logging import setup_logging, get_logger
from .timestamps import format_timestamp, parse_timestamp, utcnow

__all__ = [
    "setup_logging",
    "get_logger",
    "format_timestamp",
    "parse_timestamp",
    "utcnow",
]
