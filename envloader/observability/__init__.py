"""Logging and metrics helpers."""

from .logging import JsonLogFormatter, configure_logging, reset_logging
from .metrics import record_backend_call, record_cache_lookup

__all__ = [
    "JsonLogFormatter",
    "configure_logging",
    "record_backend_call",
    "record_cache_lookup",
    "reset_logging",
]
