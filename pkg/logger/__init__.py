"""
Structured logging for the Customer Service.
"""
from .logger import (
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)

__all__ = [
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
    "setup_logging",
]
