"""Logging service module for the vault ledger.

This module provides the logging infrastructure with:
- Pydantic settings for sinks and levels (LOG_* env vars)
- Context binding utilities (vault / strategy / operation / trace_id)

Rules Applied:
    - #15 Logging Standards: Loguru, dual sinks
    - #23 Exception Handling: Errors logged with context before re-raise
"""

from src.logging.config import LoggingConfig, get_logging_config
from src.logging.context import (
    LoggingContext,
    clear_context,
    generate_trace_id,
    get_current_context,
    get_strategy_logger,
    get_vault_logger,
)

__all__ = [
    "LoggingConfig",
    "LoggingContext",
    "clear_context",
    "generate_trace_id",
    "get_current_context",
    "get_logging_config",
    "get_strategy_logger",
    "get_vault_logger",
]
