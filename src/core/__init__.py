"""Core module - Single Source of Truth for shared components."""

from src.core.event_log import EventLog
from src.core.events import AnyEvent, BaseEvent, VaultEventType
from src.core.exceptions import (
    InsufficientLiquidity,
    PreconditionError,
    ReentrancyError,
    VaultError,
)

__all__ = [
    # Events
    "AnyEvent",
    "BaseEvent",
    "EventLog",
    "VaultEventType",
    # Exceptions
    "InsufficientLiquidity",
    "PreconditionError",
    "ReentrancyError",
    "VaultError",
]
