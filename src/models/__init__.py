"""Shared domain types."""

from src.models.types import MAX_BPS, ZERO_ADDRESS, Address, VaultOperation, bps_of

__all__ = [
    "MAX_BPS",
    "ZERO_ADDRESS",
    "Address",
    "VaultOperation",
    "bps_of",
]
