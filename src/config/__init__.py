"""Configuration management with Pydantic Settings."""

from src.config.config_loader import SimulationConfig, load_config
from src.config.settings import VaultSettings, get_settings

__all__ = [
    "SimulationConfig",
    "VaultSettings",
    "get_settings",
    "load_config",
]
