"""Vault runtime settings (VAULT_* env vars, .env).

YAML 시나리오에 값이 없을 때 사용되는 기본값입니다.

Features:
    - Performance fee bounds (hard cap + default rate)
    - Underlying asset metadata
    - State snapshot directory

Rules Applied:
    - #11 Pydantic Modeling: BaseSettings, field validators
"""

from functools import lru_cache
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.types import MAX_BPS


class VaultSettings(BaseSettings):
    """Vault 런타임 설정.

    Environment Variables:
        - VAULT_MAX_PERFORMANCE_FEE_BPS: performance fee 상한 (기본: 5000)
        - VAULT_DEFAULT_PERFORMANCE_FEE_BPS: 신규 vault의 기본 fee (기본: 1000)
        - VAULT_ASSET_SYMBOL: underlying asset 심볼 (기본: USDC)
        - VAULT_ASSET_DECIMALS: underlying asset 소수 자릿수 (기본: 6)
        - VAULT_STATE_DIR: 스냅샷 저장 경로 (기본: data/vault)

    Example:
        >>> settings = get_settings()
        >>> settings.max_performance_fee_bps
        5000
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Performance Fee
    # ==========================================================================
    max_performance_fee_bps: int = Field(
        default=5000,
        ge=0,
        le=MAX_BPS,
        description="Operator가 설정할 수 있는 performance fee 상한 (bps)",
    )
    default_performance_fee_bps: int = Field(
        default=1000,
        ge=0,
        le=MAX_BPS,
        description="신규 vault의 기본 performance fee (bps)",
    )

    # ==========================================================================
    # Underlying Asset
    # ==========================================================================
    asset_symbol: str = Field(
        default="USDC",
        min_length=1,
        description="Underlying asset 심볼",
    )
    asset_decimals: int = Field(
        default=6,
        ge=0,
        le=36,
        description="Underlying asset 소수 자릿수 (표시용)",
    )

    # ==========================================================================
    # Persistence
    # ==========================================================================
    state_dir: Path = Field(
        default=Path("data/vault"),
        description="Vault 스냅샷 YAML 저장 경로",
    )

    @model_validator(mode="after")
    def validate_fee_bounds(self) -> Self:
        """기본 fee가 상한을 넘지 않는지 검증."""
        if self.default_performance_fee_bps > self.max_performance_fee_bps:
            msg = (
                f"default_performance_fee_bps ({self.default_performance_fee_bps}) "
                f"exceeds max_performance_fee_bps ({self.max_performance_fee_bps})"
            )
            raise ValueError(msg)
        return self


@lru_cache
def get_settings() -> VaultSettings:
    """설정 싱글톤 반환.

    Returns:
        VaultSettings 인스턴스 (캐시됨)
    """
    return VaultSettings()
