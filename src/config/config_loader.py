"""YAML 시뮬레이션 설정 로더.

YAML 파일에서 SimulationConfig를 로드합니다.
vault / asset / strategies / steps 네 섹션으로 구성됩니다.

Example YAML:
    vault:
      operator: ops
      fee_recipient: treasury
      performance_fee_bps: 200
    strategies:
      - address: strat:lending
        adapter: simulated
        target_bps: 5000
        params: {apr_bps: 450}
    steps:
      - {action: deposit, account: alice, amount: 1000}
      - {action: accrue, strategy: strat:lending, amount: 50}
      - {action: reconcile, strategy: strat:lending}

Rules Applied:
    - #11 Pydantic Modeling: frozen=True, discriminated unions
    - #10 Python Standards: Modern typing, Path
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.config.settings import get_settings
from src.models.types import MAX_BPS


class AssetSection(BaseModel):
    """Underlying asset 설정 (생략 시 VaultSettings 값)."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(default_factory=lambda: get_settings().asset_symbol, min_length=1)
    decimals: int = Field(default_factory=lambda: get_settings().asset_decimals, ge=0, le=36)


class VaultSection(BaseModel):
    """Vault 설정. None인 fee 필드는 VaultSettings 기본값을 사용."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(default="vault:0", min_length=1)
    operator: str = Field(..., min_length=1)
    fee_recipient: str | None = None
    performance_fee_bps: int | None = Field(default=None, ge=0, le=MAX_BPS)
    max_performance_fee_bps: int | None = Field(default=None, ge=0, le=MAX_BPS)


class StrategySection(BaseModel):
    """Strategy adapter 하나의 설정."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1)
    adapter: str = "simulated"
    name: str | None = None
    target_bps: int = Field(default=0, ge=0, le=MAX_BPS)
    params: dict[str, Any] = Field(default_factory=dict)


# ─── Steps ───────────────────────────────────────────────────────────


class DepositStep(BaseModel):
    """account에 amount를 mint + approve 한 뒤 deposit."""

    model_config = ConfigDict(frozen=True)

    action: Literal["deposit"] = "deposit"
    account: str = Field(..., min_length=1)
    amount: int = Field(gt=0)


class WithdrawStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["withdraw"] = "withdraw"
    account: str = Field(..., min_length=1)
    amount: int = Field(gt=0)


class AccrueStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["accrue"] = "accrue"
    strategy: str
    amount: int = Field(ge=0)


class LossStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["loss"] = "loss"
    strategy: str
    amount: int = Field(ge=0)


class ReconcileStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["reconcile"] = "reconcile"
    strategy: str


class UpdateTargetStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["update_target"] = "update_target"
    strategy: str
    target_bps: int = Field(ge=0, le=MAX_BPS)


class DeregisterStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["deregister"] = "deregister"
    strategy: str


class DeployStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["deploy"] = "deploy"


class SetFeeStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["set_fee"] = "set_fee"
    fee_bps: int = Field(ge=0, le=MAX_BPS)


SimulationStep = Annotated[
    DepositStep
    | WithdrawStep
    | AccrueStep
    | LossStep
    | ReconcileStep
    | UpdateTargetStep
    | DeregisterStep
    | DeployStep
    | SetFeeStep,
    Field(discriminator="action"),
]


class SimulationConfig(BaseModel):
    """YAML 최상위 모델: 모든 설정을 통합."""

    model_config = ConfigDict(frozen=True)

    asset: AssetSection = Field(default_factory=AssetSection)
    vault: VaultSection
    strategies: list[StrategySection] = Field(default_factory=list)
    steps: list[SimulationStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_strategies(self) -> Self:
        """Strategy 주소 중복 금지."""
        addresses = [s.address for s in self.strategies]
        duplicates = sorted({a for a in addresses if addresses.count(a) > 1})
        if duplicates:
            msg = f"Duplicate strategy addresses: {duplicates}"
            raise ValueError(msg)
        return self


def load_config(path: str | Path) -> SimulationConfig:
    """YAML → SimulationConfig (Pydantic 검증 포함).

    Args:
        path: YAML 설정 파일 경로

    Returns:
        검증된 SimulationConfig 인스턴스

    Raises:
        FileNotFoundError: 파일이 존재하지 않을 경우
        yaml.YAMLError: YAML 파싱 실패
        pydantic.ValidationError: 검증 실패
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Config file not found: {file_path}"
        raise FileNotFoundError(msg)

    raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    return SimulationConfig.model_validate(raw)
