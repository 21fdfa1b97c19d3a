"""Vault ledger Pydantic models.

Vault 상태를 구성하는 레코드 모델:
- StrategyRecord: strategy별 allocation target / recorded debt / 활성 여부
- ReconcileResult: 단일 harvest reconciliation 결과
- VaultSnapshot: 영속화 대상 (record 테이블 + ledger scalar 필드)
"""

from __future__ import annotations

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.types import MAX_BPS

# ─── Strategy Record ─────────────────────────────────────────────────


class StrategyRecord(BaseModel):
    """등록된 strategy 하나의 ledger 레코드.

    recorded_debt는 allocator(deploy/pull)와 reconciler(harvest)만 변경합니다.
    validate_assignment로 모든 변경 시점에 범위를 재검증합니다.

    Attributes:
        strategy: Adapter 주소
        name: Adapter 이름 (표시용)
        allocation_target_bps: 목표 비중 (total assets 대비 bps)
        recorded_debt: Ledger가 믿는 strategy 보유 금액
        last_reconciled_at: 마지막 harvest 시각
        activated_at: 등록 시각
        active: 비활성이면 target과 debt가 모두 0
    """

    model_config = ConfigDict(validate_assignment=True)

    strategy: str = Field(..., min_length=1)
    name: str = ""
    allocation_target_bps: int = Field(default=0, ge=0, le=MAX_BPS)
    recorded_debt: int = Field(default=0, ge=0)
    last_reconciled_at: datetime | None = None
    activated_at: datetime | None = None
    active: bool = True

    @model_validator(mode="after")
    def inactive_record_is_zeroed(self) -> Self:
        """비활성 레코드는 target/debt가 0이어야 함."""
        if not self.active and (self.allocation_target_bps or self.recorded_debt):
            msg = (
                f"Inactive record {self.strategy} must have zero target and debt "
                f"(target={self.allocation_target_bps}, debt={self.recorded_debt})"
            )
            raise ValueError(msg)
        return self

    def target_debt(self, total_assets: int) -> int:
        """floor(total_assets * target_bps / 10000)."""
        return total_assets * self.allocation_target_bps // MAX_BPS


# ─── Reconcile Result ────────────────────────────────────────────────


class ReconcileResult(BaseModel):
    """Harvest reconciliation 결과.

    profit과 loss 중 최대 하나만 0이 아닙니다.
    """

    model_config = ConfigDict(frozen=True)

    strategy: str
    reported_profit: int = Field(default=0, ge=0)
    profit: int = Field(default=0, ge=0)
    loss: int = Field(default=0, ge=0)
    fee: int = Field(default=0, ge=0)
    old_debt: int = Field(ge=0)
    new_debt: int = Field(ge=0)
    reconciled_at: datetime

    @model_validator(mode="after")
    def profit_xor_loss(self) -> Self:
        if self.profit and self.loss:
            msg = "profit and loss cannot both be non-zero"
            raise ValueError(msg)
        return self


# ─── Snapshot ────────────────────────────────────────────────────────


class VaultSnapshot(BaseModel):
    """영속화 가능한 vault 상태 (YAML 1:1 매핑).

    Strategy 순서는 registration 순서를 그대로 보존합니다.
    """

    model_config = ConfigDict(frozen=True)

    vault: str
    asset: str
    operator: str
    fee_recipient: str
    performance_fee_bps: int = Field(ge=0, le=MAX_BPS)
    max_performance_fee_bps: int = Field(ge=0, le=MAX_BPS)
    idle: int = Field(ge=0)
    total_debt: int = Field(ge=0)
    total_supply: int = Field(ge=0)
    share_balances: dict[str, int] = Field(default_factory=dict)
    strategies: list[StrategyRecord] = Field(default_factory=list)
    taken_at: datetime

    @property
    def total_assets(self) -> int:
        return self.idle + self.total_debt

    @model_validator(mode="after")
    def debt_matches_records(self) -> Self:
        """total_debt == sum(recorded_debt) 검증."""
        recorded = sum(r.recorded_debt for r in self.strategies)
        if recorded != self.total_debt:
            msg = f"total_debt ({self.total_debt}) != sum of recorded debt ({recorded})"
            raise ValueError(msg)
        if sum(self.share_balances.values()) != self.total_supply:
            msg = "share balances do not sum to total_supply"
            raise ValueError(msg)
        return self
