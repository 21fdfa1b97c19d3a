"""Vault 도메인 이벤트 타입 계층.

모든 ledger 변경은 불변(frozen) 이벤트 하나 이상을 발행합니다.
이벤트는 EventLog를 통해 동기적으로 구독자에게 전달되며,
감사(audit) 기록과 CLI 출력의 단일 소스입니다.

Rules Applied:
    - #11 Pydantic Modeling: frozen=True, Literal discriminator
    - #10 Python Standards: StrEnum, Modern typing
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal, TypeAlias
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class VaultEventType(StrEnum):
    """Vault 이벤트 타입."""

    # Registry
    STRATEGY_REGISTERED = "strategy_registered"
    STRATEGY_DEREGISTERED = "strategy_deregistered"
    ALLOCATION_UPDATED = "allocation_updated"

    # Depositor flows
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"

    # Capital allocator
    CAPITAL_DEPLOYED = "capital_deployed"
    CAPITAL_PULLED = "capital_pulled"

    # Harvest reconciler
    STRATEGY_RECONCILED = "strategy_reconciled"
    LOSS_WRITTEN_OFF = "loss_written_off"

    # Administration
    PERFORMANCE_FEE_UPDATED = "performance_fee_updated"
    FEE_RECIPIENT_UPDATED = "fee_recipient_updated"
    OPERATOR_UPDATED = "operator_updated"


class BaseEvent(BaseModel):
    """모든 vault 이벤트의 공통 필드."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    vault: str = Field(..., description="이벤트를 발행한 vault 주소")


# =============================================================================
# Registry Events
# =============================================================================


class StrategyRegisteredEvent(BaseEvent):
    event_type: Literal[VaultEventType.STRATEGY_REGISTERED] = VaultEventType.STRATEGY_REGISTERED
    strategy: str
    target_bps: int = Field(ge=0)
    total_target_bps: int = Field(ge=0)


class StrategyDeregisteredEvent(BaseEvent):
    event_type: Literal[VaultEventType.STRATEGY_DEREGISTERED] = (
        VaultEventType.STRATEGY_DEREGISTERED
    )
    strategy: str
    returned: int = Field(ge=0, description="회수되어 idle로 돌아온 금액")
    written_off: int = Field(ge=0, description="회수되지 않아 손실 처리된 금액")
    total_target_bps: int = Field(ge=0)


class AllocationUpdatedEvent(BaseEvent):
    event_type: Literal[VaultEventType.ALLOCATION_UPDATED] = VaultEventType.ALLOCATION_UPDATED
    strategy: str
    old_bps: int = Field(ge=0)
    new_bps: int = Field(ge=0)
    total_target_bps: int = Field(ge=0)


# =============================================================================
# Depositor Events
# =============================================================================


class DepositEvent(BaseEvent):
    event_type: Literal[VaultEventType.DEPOSIT] = VaultEventType.DEPOSIT
    owner: str
    assets: int = Field(gt=0)
    shares: int = Field(ge=0)


class WithdrawEvent(BaseEvent):
    event_type: Literal[VaultEventType.WITHDRAW] = VaultEventType.WITHDRAW
    owner: str
    receiver: str
    assets: int = Field(gt=0)
    shares: int = Field(ge=0)


# =============================================================================
# Allocator Events
# =============================================================================


class CapitalDeployedEvent(BaseEvent):
    event_type: Literal[VaultEventType.CAPITAL_DEPLOYED] = VaultEventType.CAPITAL_DEPLOYED
    strategy: str
    amount: int = Field(gt=0)
    recorded_debt: int = Field(ge=0)


class CapitalPulledEvent(BaseEvent):
    event_type: Literal[VaultEventType.CAPITAL_PULLED] = VaultEventType.CAPITAL_PULLED
    strategy: str
    requested: int = Field(ge=0)
    returned: int = Field(ge=0)
    recorded_debt: int = Field(ge=0)


# =============================================================================
# Reconciler Events
# =============================================================================


class StrategyReconciledEvent(BaseEvent):
    """Harvest 결과. profit과 loss 중 최대 하나만 0이 아닙니다."""

    event_type: Literal[VaultEventType.STRATEGY_RECONCILED] = (
        VaultEventType.STRATEGY_RECONCILED
    )
    strategy: str
    profit: int = Field(ge=0)
    loss: int = Field(ge=0)
    fee: int = Field(ge=0)
    reported_profit: int = Field(ge=0, description="adapter harvest() 반환값 (참고용)")
    recorded_debt: int = Field(ge=0)


class LossWrittenOffEvent(BaseEvent):
    event_type: Literal[VaultEventType.LOSS_WRITTEN_OFF] = VaultEventType.LOSS_WRITTEN_OFF
    strategy: str
    amount: int = Field(gt=0)


# =============================================================================
# Administration Events
# =============================================================================


class PerformanceFeeUpdatedEvent(BaseEvent):
    event_type: Literal[VaultEventType.PERFORMANCE_FEE_UPDATED] = (
        VaultEventType.PERFORMANCE_FEE_UPDATED
    )
    old_bps: int = Field(ge=0)
    new_bps: int = Field(ge=0)


class FeeRecipientUpdatedEvent(BaseEvent):
    event_type: Literal[VaultEventType.FEE_RECIPIENT_UPDATED] = (
        VaultEventType.FEE_RECIPIENT_UPDATED
    )
    old_recipient: str
    new_recipient: str


class OperatorUpdatedEvent(BaseEvent):
    event_type: Literal[VaultEventType.OPERATOR_UPDATED] = VaultEventType.OPERATOR_UPDATED
    old_operator: str
    new_operator: str


AnyEvent: TypeAlias = (
    StrategyRegisteredEvent
    | StrategyDeregisteredEvent
    | AllocationUpdatedEvent
    | DepositEvent
    | WithdrawEvent
    | CapitalDeployedEvent
    | CapitalPulledEvent
    | StrategyReconciledEvent
    | LossWrittenOffEvent
    | PerformanceFeeUpdatedEvent
    | FeeRecipientUpdatedEvent
    | OperatorUpdatedEvent
)

EVENT_TYPE_MAP: dict[VaultEventType, type[BaseEvent]] = {
    VaultEventType.STRATEGY_REGISTERED: StrategyRegisteredEvent,
    VaultEventType.STRATEGY_DEREGISTERED: StrategyDeregisteredEvent,
    VaultEventType.ALLOCATION_UPDATED: AllocationUpdatedEvent,
    VaultEventType.DEPOSIT: DepositEvent,
    VaultEventType.WITHDRAW: WithdrawEvent,
    VaultEventType.CAPITAL_DEPLOYED: CapitalDeployedEvent,
    VaultEventType.CAPITAL_PULLED: CapitalPulledEvent,
    VaultEventType.STRATEGY_RECONCILED: StrategyReconciledEvent,
    VaultEventType.LOSS_WRITTEN_OFF: LossWrittenOffEvent,
    VaultEventType.PERFORMANCE_FEE_UPDATED: PerformanceFeeUpdatedEvent,
    VaultEventType.FEE_RECIPIENT_UPDATED: FeeRecipientUpdatedEvent,
    VaultEventType.OPERATOR_UPDATED: OperatorUpdatedEvent,
}
