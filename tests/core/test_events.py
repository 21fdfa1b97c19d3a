"""이벤트 타입 계층 테스트.

BaseEvent 및 vault 이벤트 타입의 생성, 불변성, 직렬화를 검증합니다.
"""

from datetime import UTC, datetime
from uuid import UUID

import pytest
from pydantic import ValidationError

from src.core.events import (
    EVENT_TYPE_MAP,
    CapitalDeployedEvent,
    DepositEvent,
    LossWrittenOffEvent,
    StrategyReconciledEvent,
    VaultEventType,
)


class TestVaultEventType:
    """VaultEventType StrEnum 테스트."""

    def test_all_event_types_defined(self) -> None:
        assert len(VaultEventType) == 12

    def test_event_type_values(self) -> None:
        assert VaultEventType.DEPOSIT == "deposit"
        assert VaultEventType.STRATEGY_RECONCILED == "strategy_reconciled"
        assert VaultEventType.LOSS_WRITTEN_OFF == "loss_written_off"

    def test_event_type_map_covers_all(self) -> None:
        """EVENT_TYPE_MAP이 모든 VaultEventType을 포함하는지 검증."""
        for et in VaultEventType:
            assert et in EVENT_TYPE_MAP, f"{et} not in EVENT_TYPE_MAP"
            assert EVENT_TYPE_MAP[et].model_fields["event_type"].default == et


class TestCommonEventFields:
    def test_auto_generated_fields(self) -> None:
        before = datetime.now(UTC)
        event = DepositEvent(vault="vault:0", owner="alice", assets=100, shares=100)

        assert isinstance(event.event_id, UUID)
        assert event.timestamp >= before
        assert event.timestamp.tzinfo is not None
        assert event.event_type == VaultEventType.DEPOSIT

    def test_unique_event_ids(self) -> None:
        a = LossWrittenOffEvent(vault="vault:0", strategy="strat:a", amount=1)
        b = LossWrittenOffEvent(vault="vault:0", strategy="strat:a", amount=1)
        assert a.event_id != b.event_id

    def test_frozen(self) -> None:
        event = CapitalDeployedEvent(vault="vault:0", strategy="strat:a", amount=5, recorded_debt=5)
        with pytest.raises(ValidationError):
            event.amount = 6  # type: ignore[misc]


class TestEventValidation:
    def test_zero_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CapitalDeployedEvent(vault="vault:0", strategy="strat:a", amount=0, recorded_debt=0)

    def test_negative_profit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StrategyReconciledEvent(
                vault="vault:0",
                strategy="strat:a",
                profit=-1,
                loss=0,
                fee=0,
                reported_profit=0,
                recorded_debt=0,
            )

    def test_json_round_trip(self) -> None:
        event = DepositEvent(vault="vault:0", owner="alice", assets=100, shares=99)
        restored = DepositEvent.model_validate_json(event.model_dump_json())
        assert restored == event
