"""Harvest Reconciler.

단일 strategy의 자기 보고 잔고를 recorded debt와 비교해
profit / loss를 인식하고 performance fee를 징수합니다.

순서:
    1. adapter.harvest()       : 반환값은 참고용
    2. adapter.balance_of()    : new_debt (권위 있는 입력)
    3. profit이면 fee = floor(profit * fee_bps / 10000)를 strategy에서 회수해
       fee recipient에게 전송, new_debt에서 요청 fee만큼 차감
       (회수 미달분은 recipient가 받지 못한 금액으로 처리)
    4. recorded_debt = new_debt, total_debt += new_debt - old_debt
    5. StrategyReconciledEvent(profit, loss, fee) 발행

Permissionless: 자본은 strategy → vault / fee recipient 방향으로만,
strategy가 보고한 금액 이내에서만 이동합니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.core.events import StrategyReconciledEvent
from src.core.exceptions import add_context_note
from src.models.types import MAX_BPS, bps_of
from src.vault.allocator import withdraw_measured
from src.vault.models import ReconcileResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from src.core.event_log import EventLog
    from src.models.types import Address
    from src.vault.asset import Asset
    from src.vault.ledger import VaultLedger
    from src.vault.registry import AllocationRegistry


class PerformanceFee(BaseModel):
    """Performance fee 설정.

    Attributes:
        fee_bps: profit 대비 fee 비율
        max_fee_bps: operator가 설정할 수 있는 상한
        recipient: fee 수령 주소
    """

    model_config = ConfigDict(validate_assignment=True)

    fee_bps: int = Field(default=0, ge=0, le=MAX_BPS)
    max_fee_bps: int = Field(default=MAX_BPS, ge=0, le=MAX_BPS)
    recipient: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def fee_within_cap(self) -> Self:
        if self.fee_bps > self.max_fee_bps:
            msg = f"fee_bps ({self.fee_bps}) exceeds max_fee_bps ({self.max_fee_bps})"
            raise ValueError(msg)
        return self

    def fee_for(self, profit: int) -> int:
        """profit에 대한 fee (profit <= 0이면 0)."""
        if profit <= 0 or self.fee_bps == 0:
            return 0
        return bps_of(profit, self.fee_bps)


class HarvestReconciler:
    """Strategy 단위 harvest reconciliation.

    Args:
        vault: vault 주소
        asset: underlying asset ledger
        ledger: vault ledger
        registry: allocation registry
        fee: performance fee 설정 (vault와 공유되는 가변 객체)
        events: 이벤트 로그
        clock: 현재 시각 공급자
    """

    def __init__(
        self,
        vault: Address,
        asset: Asset,
        ledger: VaultLedger,
        registry: AllocationRegistry,
        fee: PerformanceFee,
        events: EventLog,
        clock: Callable[[], datetime],
    ) -> None:
        self._vault = vault
        self._asset = asset
        self._ledger = ledger
        self._registry = registry
        self._fee = fee
        self._events = events
        self._clock = clock

    def reconcile(self, strategy: Address) -> ReconcileResult:
        """Strategy 하나를 harvest하고 ledger에 반영.

        Raises:
            NotActive: 미등록 또는 비활성 strategy
        """
        record = self._registry.require_active(strategy)
        adapter = self._registry.adapter(strategy)

        try:
            reported_profit = adapter.harvest()
            new_debt = adapter.balance_of()
        except Exception as exc:
            add_context_note(exc, f"harvest failed on strategy {strategy}")
            raise

        old_debt = record.recorded_debt
        profit = max(new_debt - old_debt, 0)
        loss = max(old_debt - new_debt, 0)

        fee = 0
        requested_fee = self._fee.fee_for(profit)
        if requested_fee > 0:
            received = withdraw_measured(self._asset, self._vault, adapter, requested_fee)
            fee = min(received, requested_fee)
            if fee:
                self._asset.transfer(self._vault, self._fee.recipient, fee)
            # 요청 이상으로 돌아온 금액은 idle로 편입
            self._ledger.credit_idle(received - fee)
            # 미달분은 strategy에서 이미 빠져나간 금액이므로 debt에 남기지 않음
            new_debt = max(new_debt - max(received, requested_fee), 0)

        self._ledger.set_debt(record, new_debt)
        now = self._clock()
        record.last_reconciled_at = now

        if loss:
            logger.warning(
                "Reconciler: {} reported loss {} (debt {} -> {})",
                strategy,
                loss,
                old_debt,
                new_debt,
            )
        else:
            logger.info(
                "Reconciler: {} profit={} fee={} (debt {} -> {})",
                strategy,
                profit,
                fee,
                old_debt,
                new_debt,
            )

        self._events.publish(
            StrategyReconciledEvent(
                vault=self._vault,
                strategy=strategy,
                profit=profit,
                loss=loss,
                fee=fee,
                reported_profit=max(reported_profit, 0),
                recorded_debt=new_debt,
            )
        )
        return ReconcileResult(
            strategy=strategy,
            reported_profit=max(reported_profit, 0),
            profit=profit,
            loss=loss,
            fee=fee,
            old_debt=old_debt,
            new_debt=new_debt,
            reconciled_at=now,
        )
