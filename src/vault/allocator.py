"""Capital Allocator: deploy / pull waterfall.

Deploy path:
    idle 자본 유입 후, 활성 strategy를 registration 순서대로 돌며
    target_debt = floor(total_assets * target_bps / 10000) 까지 idle을 투입합니다.
    idle이 0이 되면 조기 종료합니다. 새 유입이 없으면 두 번째 호출은 no-op입니다.

Pull path:
    withdraw 요청이 idle을 초과하면 같은 순서로 strategy별 recorded_debt 한도까지
    회수를 요청합니다. Strategy가 실제로 반환한 금액만큼만 debt가 감소합니다.

Rules Applied:
    - Order Determinism: registration 순서 (shortfall 크기 정렬 없음)
    - Ledger before external call: deploy는 debt를 먼저 기록한 뒤 adapter.deposit 호출
    - #23 Exception Handling: adapter 예외에 add_note 후 전파
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from src.core.events import CapitalDeployedEvent, CapitalPulledEvent, LossWrittenOffEvent
from src.core.exceptions import add_context_note

if TYPE_CHECKING:
    from src.core.event_log import EventLog
    from src.models.types import Address
    from src.vault.asset import Asset
    from src.vault.ledger import VaultLedger
    from src.vault.models import StrategyRecord
    from src.vault.ports import StrategyAdapterPort
    from src.vault.registry import AllocationRegistry


def withdraw_measured(
    asset: Asset,
    vault: Address,
    adapter: StrategyAdapterPort,
    amount: int,
) -> int:
    """adapter.withdraw(amount)를 호출하고 vault가 실제로 받은 금액을 반환.

    Adapter의 반환값은 참고용이며, 회계에는 vault asset 잔고 변화량을 사용합니다.
    """
    before = asset.balance_of(vault)
    try:
        reported = adapter.withdraw(amount)
    except Exception as exc:
        add_context_note(exc, f"withdraw({amount}) failed on strategy {adapter.address}")
        raise
    received = asset.balance_of(vault) - before

    if received != reported:
        logger.warning(
            "Strategy {} reported {} returned but vault received {}",
            adapter.address,
            reported,
            received,
        )
    if received < amount:
        logger.warning(
            "Strategy {} under-delivered: requested={} received={}",
            adapter.address,
            amount,
            received,
        )
    return max(received, 0)


class CapitalAllocator:
    """Deploy / pull waterfall.

    Args:
        vault: vault 주소
        asset: underlying asset ledger
        ledger: vault ledger (idle / total_debt)
        registry: allocation registry
        events: 이벤트 로그
    """

    def __init__(
        self,
        vault: Address,
        asset: Asset,
        ledger: VaultLedger,
        registry: AllocationRegistry,
        events: EventLog,
    ) -> None:
        self._vault = vault
        self._asset = asset
        self._ledger = ledger
        self._registry = registry
        self._events = events

    # ─── Deploy ──────────────────────────────────────────────────────

    def deploy(self) -> int:
        """Idle 자본을 target shortfall만큼 strategy에 투입.

        Returns:
            이번 호출에서 투입한 총 금액
        """
        deployed = 0
        for record in self._registry.active_records():
            if self._ledger.idle == 0:
                break

            target = record.target_debt(self._ledger.total_assets)
            if target <= record.recorded_debt:
                continue

            amount = min(target - record.recorded_debt, self._ledger.idle)
            if amount <= 0:
                continue

            self._deploy_to(record, amount)
            deployed += amount

        if deployed:
            logger.info(
                "Allocator: deployed {} (idle={}, total_debt={})",
                deployed,
                self._ledger.idle,
                self._ledger.total_debt,
            )
        return deployed

    def _deploy_to(self, record: StrategyRecord, amount: int) -> None:
        adapter = self._registry.adapter(record.strategy)

        self._asset.transfer(self._vault, record.strategy, amount)
        self._ledger.debit_idle(amount)
        self._ledger.increase_debt(record, amount)

        try:
            accepted = adapter.deposit(amount)
        except Exception as exc:
            add_context_note(exc, f"deposit({amount}) failed on strategy {record.strategy}")
            raise

        if accepted != amount:
            # 전액 수락을 가정: 차이는 다음 reconcile에서 profit/loss로 인식됨
            logger.warning(
                "Strategy {} accepted {} of {} deployed",
                record.strategy,
                accepted,
                amount,
            )

        self._events.publish(
            CapitalDeployedEvent(
                vault=self._vault,
                strategy=record.strategy,
                amount=amount,
                recorded_debt=record.recorded_debt,
            )
        )

    # ─── Pull ────────────────────────────────────────────────────────

    def pull(self, needed: int) -> int:
        """Strategy들에서 최대 needed만큼 회수.

        Args:
            needed: 부족분 (requested - idle)

        Returns:
            실제 회수한 총 금액 (needed보다 적을 수 있음)
        """
        withdrawn = 0
        for record in self._registry.active_records():
            if withdrawn >= needed:
                break
            if record.recorded_debt == 0:
                continue

            request = min(needed - withdrawn, record.recorded_debt)
            withdrawn += self._pull_from(record, request)

        logger.info(
            "Allocator: pulled {} of {} needed (idle={}, total_debt={})",
            withdrawn,
            needed,
            self._ledger.idle,
            self._ledger.total_debt,
        )
        return withdrawn

    def recall(self, record: StrategyRecord) -> tuple[int, int]:
        """Strategy의 recorded_debt 전액을 회수하고 남은 debt는 손실로 상각.

        Returns:
            (returned, written_off)
        """
        returned = 0
        if record.recorded_debt > 0:
            returned = self._pull_from(record, record.recorded_debt)

        written_off = record.recorded_debt
        if written_off:
            self._ledger.decrease_debt(record, written_off)
            logger.warning(
                "Allocator: wrote off {} unrecovered debt from {}",
                written_off,
                record.strategy,
            )
            self._events.publish(
                LossWrittenOffEvent(
                    vault=self._vault,
                    strategy=record.strategy,
                    amount=written_off,
                )
            )
        return returned, written_off

    def _pull_from(self, record: StrategyRecord, request: int) -> int:
        adapter = self._registry.adapter(record.strategy)
        received = withdraw_measured(self._asset, self._vault, adapter, request)

        self._ledger.credit_idle(received)
        self._ledger.decrease_debt(record, received)

        self._events.publish(
            CapitalPulledEvent(
                vault=self._vault,
                strategy=record.strategy,
                requested=request,
                returned=received,
                recorded_debt=record.recorded_debt,
            )
        )
        return received
