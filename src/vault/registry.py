"""Allocation Registry.

Strategy별 allocation target, recorded debt, 활성 여부를 보관하고
활성 target 합계가 10000 bps를 넘지 않는다는 불변식을 모든 변경 시점에
검사합니다. Registry는 자본을 직접 이동하지 않습니다.

흐름:
    register → (deploy/pull/reconcile이 recorded_debt 변경) → deregister

Rules Applied:
    - #23 Exception Handling: 상태 변경 전 precondition 검사
    - Order Determinism: dict 삽입 순서 = registration 순서
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, cast

from loguru import logger

from src.core.exceptions import (
    AlreadyActive,
    IdentityMismatch,
    InvalidAllocation,
    NotActive,
)
from src.models.types import MAX_BPS
from src.vault.asset import require_address
from src.vault.models import StrategyRecord
from src.vault.ports import StrategyAdapterPort

if TYPE_CHECKING:
    from src.models.types import Address


def _require_bps(bps: int) -> int:
    if not isinstance(bps, int) or isinstance(bps, bool) or not 0 <= bps <= MAX_BPS:
        msg = f"Allocation target must be an integer in [0, {MAX_BPS}]"
        raise InvalidAllocation(msg, context={"target_bps": bps})
    return bps


class AllocationRegistry:
    """Strategy 레코드 테이블.

    Args:
        vault: 이 registry를 소유한 vault 주소
        asset: vault의 underlying asset 주소
    """

    def __init__(self, vault: Address, asset: Address) -> None:
        self._vault = vault
        self._asset = asset
        self._records: dict[Address, StrategyRecord] = {}
        self._adapters: dict[Address, StrategyAdapterPort] = {}
        self._total_target_bps = 0

    # ─── Views ───────────────────────────────────────────────────────

    @property
    def total_target_bps(self) -> int:
        """활성 strategy target 합계."""
        return self._total_target_bps

    def records(self) -> list[StrategyRecord]:
        """모든 레코드 (비활성 포함, registration 순서)."""
        return list(self._records.values())

    def active_records(self) -> list[StrategyRecord]:
        """활성 레코드 (registration 순서)."""
        return [r for r in self._records.values() if r.active]

    def get(self, strategy: Address) -> StrategyRecord | None:
        return self._records.get(strategy)

    def adapter(self, strategy: Address) -> StrategyAdapterPort:
        return self._adapters[strategy]

    def adapters(self) -> list[StrategyAdapterPort]:
        """등록된 모든 adapter (비활성 포함)."""
        return list(self._adapters.values())

    def is_active(self, strategy: Address) -> bool:
        record = self._records.get(strategy)
        return record is not None and record.active

    def require_active(self, strategy: Address) -> StrategyRecord:
        """활성 레코드 반환.

        Raises:
            NotActive: 미등록 또는 비활성
        """
        record = self._records.get(strategy)
        if record is None or not record.active:
            msg = "Strategy is not active"
            raise NotActive(msg, context={"strategy": strategy})
        return record

    def __contains__(self, strategy: object) -> bool:
        return strategy in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ─── Mutation ────────────────────────────────────────────────────

    def register(
        self,
        adapter: StrategyAdapterPort,
        target_bps: int,
        *,
        now: datetime,
    ) -> StrategyRecord:
        """Strategy를 debt 0인 레코드로 등록.

        재등록(이전에 deregister된 strategy)은 registration 순서의 끝으로 이동합니다.

        Raises:
            InvalidAddress: adapter 주소가 zero address
            InvalidAllocation: target 범위 초과 또는 합계 10000 bps 초과
            IdentityMismatch: adapter의 vault/asset이 불일치
            AlreadyActive: 이미 활성 상태
        """
        if not isinstance(adapter, StrategyAdapterPort):
            msg = "Adapter does not implement the strategy capability surface"
            raise IdentityMismatch(msg, context={"adapter": type(adapter).__name__})

        strategy = require_address(adapter.address, "strategy")
        _require_bps(target_bps)

        if self.is_active(strategy):
            msg = "Strategy is already active"
            raise AlreadyActive(msg, context={"strategy": strategy})

        if adapter.vault != self._vault or adapter.asset != self._asset:
            msg = "Strategy identity does not match this vault"
            raise IdentityMismatch(
                msg,
                context={
                    "strategy": strategy,
                    "reported_vault": adapter.vault,
                    "expected_vault": self._vault,
                    "reported_asset": adapter.asset,
                    "expected_asset": self._asset,
                },
            )

        new_total = self._total_target_bps + target_bps
        if new_total > MAX_BPS:
            msg = f"Allocation sum would exceed {MAX_BPS} bps"
            raise InvalidAllocation(
                msg, context={"strategy": strategy, "new_total_bps": new_total}
            )

        record = StrategyRecord(
            strategy=strategy,
            name=adapter.name,
            allocation_target_bps=target_bps,
            recorded_debt=0,
            activated_at=now,
            last_reconciled_at=now,
        )
        # 재등록: 기존(비활성) 레코드를 제거하고 끝에 다시 삽입
        self._records.pop(strategy, None)
        self._records[strategy] = record
        self._adapters[strategy] = adapter
        self._total_target_bps = new_total

        logger.info(
            "Registry: registered {} ({}) at {} bps (total {} bps)",
            strategy,
            adapter.name,
            target_bps,
            new_total,
        )
        return record

    def update_target(self, strategy: Address, new_bps: int) -> tuple[int, int]:
        """활성 strategy의 target 변경 (자본 이동 없음).

        Returns:
            (old_bps, new_bps)

        Raises:
            NotActive: 비활성 strategy
            InvalidAllocation: 범위 초과 또는 합계 10000 bps 초과
        """
        record = self.require_active(strategy)
        _require_bps(new_bps)

        old_bps = record.allocation_target_bps
        new_total = self._total_target_bps - old_bps + new_bps
        if new_total > MAX_BPS:
            msg = f"Allocation sum would exceed {MAX_BPS} bps"
            raise InvalidAllocation(
                msg, context={"strategy": strategy, "new_total_bps": new_total}
            )

        record.allocation_target_bps = new_bps
        self._total_target_bps = new_total
        logger.info(
            "Registry: {} target {} -> {} bps (total {} bps)",
            strategy,
            old_bps,
            new_bps,
            new_total,
        )
        return old_bps, new_bps

    def deactivate(self, strategy: Address) -> StrategyRecord:
        """레코드를 비활성화하고 target 합계에서 제외.

        호출 전에 recorded_debt가 0이어야 합니다 (allocator가 전액 회수/상각).

        Raises:
            NotActive: 비활성 strategy
            ValueError: recorded_debt가 남아 있음
        """
        record = self.require_active(strategy)
        if record.recorded_debt:
            msg = f"Cannot deactivate {strategy} with outstanding debt {record.recorded_debt}"
            raise ValueError(msg)

        self._total_target_bps -= record.allocation_target_bps
        record.allocation_target_bps = 0
        record.active = False
        logger.info(
            "Registry: deactivated {} (total {} bps)", strategy, self._total_target_bps
        )
        return record

    def restore(self, records: list[StrategyRecord], adapters: dict[Address, StrategyAdapterPort]) -> None:
        """스냅샷에서 레코드 테이블 복원.

        Raises:
            InvalidAllocation: 활성 target 합계가 10000 bps 초과
            IdentityMismatch: adapter의 vault/asset이 불일치
            KeyError: 활성 레코드에 대응하는 adapter 없음
        """
        total = sum(r.allocation_target_bps for r in records if r.active)
        if total > MAX_BPS:
            msg = f"Allocation sum would exceed {MAX_BPS} bps"
            raise InvalidAllocation(msg, context={"new_total_bps": total})

        restored: dict[Address, StrategyAdapterPort] = {}
        for record in records:
            adapter = adapters.get(record.strategy)
            if adapter is None:
                if record.active:
                    msg = f"No adapter supplied for active strategy {record.strategy}"
                    raise KeyError(msg)
                continue
            if adapter.vault != self._vault or adapter.asset != self._asset:
                msg = "Strategy identity does not match this vault"
                raise IdentityMismatch(msg, context={"strategy": record.strategy})
            restored[record.strategy] = adapter

        self._records = {r.strategy: r.model_copy() for r in records}
        self._adapters = restored
        self._total_target_bps = total

    # ─── Journal state ───────────────────────────────────────────────

    def get_state(self) -> dict[str, object]:
        return {
            "records": {k: r.model_copy() for k, r in self._records.items()},
            "adapters": dict(self._adapters),
            "total_target_bps": self._total_target_bps,
        }

    def restore_state(self, state: dict[str, object]) -> None:
        self._records = cast("dict[Address, StrategyRecord]", state["records"])
        self._adapters = cast("dict[Address, StrategyAdapterPort]", state["adapters"])
        self._total_target_bps = cast("int", state["total_target_bps"])
