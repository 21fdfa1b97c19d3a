"""Vault Ledger: 집계 회계 뷰.

idle 잔고와 배포된 debt 합계를 보관합니다. total_debt는 캐시 값이므로
StrategyRecord.recorded_debt를 바꾸는 모든 지점은 반드시 이 모듈의
helper를 통해 두 값을 함께 갱신해야 합니다.

    total_assets = idle + total_debt   (share pricing의 유일한 기준)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from loguru import logger

from src.core.exceptions import InvariantViolation
from src.models.types import MAX_BPS

if TYPE_CHECKING:
    from src.vault.models import StrategyRecord


class VaultLedger:
    """Idle / debt 집계.

    Attributes:
        idle: vault가 직접 보유한 underlying asset
        total_debt: 모든 레코드의 recorded_debt 합계 (캐시)
    """

    __slots__ = ("_idle", "_total_debt")

    def __init__(self, idle: int = 0, total_debt: int = 0) -> None:
        if idle < 0 or total_debt < 0:
            msg = "Ledger values must be non-negative"
            raise InvariantViolation(msg, context={"idle": idle, "total_debt": total_debt})
        self._idle = idle
        self._total_debt = total_debt

    # ─── Views ───────────────────────────────────────────────────────

    @property
    def idle(self) -> int:
        return self._idle

    @property
    def total_debt(self) -> int:
        return self._total_debt

    @property
    def total_assets(self) -> int:
        return self._idle + self._total_debt

    def reset(self, idle: int, total_debt: int) -> None:
        """스냅샷 복원용."""
        if idle < 0 or total_debt < 0:
            msg = "Ledger values must be non-negative"
            raise InvariantViolation(msg, context={"idle": idle, "total_debt": total_debt})
        self._idle = idle
        self._total_debt = total_debt

    # ─── Idle ────────────────────────────────────────────────────────

    def credit_idle(self, amount: int) -> None:
        self._idle += amount

    def debit_idle(self, amount: int) -> None:
        if amount > self._idle:
            msg = "Idle balance would become negative"
            raise InvariantViolation(msg, context={"idle": self._idle, "amount": amount})
        self._idle -= amount

    # ─── Debt (record와 lockstep 갱신) ───────────────────────────────

    def increase_debt(self, record: StrategyRecord, amount: int) -> None:
        record.recorded_debt += amount
        self._total_debt += amount

    def decrease_debt(self, record: StrategyRecord, amount: int) -> int:
        """recorded_debt를 최대 amount만큼 감소.

        Returns:
            실제로 감소한 금액 (recorded_debt를 넘지 않음)
        """
        reduction = min(amount, record.recorded_debt)
        record.recorded_debt -= reduction
        self._total_debt -= reduction
        return reduction

    def set_debt(self, record: StrategyRecord, new_debt: int) -> int:
        """recorded_debt를 new_debt로 설정하고 total_debt를 delta만큼 조정.

        Returns:
            new_debt - old_debt
        """
        if new_debt < 0:
            msg = "Recorded debt must be non-negative"
            raise InvariantViolation(
                msg, context={"strategy": record.strategy, "new_debt": new_debt}
            )
        delta = new_debt - record.recorded_debt
        record.recorded_debt = new_debt
        self._total_debt += delta
        return delta

    # ─── Invariants ──────────────────────────────────────────────────

    def check_invariants(
        self,
        records: list[StrategyRecord],
        asset_balance: int,
    ) -> None:
        """Ledger 불변식 검증.

        - total_debt == sum(recorded_debt)
        - idle <= 실제 asset 잔고 (donation으로 초과 보유는 허용)
        - 활성 target 합계 <= 10000 bps
        - 비활성 레코드는 debt 0

        Raises:
            InvariantViolation: 하나라도 위반 시
        """
        recorded = sum(r.recorded_debt for r in records)
        if recorded != self._total_debt:
            msg = "total_debt drifted from recorded debts"
            raise InvariantViolation(
                msg, context={"total_debt": self._total_debt, "sum_recorded": recorded}
            )
        if self._idle > asset_balance:
            msg = "Idle balance exceeds the vault's asset balance"
            raise InvariantViolation(
                msg, context={"idle": self._idle, "asset_balance": asset_balance}
            )
        total_bps = sum(r.allocation_target_bps for r in records if r.active)
        if total_bps > MAX_BPS:
            msg = "Active allocation targets exceed 100%"
            raise InvariantViolation(msg, context={"total_target_bps": total_bps})
        stale = [r.strategy for r in records if not r.active and r.recorded_debt]
        if stale:
            msg = "Inactive strategies still carry debt"
            raise InvariantViolation(msg, context={"strategies": stale})

        logger.trace(
            "Ledger invariants hold: idle={} total_debt={} total_assets={}",
            self._idle,
            self._total_debt,
            self.total_assets,
        )

    def get_state(self) -> dict[str, object]:
        return {"idle": self._idle, "total_debt": self._total_debt}

    def restore_state(self, state: dict[str, object]) -> None:
        self._idle = cast("int", state["idle"])
        self._total_debt = cast("int", state["total_debt"])

    def __repr__(self) -> str:
        return (
            f"VaultLedger(idle={self._idle}, total_debt={self._total_debt}, "
            f"total_assets={self.total_assets})"
        )
