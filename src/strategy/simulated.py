"""Simulated yield strategy.

외부 프로토콜 없이 yield / loss / slippage를 재현하는 adapter입니다.
투입된 자본은 별도의 pool 계정으로 이동하며, 투입 직전에
ensure_allowance로 pool의 allowance를 보장합니다.

Knobs:
    - accrue(amount): pool에 yield 발생 (harvest 시 실현 수익으로 보고)
    - realize_loss(amount): pool 자산 소각
    - withdraw_haircut_bps: withdraw 시 slippage 비율
    - apr_bps: estimate_apr() 반환값
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.core.exceptions import InvalidAmount
from src.models.types import MAX_BPS, bps_of
from src.strategy.base import BaseStrategyAdapter
from src.strategy.registry import register_adapter
from src.vault.asset import ensure_allowance, require_amount

if TYPE_CHECKING:
    from src.models.types import Address
    from src.vault.asset import Asset


@register_adapter("simulated")
class SimulatedStrategy(BaseStrategyAdapter):
    """Pool 계정 하나에 자본을 예치하는 시뮬레이션 adapter.

    Args:
        address: adapter 주소
        vault: 소유 vault 주소
        asset: underlying asset ledger
        name: 표시용 이름
        apr_bps: 보고할 예상 APR
        withdraw_haircut_bps: withdraw 시 손실 비율 (slippage)
        pool: pool 계정 주소 (기본: "{address}:pool")
    """

    def __init__(
        self,
        address: Address,
        vault: Address,
        asset: Asset,
        *,
        name: str | None = None,
        apr_bps: int = 0,
        withdraw_haircut_bps: int = 0,
        pool: Address | None = None,
    ) -> None:
        super().__init__(address, vault, asset, name=name)
        if not 0 <= withdraw_haircut_bps <= MAX_BPS:
            msg = f"withdraw_haircut_bps must be in [0, {MAX_BPS}]"
            raise InvalidAmount(msg, context={"withdraw_haircut_bps": withdraw_haircut_bps})
        self.apr_bps = apr_bps
        self.withdraw_haircut_bps = withdraw_haircut_bps
        self.pool: Address = pool or f"{address}:pool"
        self._position = 0
        self._unclaimed_profit = 0

    @property
    def position(self) -> int:
        """Pool에 예치된 금액."""
        return self._position

    # ─── Capability surface ──────────────────────────────────────────

    def balance_of(self) -> int:
        return self._position + self.idle_balance()

    def estimate_apr(self) -> int:
        return self.apr_bps

    def _invest(self, amount: int) -> int:
        if amount == 0:
            return 0
        ensure_allowance(self._asset, self.address, self.pool, amount)
        self._asset.transfer_from(self.pool, self.address, self.pool, amount)
        self._position += amount
        return amount

    def _divest(self, amount: int) -> int:
        # 미투입 잔고를 먼저 사용하고, 부족분만 pool에서 회수
        from_idle = min(amount, self.idle_balance())
        from_pool = min(amount - from_idle, self._position)
        if from_pool:
            self._asset.transfer(self.pool, self.address, from_pool)
            self._position -= from_pool

        out = from_idle + from_pool
        lost = bps_of(out, self.withdraw_haircut_bps)
        if lost:
            self._asset.burn(self.address, lost)
            self._log.warning("{}: slippage {} on withdraw of {}", self.name, lost, out)

        returned = out - lost
        self._asset.transfer(self.address, self.vault, returned)
        return returned

    def _claim(self) -> int:
        profit, self._unclaimed_profit = self._unclaimed_profit, 0
        return profit

    # ─── Simulation knobs ────────────────────────────────────────────

    def accrue(self, amount: int) -> None:
        """Pool에 yield 발생."""
        require_amount(amount)
        self._asset.mint(self.pool, amount)
        self._position += amount
        self._unclaimed_profit += amount

    def realize_loss(self, amount: int) -> int:
        """Pool 자산 손실. 실제 소각된 금액을 반환."""
        require_amount(amount)
        lost = min(amount, self._position)
        if lost:
            self._asset.burn(self.pool, lost)
            self._position -= lost
            self._log.warning("{}: realized loss {}", self.name, lost)
        return lost
