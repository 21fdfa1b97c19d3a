"""Proportional share accounting.

Share 가격은 오직 ledger의 total_assets로만 결정됩니다.
Deposit은 share를 내림, withdraw는 소각할 share를 올림하여
반올림 이득이 항상 vault(기존 holder) 쪽에 남도록 합니다.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, cast

from src.core.exceptions import InsufficientShares

if TYPE_CHECKING:
    from src.models.types import Address


class Rounding(StrEnum):
    DOWN = "down"
    UP = "up"


def _mul_div(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    quotient, remainder = divmod(x * y, denominator)
    if rounding == Rounding.UP and remainder:
        return quotient + 1
    return quotient


class ShareLedger:
    """Depositor별 share 잔고."""

    def __init__(self) -> None:
        self._balances: dict[Address, int] = defaultdict(int)
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, owner: Address) -> int:
        return self._balances.get(owner, 0)

    def balances(self) -> dict[Address, int]:
        """0이 아닌 잔고만 반환 (스냅샷용)."""
        return {owner: bal for owner, bal in self._balances.items() if bal}

    # ─── Conversion ──────────────────────────────────────────────────

    def to_shares(self, assets: int, total_assets: int, rounding: Rounding = Rounding.DOWN) -> int:
        """assets → shares. 첫 deposit(또는 자산 전손 후)은 1:1."""
        if self._total_supply == 0 or total_assets == 0:
            return assets
        return _mul_div(assets, self._total_supply, total_assets, rounding)

    def to_assets(self, shares: int, total_assets: int, rounding: Rounding = Rounding.DOWN) -> int:
        """shares → assets."""
        if self._total_supply == 0:
            return shares
        return _mul_div(shares, total_assets, self._total_supply, rounding)

    def price_per_share(self, total_assets: int) -> Decimal:
        """Share 1개당 asset (supply 0이면 1)."""
        if self._total_supply == 0:
            return Decimal(1)
        return Decimal(total_assets) / Decimal(self._total_supply)

    # ─── Mint / Burn ─────────────────────────────────────────────────

    def mint(self, owner: Address, shares: int) -> None:
        self._balances[owner] += shares
        self._total_supply += shares

    def burn(self, owner: Address, shares: int) -> None:
        balance = self.balance_of(owner)
        if shares > balance:
            msg = "Insufficient shares"
            raise InsufficientShares(
                msg, context={"owner": owner, "balance": balance, "shares": shares}
            )
        self._balances[owner] = balance - shares
        self._total_supply -= shares

    def restore(self, balances: dict[Address, int]) -> None:
        self._balances = defaultdict(int, balances)
        self._total_supply = sum(balances.values())

    def get_state(self) -> dict[str, object]:
        return {"balances": dict(self._balances), "total_supply": self._total_supply}

    def restore_state(self, state: dict[str, object]) -> None:
        self._balances = defaultdict(int, cast("dict[Address, int]", state["balances"]))
        self._total_supply = cast("int", state["total_supply"])
