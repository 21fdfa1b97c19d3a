"""Underlying asset ledger.

Vault가 입출금하는 단일 토큰의 잔고/allowance를 정수 단위로 관리합니다.
Vault의 idle 잔고는 이 ledger의 balance_of(vault)로 독립 검증됩니다.

Rules Applied:
    - #10 Python Standards: Modern typing
    - #23 Exception Handling: 잔고 부족 시 InsufficientBalance
"""

from __future__ import annotations

from collections import defaultdict
from typing import cast

from loguru import logger

from src.core.exceptions import InsufficientBalance, InvalidAddress, InvalidAmount
from src.models.types import Address, is_zero_address


def require_amount(amount: int, *, allow_zero: bool = True) -> int:
    """금액이 음수가 아닌 정수인지 검증.

    Raises:
        InvalidAmount: bool, 정수 아님, 음수, (allow_zero=False일 때) 0
    """
    if not isinstance(amount, int) or isinstance(amount, bool):
        msg = "Amount must be an integer"
        raise InvalidAmount(msg, context={"amount": amount})
    if amount < 0:
        msg = "Amount must be non-negative"
        raise InvalidAmount(msg, context={"amount": amount})
    if amount == 0 and not allow_zero:
        msg = "Amount must be positive"
        raise InvalidAmount(msg, context={"amount": amount})
    return amount


def require_address(address: Address | None, field: str = "address") -> Address:
    """Zero address가 아닌지 검증."""
    if address is None or is_zero_address(address):
        msg = f"{field} must not be the zero address"
        raise InvalidAddress(msg, context={field: address})
    return address


class Asset:
    """정수 잔고 기반 토큰 ledger.

    Attributes:
        symbol: 토큰 심볼
        decimals: 표시용 소수 자릿수
        address: 토큰 식별자 (strategy identity 검증에 사용)

    Example:
        >>> usdc = Asset("USDC", decimals=6)
        >>> usdc.mint("0xALICE", 1_000)
        >>> usdc.transfer("0xALICE", "0xBOB", 250)
        >>> usdc.balance_of("0xBOB")
        250
    """

    def __init__(
        self,
        symbol: str = "USDC",
        decimals: int = 6,
        address: Address | None = None,
    ) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self.address: Address = address or f"asset:{symbol.lower()}"
        self._balances: dict[Address, int] = defaultdict(int)
        self._allowances: dict[tuple[Address, Address], int] = defaultdict(int)
        self._total_supply = 0

    # =========================================================================
    # Views
    # =========================================================================

    def balance_of(self, account: Address) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def format(self, amount: int) -> str:
        """정수 금액을 사람이 읽을 수 있는 문자열로 변환."""
        if self.decimals == 0:
            return f"{amount:,} {self.symbol}"
        whole, frac = divmod(amount, 10**self.decimals)
        return f"{whole:,}.{frac:0{self.decimals}d} {self.symbol}"

    # =========================================================================
    # Mutations
    # =========================================================================

    def mint(self, to: Address, amount: int) -> None:
        require_address(to, "to")
        require_amount(amount)
        self._balances[to] += amount
        self._total_supply += amount

    def burn(self, frm: Address, amount: int) -> None:
        require_amount(amount)
        self._debit(frm, amount)
        self._total_supply -= amount

    def transfer(self, frm: Address, to: Address, amount: int) -> None:
        """frm → to 이체.

        Raises:
            InvalidAddress: to가 zero address
            InsufficientBalance: frm 잔고 부족
        """
        require_address(to, "to")
        require_amount(amount)
        if amount == 0:
            return
        self._debit(frm, amount)
        self._balances[to] += amount

    def approve(self, owner: Address, spender: Address, amount: int) -> None:
        require_address(spender, "spender")
        require_amount(amount)
        self._allowances[(owner, spender)] = amount

    def transfer_from(self, spender: Address, frm: Address, to: Address, amount: int) -> None:
        """spender가 frm의 allowance를 사용해 to로 이체.

        Raises:
            InsufficientBalance: allowance 또는 잔고 부족
        """
        require_amount(amount)
        current = self.allowance(frm, spender)
        if current < amount:
            msg = "Insufficient allowance"
            raise InsufficientBalance(
                msg,
                context={"owner": frm, "spender": spender, "allowance": current, "amount": amount},
            )
        self.transfer(frm, to, amount)
        self._allowances[(frm, spender)] = current - amount

    def _debit(self, account: Address, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            msg = f"Insufficient {self.symbol} balance"
            raise InsufficientBalance(
                msg, context={"account": account, "balance": balance, "amount": amount}
            )
        self._balances[account] = balance - amount

    # =========================================================================
    # Journal state
    # =========================================================================

    def get_state(self) -> dict[str, object]:
        return {
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "total_supply": self._total_supply,
        }

    def restore_state(self, state: dict[str, object]) -> None:
        self._balances = defaultdict(int, cast("dict[Address, int]", state["balances"]))
        self._allowances = defaultdict(
            int, cast("dict[tuple[Address, Address], int]", state["allowances"])
        )
        self._total_supply = cast("int", state["total_supply"])

    def __repr__(self) -> str:
        return f"Asset(symbol={self.symbol!r}, supply={self._total_supply})"


def ensure_allowance(asset: Asset, owner: Address, spender: Address, amount: int) -> None:
    """현재 allowance가 amount보다 작을 때만 approve.

    외부 호출 직전에 spender가 충분한 allowance를 갖도록 보장합니다.
    """
    if asset.allowance(owner, spender) < amount:
        logger.debug(
            "Raising {} allowance: owner={} spender={} amount={}",
            asset.symbol,
            owner,
            spender,
            amount,
        )
        asset.approve(owner, spender, amount)
