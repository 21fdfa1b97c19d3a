"""BaseStrategyAdapter ABC (Abstract Base Class).

이 모듈은 strategy adapter 구현체가 공유하는 기반 클래스를 정의합니다.
Vault는 StrategyAdapterPort Protocol만 소비하므로 상속은 선택 사항이며,
이 클래스는 identity, 금액 검증, 로깅 같은 공통 동작만 제공합니다.

Template Methods:
    - _invest(amount): 이미 전송된 asset을 포지션에 투입
    - _divest(amount): 포지션에서 회수하여 vault로 반환, 반환액 리턴
    - _claim(): 보상 청구, 실현 수익 리턴

Rules Applied:
    - #10 Python Standards: Modern typing, ABC pattern
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from src.core.exceptions import InsufficientBalance
from src.logging.context import get_strategy_logger
from src.vault.asset import require_address, require_amount

if TYPE_CHECKING:
    from loguru import Logger

    from src.models.types import Address
    from src.vault.asset import Asset


class BaseStrategyAdapter(ABC):
    """Strategy adapter 공통 기반 클래스.

    Args:
        address: adapter 주소
        vault: 소유 vault 주소
        asset: underlying asset ledger
        name: 표시용 이름 (기본: 클래스 이름)

    Example:
        >>> class Idle(BaseStrategyAdapter):
        ...     def balance_of(self) -> int:
        ...         return self.idle_balance()
        ...     def estimate_apr(self) -> int:
        ...         return 0
        ...     def _invest(self, amount: int) -> int:
        ...         return amount
        ...     def _divest(self, amount: int) -> int:
        ...         self._asset.transfer(self.address, self.vault, amount)
        ...         return amount
        ...     def _claim(self) -> int:
        ...         return 0
    """

    def __init__(
        self,
        address: Address,
        vault: Address,
        asset: Asset,
        *,
        name: str | None = None,
    ) -> None:
        self._address = require_address(address, "strategy")
        self._vault = require_address(vault, "vault")
        self._asset = asset
        self._name = name or type(self).__name__
        self._log: Logger = get_strategy_logger(self._address, vault=self._vault)

    # ─── Identity ────────────────────────────────────────────────────

    @property
    def address(self) -> Address:
        return self._address

    @property
    def name(self) -> str:
        return self._name

    @property
    def vault(self) -> Address:
        return self._vault

    @property
    def asset(self) -> Address:
        return self._asset.address

    def idle_balance(self) -> int:
        """Adapter 주소에 머물러 있는 (미투입) asset."""
        return self._asset.balance_of(self._address)

    # ─── Capability surface ──────────────────────────────────────────

    def deposit(self, amount: int) -> int:
        """Vault가 전송한 amount를 포지션에 투입.

        Raises:
            InsufficientBalance: 전송되지 않은 금액을 투입하려 함
        """
        require_amount(amount)
        idle = self.idle_balance()
        if amount > idle:
            msg = "Deposit exceeds the amount transferred to the strategy"
            raise InsufficientBalance(
                msg, context={"strategy": self._address, "amount": amount, "idle": idle}
            )
        accepted = self._invest(amount)
        self._log.debug("{}: invested {} of {}", self._name, accepted, amount)
        return accepted

    def withdraw(self, amount: int) -> int:
        """최대 amount를 vault로 반환하고 실제 반환액을 리턴."""
        require_amount(amount)
        if amount == 0:
            return 0
        returned = self._divest(amount)
        self._log.debug("{}: returned {} of {} requested", self._name, returned, amount)
        return returned

    def harvest(self) -> int:
        """보상 청구 후 실현 수익 보고 (vault는 참고용으로만 사용)."""
        profit = self._claim()
        self._log.info("{}: harvested {}", self._name, profit)
        return profit

    @abstractmethod
    def balance_of(self) -> int:
        """관리 중인 총 잔고."""
        ...

    @abstractmethod
    def estimate_apr(self) -> int:
        """예상 APR (bps)."""
        ...

    # ─── Template methods ────────────────────────────────────────────

    @abstractmethod
    def _invest(self, amount: int) -> int: ...

    @abstractmethod
    def _divest(self, amount: int) -> int: ...

    @abstractmethod
    def _claim(self) -> int: ...

    # ─── Journal state ───────────────────────────────────────────────

    def get_state(self) -> dict[str, object]:
        """Adapter 내부 상태 (asset 잔고 제외). 기본은 인스턴스 속성의 얕은 복사."""
        return dict(vars(self))

    def restore_state(self, state: dict[str, object]) -> None:
        vars(self).clear()
        vars(self).update(state)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self._address!r}, vault={self._vault!r})"
