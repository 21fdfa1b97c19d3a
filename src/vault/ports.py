"""Vault Port Protocol 정의.

Vault가 소비하는 strategy adapter의 명시적 인터페이스를 정의합니다.
structural subtyping으로 구현체는 상속 없이도 이 Protocol을 만족합니다.

Ports:
    - StrategyAdapterPort: deposit / withdraw / harvest / balance_of / estimate_apr
      + identity (vault, asset)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.models.types import Address


@runtime_checkable
class StrategyAdapterPort(Protocol):
    """Strategy adapter 인터페이스.

    모든 호출은 vault에서 adapter로 향하는 단방향 명령입니다.
    Adapter는 vault 내부 상태를 직접 읽거나 쓰지 않습니다.
    """

    @property
    def address(self) -> Address:
        """Adapter 고유 주소 (registry key)."""
        ...

    @property
    def name(self) -> str:
        """사람이 읽을 수 있는 adapter 이름."""
        ...

    @property
    def vault(self) -> Address:
        """Adapter가 보고하는 소유 vault 주소."""
        ...

    @property
    def asset(self) -> Address:
        """Adapter가 보고하는 underlying asset 주소."""
        ...

    def deposit(self, amount: int) -> int:
        """이미 전송된 amount를 포지션에 투입.

        Args:
            amount: vault가 adapter로 전송한 금액

        Returns:
            수락한 금액 (vault는 전액 수락을 가정)
        """
        ...

    def withdraw(self, amount: int) -> int:
        """최대 amount를 vault로 반환.

        Args:
            amount: 요청 금액

        Returns:
            실제 반환한 금액 (slippage 등으로 요청보다 적을 수 있음)
        """
        ...

    def harvest(self) -> int:
        """보상을 청구하고 실현 수익을 보고 (참고용)."""
        ...

    def balance_of(self) -> int:
        """관리 중인 총 잔고 (reconciliation의 권위 있는 입력)."""
        ...

    def estimate_apr(self) -> int:
        """예상 APR (bps, 참고용)."""
        ...
