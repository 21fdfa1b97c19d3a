"""Reentrancy guard and operator access control.

Vault 인스턴스당 하나의 실행 플래그를 두어, 외부 adapter 호출 도중
ledger 변경 진입점으로 재진입하는 시도를 거부합니다.
Operator 권한은 ledger 로직과 분리된 교체 가능한 객체로 둡니다.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from loguru import logger

from src.core.exceptions import ReentrancyError, Unauthorized
from src.vault.asset import require_address

if TYPE_CHECKING:
    from collections.abc import Iterator

    from src.models.types import Address, VaultOperation


class ReentrancyGuard:
    """단일 실행 플래그.

    Example:
        >>> guard = ReentrancyGuard()
        >>> with guard.enter(VaultOperation.DEPOSIT):
        ...     ...  # nested guard.enter() raises ReentrancyError
    """

    __slots__ = ("_active",)

    def __init__(self) -> None:
        self._active: VaultOperation | None = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> VaultOperation | None:
        return self._active

    @contextmanager
    def enter(self, operation: VaultOperation) -> Iterator[None]:
        """Operation 실행 구간 동안 플래그를 잡음.

        Raises:
            ReentrancyError: 이미 다른 operation이 실행 중
        """
        if self._active is not None:
            logger.error(
                "Reentrant call rejected: {} attempted during {}",
                operation,
                self._active,
            )
            msg = "Reentrant call rejected"
            raise ReentrancyError(
                msg, context={"active": self._active, "attempted": operation}
            )
        self._active = operation
        try:
            yield
        finally:
            self._active = None


class OperatorRole:
    """단일 privileged operator.

    Multi-sig 또는 timelock identity로 교체할 때 이 객체만 바꾸면 됩니다.
    """

    def __init__(self, operator: Address) -> None:
        self._operator = require_address(operator, "operator")

    @property
    def operator(self) -> Address:
        return self._operator

    def require(self, caller: Address, operation: VaultOperation) -> None:
        """caller가 operator인지 검증.

        Raises:
            Unauthorized: operator가 아님
        """
        if caller != self._operator:
            msg = "Caller is not the operator"
            raise Unauthorized(msg, context={"caller": caller, "operation": operation})

    def transfer(self, new_operator: Address) -> Address:
        """권한 이전. 이전 operator를 반환."""
        require_address(new_operator, "operator")
        old, self._operator = self._operator, new_operator
        return old
