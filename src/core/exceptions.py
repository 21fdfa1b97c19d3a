"""Vault ledger exception hierarchy.

Vault 진입점이 발생시키는 모든 예외는 VaultError를 상속하며,
호출자가 어떻게 대응해야 하는지에 따라 분류됩니다.

Exception Categories:
    - Precondition (Reject): 상태 변경 전에 동기적으로 거부
    - Liquidity (Reject): 외부 withdraw 경계에서 원자적 실패
    - Critical (Fail Fast): Ledger 불변식 위반, 즉시 중단

Rules Applied:
    - #23 Exception Handling: Domain-driven hierarchy, add_note()
"""


class VaultError(Exception):
    """Vault 예외 기본 클래스 (직접 raise하지 않음).

    context에는 strategy 주소나 금액처럼 원인 파악에 필요한 값을 담습니다.
    str()은 "message [k=v, ...]" 형식입니다.
    """

    def __init__(self, message: str, *, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, object] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} [{details}]"


# =============================================================================
# Precondition Violations (Reject before any state mutation)
# =============================================================================


class PreconditionError(VaultError):
    """호출 전제 조건 위반.

    상태 변경 이전에 검사되므로, 이 예외가 발생하면 부분 효과가 없습니다.
    """


class InvalidAllocation(PreconditionError):
    """Allocation target이 범위를 벗어나거나 합계가 10000 bps를 초과.

    Example:
        >>> raise InvalidAllocation(
        ...     "Allocation sum exceeds 10000 bps",
        ...     context={"strategy": "0xS1", "new_total_bps": 10500}
        ... )
    """


class IdentityMismatch(PreconditionError):
    """Strategy가 보고한 vault 또는 asset이 이 vault와 불일치."""


class AlreadyActive(PreconditionError):
    """이미 등록되어 활성 상태인 strategy."""


class NotActive(PreconditionError):
    """등록되지 않았거나 비활성 상태인 strategy."""


class Unauthorized(PreconditionError):
    """Privileged operator가 아닌 호출자."""


class InvalidAddress(PreconditionError):
    """Zero address 또는 빈 주소."""


class InvalidAmount(PreconditionError):
    """0 이하 또는 정수가 아닌 금액."""


class FeeTooHigh(PreconditionError):
    """Performance fee가 설정된 최대값을 초과."""


class InsufficientShares(PreconditionError):
    """Withdraw에 필요한 share가 보유량보다 많음."""


# =============================================================================
# Execution Errors
# =============================================================================


class ReentrancyError(VaultError):
    """외부 adapter 호출 중 ledger 변경 진입점으로 재진입 시도.

    중첩 호출만 실패하고, 바깥 호출은 계속 진행됩니다.
    """


class InsufficientLiquidity(VaultError):
    """Idle + strategy에서 회수한 금액이 요청한 withdraw 금액보다 부족.

    Depositor에게 부분 지급하지 않고 withdraw 전체가 실패합니다.

    Attributes:
        requested: 요청 금액
        available: 실제 확보된 금액
    """

    def __init__(
        self,
        message: str,
        *,
        requested: int,
        available: int,
        context: dict[str, object] | None = None,
    ) -> None:
        """InsufficientLiquidity 초기화.

        Args:
            message: 에러 메시지
            requested: 요청 금액
            available: 실제 확보된 금액
            context: 추가 컨텍스트 정보
        """
        super().__init__(message, context=context)
        self.requested = requested
        self.available = available


class InsufficientBalance(VaultError):
    """Asset ledger 잔고 또는 allowance 부족."""


# =============================================================================
# Critical Errors (Unrecoverable - Immediate Stop)
# =============================================================================


class InvariantViolation(VaultError):
    """Ledger 불변식 위반 (bookkeeping 버그).

    이 오류는 재시도로 해결되지 않습니다. 상태 스냅샷을 보존하고
    원인을 조사해야 합니다.

    Example:
        >>> raise InvariantViolation(
        ...     "total_debt drifted from recorded debts",
        ...     context={"total_debt": 1000, "sum_recorded": 990}
        ... )
    """


# =============================================================================
# Utility Functions
# =============================================================================


def add_context_note(exc: Exception, note: str) -> None:
    """Adapter 호출 실패 지점을 예외 note로 남김 (traceback 유지).

    Example:
        >>> try:
        ...     adapter.withdraw(amount)
        ... except Exception as e:
        ...     add_context_note(e, f"Failed while pulling from {adapter.address}")
        ...     raise
    """
    exc.add_note(note)
