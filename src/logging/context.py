"""Ledger operation context for log records.

Vault 연산 하나가 실행되는 동안 vault / strategy / operation / trace_id를
contextvars에 보관합니다. core.logger의 patcher가 이 값을 모든 record의
extra에 넣으므로, strategy adapter 내부에서 찍힌 로그도 같은 trace_id로
묶입니다.

Rules Applied:
    - #15 Logging Standards: logger.bind() 기반 context
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, TypeAlias

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

ContextKey: TypeAlias = str

CONTEXT_KEYS: tuple[ContextKey, ...] = ("vault", "strategy", "operation", "trace_id")

_vars: dict[ContextKey, ContextVar[str | None]] = {
    key: ContextVar(f"vault_log_{key}", default=None) for key in CONTEXT_KEYS
}


def get_current_context() -> dict[str, str | None]:
    """현재 설정된 context 값 (미설정은 None)."""
    return {key: var.get() for key, var in _vars.items()}


def clear_context() -> None:
    for var in _vars.values():
        var.set(None)


def generate_trace_id() -> str:
    """연산 단위 상관관계 ID (uuid4 hex, 32자)."""
    return uuid.uuid4().hex


def get_vault_logger(
    *,
    vault: str | None = None,
    strategy: str | None = None,
    operation: str | None = None,
    trace_id: str | None = None,
    **extra: str,
) -> Logger:
    """Context가 bind된 logger.

    인자로 넘기지 않은 값은 바깥 LoggingContext의 값을 이어받습니다.

    Example:
        >>> log = get_vault_logger(vault="vault:usdc", strategy="strat:lending")
        >>> log.info("Capital deployed")
    """
    explicit = {"vault": vault, "strategy": strategy, "operation": operation, "trace_id": trace_id}
    bound = {
        key: value
        for key, value in ((k, explicit[k] or _vars[k].get()) for k in CONTEXT_KEYS)
        if value
    }
    return logger.bind(**bound, **extra)


def get_strategy_logger(strategy: str, vault: str | None = None) -> Logger:
    """Strategy adapter용 logger."""
    return get_vault_logger(vault=vault, strategy=strategy)


class LoggingContext:
    """Scope 동안 context 값을 설정하고, 벗어나면 이전 값으로 복원.

    None인 항목은 건드리지 않으므로 중첩 시 바깥 값이 유지됩니다.

    Example:
        >>> with LoggingContext(vault="vault:usdc", operation="withdraw"):
        ...     logger.info("Pulling capital")
    """

    def __init__(
        self,
        vault: str | None = None,
        strategy: str | None = None,
        operation: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        self._pending = {
            key: value
            for key, value in zip(CONTEXT_KEYS, (vault, strategy, operation, trace_id), strict=True)
            if value
        }
        self._tokens: list[tuple[ContextKey, Token[str | None]]] = []

    def __enter__(self) -> LoggingContext:
        self._tokens = [(key, _vars[key].set(value)) for key, value in self._pending.items()]
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        for key, token in reversed(self._tokens):
            _vars[key].reset(token)
        self._tokens = []
