"""All-or-nothing state journal for vault operations.

Vault 연산 시작 시 참여 객체들의 상태를 get_state()로 저장하고, 연산이
예외로 끝나면 restore_state()로 되돌립니다. 참여 객체는 vault 내부 상태
(ledger / registry / shares)와 underlying asset ledger, 그리고 상태 저장을
지원하는 strategy adapter입니다.

Rules Applied:
    - Single writer: 연산 단위 commit / rollback
    - #23 Exception Handling: rollback 후 원래 예외를 그대로 전파
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator


@runtime_checkable
class SupportsState(Protocol):
    """get_state / restore_state 쌍을 제공하는 객체."""

    def get_state(self) -> dict[str, object]: ...

    def restore_state(self, state: dict[str, object]) -> None: ...


class StateJournal:
    """연산 단위 상태 저장 / 복원.

    Args:
        participants: 연산 시작 시점의 참여 객체 목록을 반환하는 함수
            (등록된 adapter가 연산마다 달라지므로 매번 평가)

    Example:
        >>> journal = StateJournal(lambda: [asset, ledger])
        >>> with journal.transaction():
        ...     ledger.credit_idle(100)
        ...     raise RuntimeError  # ledger는 이전 상태로 복원
    """

    def __init__(self, participants: Callable[[], Iterable[object]]) -> None:
        self._participants = participants

    @contextmanager
    def transaction(self) -> Iterator[None]:
        saved = [
            (p, p.get_state()) for p in self._participants() if isinstance(p, SupportsState)
        ]
        try:
            yield
        except BaseException as exc:
            for participant, state in reversed(saved):
                participant.restore_state(state)
            logger.warning(
                "Operation rolled back ({} participants): {}",
                len(saved),
                type(exc).__name__,
            )
            raise
