"""동기 EventLog 구현.

Vault는 단일 writer, 순차 실행 모델이므로 이벤트를 큐에 쌓지 않고
발행 즉시 구독자에게 dispatch합니다. Vault 연산 중에는 deferred() scope로
보류했다가 연산이 commit된 뒤에만 기록합니다. 핸들러 에러는 격리되어
ledger 작업으로 전파되지 않습니다.

Rules Applied:
    - #10 Python Standards: Modern typing, defaultdict
    - #23 Exception Handling: handler 에러 격리
"""

from __future__ import annotations

from collections import defaultdict, deque
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from src.core.events import AnyEvent, VaultEventType


EventHandler: TypeAlias = "Callable[[AnyEvent], None]"


class EventLogMetrics:
    """EventLog 런타임 메트릭."""

    __slots__ = ("events_dispatched", "events_published", "handler_errors")

    def __init__(self) -> None:
        self.events_published: int = 0
        self.events_dispatched: int = 0
        self.handler_errors: int = 0

    def snapshot(self) -> dict[str, int]:
        """현재 메트릭 스냅샷."""
        return {
            "events_published": self.events_published,
            "events_dispatched": self.events_dispatched,
            "handler_errors": self.handler_errors,
        }


class EventLog:
    """In-process synchronous event log.

    발행된 이벤트는 history에 보관되고, 구독 핸들러에 즉시 전달됩니다.
    event_log_path가 주어지면 JSONL 감사 로그도 남깁니다.

    사용법:
        events = EventLog()
        events.subscribe(VaultEventType.STRATEGY_RECONCILED, on_reconciled)
        events.publish(reconciled_event)
        events.of_type(VaultEventType.DEPOSIT)
    """

    def __init__(
        self,
        event_log_path: str | Path | None = None,
        max_history: int = 100_000,
    ) -> None:
        self._handlers: dict[VaultEventType, list[EventHandler]] = defaultdict(list)
        self._history: deque[AnyEvent] = deque(maxlen=max_history)
        self._pending: list[AnyEvent] | None = None
        self._event_log_path = Path(event_log_path) if event_log_path else None
        self.metrics = EventLogMetrics()

    def subscribe(self, event_type: VaultEventType, handler: EventHandler) -> None:
        """이벤트 타입에 핸들러를 등록합니다.

        Args:
            event_type: 구독할 이벤트 타입
            handler: 동기 핸들러 함수
        """
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: VaultEventType, handler: EventHandler) -> None:
        """등록된 핸들러를 제거합니다 (미등록이면 무시)."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: AnyEvent) -> None:
        """이벤트를 기록하고 핸들러에 dispatch합니다.

        Args:
            event: 발행할 이벤트
        """
        if self._pending is not None:
            self._pending.append(event)
            return
        self._record(event)

    @contextmanager
    def deferred(self) -> Iterator[None]:
        """Scope 안에서 발행된 이벤트를 보류하고 정상 종료 시에만 기록.

        Scope가 예외로 끝나면 보류된 이벤트는 버려집니다 (history, JSONL,
        핸들러 모두 반영되지 않음).
        """
        outer = self._pending
        pending: list[AnyEvent] = []
        self._pending = pending
        try:
            yield
        except BaseException:
            if pending:
                logger.debug("Discarded {} pending event(s)", len(pending))
            raise
        finally:
            self._pending = outer
        for event in pending:
            self.publish(event)

    def _record(self, event: AnyEvent) -> None:
        self._history.append(event)
        self.metrics.events_published += 1

        if self._event_log_path is not None:
            self._event_log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._event_log_path.open("a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")

        self._dispatch(event)

    def _dispatch(self, event: AnyEvent) -> None:
        """등록된 핸들러에 이벤트를 dispatch합니다.

        핸들러 에러는 로깅 후 계속 진행합니다 (에러 격리).
        """
        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception:
                self.metrics.handler_errors += 1
                logger.exception(
                    "Handler error: handler={} event_type={} event_id={}",
                    getattr(handler, "__name__", repr(handler)),
                    event.event_type,
                    event.event_id,
                )
        self.metrics.events_dispatched += 1

    @property
    def history(self) -> list[AnyEvent]:
        """발행 순서대로 정렬된 이벤트 목록 (복사본)."""
        return list(self._history)

    def of_type(self, event_type: VaultEventType) -> list[AnyEvent]:
        """특정 타입의 이벤트만 반환."""
        return [e for e in self._history if e.event_type == event_type]

    def last(self, event_type: VaultEventType) -> AnyEvent | None:
        """특정 타입의 가장 최근 이벤트 (없으면 None)."""
        for event in reversed(self._history):
            if event.event_type == event_type:
                return event
        return None

    def clear(self) -> None:
        """History 초기화 (핸들러는 유지)."""
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
