"""Strategy Adapter Registry for dynamic adapter loading.

이 모듈은 adapter 클래스를 이름으로 등록하고 조회할 수 있는 Registry를 제공합니다.
YAML 설정과 CLI가 adapter 구현체에 직접 의존하지 않도록 합니다.

Rules Applied:
    - #02 Clean Code: Dependency Inversion via Registry
    - #10 Python Standards: Modern typing, decorators
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.strategy.base import BaseStrategyAdapter

T = TypeVar("T", bound="BaseStrategyAdapter")

# Adapter 레지스트리 (모듈 레벨 싱글톤)
_ADAPTER_REGISTRY: dict[str, type[BaseStrategyAdapter]] = {}


def register_adapter(name: str) -> Callable[[type[T]], type[T]]:
    """Adapter 등록 데코레이터.

    Args:
        name: adapter 식별자 (예: "simulated")

    Returns:
        데코레이터 함수

    Example:
        >>> @register_adapter("my-pool")
        ... class MyPoolAdapter(BaseStrategyAdapter):
        ...     ...
        >>>
        >>> adapter_cls = get_adapter("my-pool")
    """

    def decorator(cls: type[T]) -> type[T]:
        if name in _ADAPTER_REGISTRY:
            existing = _ADAPTER_REGISTRY[name].__name__
            msg = f"Adapter '{name}' is already registered by {existing}"
            raise ValueError(msg)
        _ADAPTER_REGISTRY[name] = cls
        return cls

    return decorator


def get_adapter(name: str) -> type[BaseStrategyAdapter]:
    """이름으로 adapter 클래스를 반환합니다.

    Raises:
        KeyError: adapter가 등록되지 않은 경우
    """
    if name not in _ADAPTER_REGISTRY:
        available = ", ".join(sorted(_ADAPTER_REGISTRY.keys()))
        msg = f"Adapter '{name}' not found. Available: [{available}]"
        raise KeyError(msg)
    return _ADAPTER_REGISTRY[name]


def list_adapters() -> list[str]:
    """등록된 모든 adapter 이름 (알파벳 순)."""
    return sorted(_ADAPTER_REGISTRY.keys())
