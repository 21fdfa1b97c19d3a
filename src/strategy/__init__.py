"""Strategy adapter module.

이 모듈은 vault가 자본을 배포하는 strategy adapter의 기반 클래스와
이름 기반 Registry를 제공합니다.

Registry Pattern:
    Adapter는 @register_adapter() 데코레이터로 등록되며, get_adapter()로 조회합니다.

Example:
    >>> from src.strategy import get_adapter, list_adapters
    >>> adapter_cls = get_adapter("simulated")
    >>> print(list_adapters())  # ['simulated']
"""

# pyright: reportUnusedImport=false

# Adapter 자동 등록 (import 시 @register_adapter 데코레이터 실행)
import src.strategy.simulated  # adapter 등록 side effect
from src.strategy.base import BaseStrategyAdapter
from src.strategy.registry import get_adapter, list_adapters, register_adapter
from src.strategy.simulated import SimulatedStrategy

__all__ = [
    "BaseStrategyAdapter",
    "SimulatedStrategy",
    "get_adapter",
    "list_adapters",
    "register_adapter",
]
