"""Vault ledger and capital-allocation engine.

이 모듈은 pooled-capital yield vault의 핵심 회계 구조를 제공합니다.

Exports:
    - Vault: depositor / operator / keeper 진입점
    - Asset: underlying asset ledger
    - StrategyAdapterPort: strategy capability Protocol
    - AllocationRegistry / VaultLedger / CapitalAllocator / HarvestReconciler
    - StrategyRecord / ReconcileResult / VaultSnapshot
    - VaultStateStore: YAML 스냅샷 저장소

Rules Applied:
    - #01 Project Structure: src/vault/ 모듈
    - #11 Pydantic Modeling: validate_assignment, frozen snapshots
"""

from src.vault.allocator import CapitalAllocator
from src.vault.asset import Asset, ensure_allowance
from src.vault.ledger import VaultLedger
from src.vault.models import ReconcileResult, StrategyRecord, VaultSnapshot
from src.vault.ports import StrategyAdapterPort
from src.vault.reconciler import HarvestReconciler, PerformanceFee
from src.vault.registry import AllocationRegistry
from src.vault.store import VaultStateStore
from src.vault.vault import Vault

__all__ = [
    "AllocationRegistry",
    "Asset",
    "CapitalAllocator",
    "HarvestReconciler",
    "PerformanceFee",
    "ReconcileResult",
    "StrategyAdapterPort",
    "StrategyRecord",
    "Vault",
    "VaultLedger",
    "VaultSnapshot",
    "VaultStateStore",
    "ensure_allowance",
]
