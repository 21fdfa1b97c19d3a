"""Shared fixtures for tests.

이 모듈은 테스트에서 공통으로 사용되는 픽스처를 제공합니다.

Rules Applied:
    - #17 Testing Standards: Pytest fixtures
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from src.core.event_log import EventLog
from src.strategy.simulated import SimulatedStrategy
from src.vault.asset import Asset
from src.vault.vault import Vault

OPERATOR = "ops"
FEE_RECIPIENT = "treasury"
VAULT_ADDRESS = "vault:test"
FIXED_NOW = datetime(2026, 1, 1, tzinfo=UTC)

# ---------------------------------------------------------------------------
# 디렉토리 경로 → pytest 마커 자동 매핑
# ---------------------------------------------------------------------------
_DIR_MARKER_MAP: dict[str, str] = {
    "/strategy/": "strategy",
    "/cli/": "integration",
    "/core/": "unit",
    "/models/": "unit",
    "/config/": "unit",
    "/vault/": "unit",
    "/logging/": "unit",
    "/simulation/": "integration",
}


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """디렉토리 경로 기반 자동 마커 부여."""
    for item in items:
        fspath = str(item.fspath)
        for dir_pattern, marker_name in _DIR_MARKER_MAP.items():
            if dir_pattern in fspath:
                item.add_marker(getattr(pytest.mark, marker_name))
                break


def _fund(asset: Asset, vault: Vault, account: str, amount: int) -> None:
    asset.mint(account, amount)
    asset.approve(account, vault.address, amount)


@pytest.fixture
def asset() -> Asset:
    return Asset("USDC", decimals=6)


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def vault(asset: Asset, events: EventLog) -> Vault:
    """Fee 200 bps (2%), 고정 시각 vault."""
    return Vault(
        asset,
        OPERATOR,
        address=VAULT_ADDRESS,
        fee_recipient=FEE_RECIPIENT,
        performance_fee_bps=200,
        max_performance_fee_bps=5000,
        events=events,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def make_strategy(asset: Asset, vault: Vault):
    """vault에 연결된 SimulatedStrategy 팩토리."""

    def _make(address: str = "strat:s", **kwargs: object) -> SimulatedStrategy:
        return SimulatedStrategy(address, vault.address, asset, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def fund(asset: Asset, vault: Vault):
    """account에 amount를 mint하고 vault에 approve하는 helper."""

    def _do(account: str, amount: int) -> None:
        _fund(asset, vault, account, amount)

    return _do


@pytest.fixture
def deposit(vault: Vault, fund):
    """fund 후 deposit. 발행된 share 수를 반환."""

    def _do(account: str, amount: int) -> int:
        fund(account, amount)
        return vault.deposit(account, amount)

    return _do
