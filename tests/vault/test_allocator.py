"""CapitalAllocator deploy / pull waterfall 테스트."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from src.core.event_log import EventLog
from src.core.events import VaultEventType
from src.strategy.simulated import SimulatedStrategy
from src.vault.allocator import CapitalAllocator, withdraw_measured
from src.vault.asset import Asset
from src.vault.ledger import VaultLedger
from src.vault.registry import AllocationRegistry
from src.vault.vault import Vault

OPERATOR = "ops"


@pytest.fixture
def two_strategies(vault: Vault, make_strategy) -> tuple[SimulatedStrategy, SimulatedStrategy]:
    a = make_strategy("strat:a")
    b = make_strategy("strat:b")
    vault.register_strategy(OPERATOR, a, 5000)
    vault.register_strategy(OPERATOR, b, 3000)
    return a, b


# ---------------------------------------------------------------------------
# Deploy
# ---------------------------------------------------------------------------


class TestDeployWaterfall:
    def test_fills_targets_in_registration_order(self, vault: Vault, two_strategies, deposit) -> None:
        a, b = two_strategies
        deposit("alice", 1000)

        assert a.position == 500
        assert b.position == 300
        assert vault.available_capital == 200

        deployed = vault.events.of_type(VaultEventType.CAPITAL_DEPLOYED)
        assert [e.strategy for e in deployed] == ["strat:a", "strat:b"]

    def test_targets_use_floor(self, vault: Vault, make_strategy, deposit) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 3333)
        deposit("alice", 10)
        # floor(10 * 3333 / 10000) = 3
        assert vault.total_debt == 3

    def test_stops_when_idle_exhausted(self, vault: Vault, make_strategy, deposit) -> None:
        a = make_strategy("strat:a")
        b = make_strategy("strat:b")
        vault.register_strategy(OPERATOR, a, 10_000)
        vault.register_strategy(OPERATOR, b, 0)
        deposit("alice", 1000)

        assert a.position == 1000
        assert b.position == 0
        assert vault.available_capital == 0

    def test_over_target_strategy_keeps_excess(self, vault: Vault, two_strategies, deposit) -> None:
        """Target 인하는 강제 회수를 일으키지 않음."""
        a, _ = two_strategies
        deposit("alice", 1000)
        vault.update_target(OPERATOR, "strat:a", 1000)

        deposit("bob", 1000)

        assert vault.strategy_record("strat:a").recorded_debt == 500
        # b target = floor(2000 * 3000 / 10000) = 600
        assert vault.strategy_record("strat:b").recorded_debt == 600


# ---------------------------------------------------------------------------
# Pull
# ---------------------------------------------------------------------------


class TestPullWaterfall:
    def test_pulls_in_registration_order(self, vault: Vault, asset: Asset, two_strategies, deposit) -> None:
        deposit("alice", 1000)

        vault.withdraw("alice", 900)

        assert vault.strategy_record("strat:a").recorded_debt == 0
        assert vault.strategy_record("strat:b").recorded_debt == 100
        assert asset.balance_of("alice") == 900
        pulled = vault.events.of_type(VaultEventType.CAPITAL_PULLED)
        assert [(e.strategy, e.returned) for e in pulled] == [("strat:a", 500), ("strat:b", 200)]

    def test_pull_directly(self, asset: Asset) -> None:
        ledger = VaultLedger()
        registry = AllocationRegistry("vault:x", asset.address)
        events = EventLog()
        allocator = CapitalAllocator("vault:x", asset, ledger, registry, events)
        s = SimulatedStrategy("strat:a", "vault:x", asset)
        registry.register(s, 10_000, now=datetime.now(UTC))
        asset.mint("vault:x", 1000)
        ledger.credit_idle(1000)

        assert allocator.deploy() == 1000
        assert allocator.pull(400) == 400
        assert ledger.idle == 400
        assert ledger.total_debt == 600


class TestWithdrawMeasured:
    def test_uses_balance_delta(self, vault: Vault, asset: Asset, make_strategy, deposit) -> None:
        s = make_strategy("strat:a", withdraw_haircut_bps=1000)
        vault.register_strategy(OPERATOR, s, 10_000)
        deposit("alice", 1000)

        received = withdraw_measured(asset, vault.address, s, 100)

        assert received == 90
