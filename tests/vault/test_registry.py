"""AllocationRegistry / 등록 권한 테스트."""

from __future__ import annotations

import pytest

from src.core.events import VaultEventType
from src.core.exceptions import (
    AlreadyActive,
    IdentityMismatch,
    InvalidAddress,
    InvalidAllocation,
    NotActive,
    Unauthorized,
)
from src.strategy.simulated import SimulatedStrategy
from src.vault.asset import Asset
from src.vault.vault import Vault

OPERATOR = "ops"


class TestRegister:
    def test_register_starts_with_zero_debt(self, vault: Vault, make_strategy) -> None:
        record = vault.register_strategy(OPERATOR, make_strategy("strat:a", name="A"), 4000)

        assert record.strategy == "strat:a"
        assert record.name == "A"
        assert record.allocation_target_bps == 4000
        assert record.recorded_debt == 0
        assert record.active is True
        assert vault.total_target_bps == 4000

        event = vault.events.last(VaultEventType.STRATEGY_REGISTERED)
        assert event is not None
        assert event.total_target_bps == 4000

    def test_non_operator_rejected(self, vault: Vault, make_strategy) -> None:
        with pytest.raises(Unauthorized):
            vault.register_strategy("mallory", make_strategy(), 1000)
        assert vault.strategies() == []

    def test_sum_cannot_exceed_full_allocation(self, vault: Vault, make_strategy) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 6000)
        with pytest.raises(InvalidAllocation):
            vault.register_strategy(OPERATOR, make_strategy("strat:b"), 4001)
        assert vault.total_target_bps == 6000

    def test_exact_full_allocation_allowed(self, vault: Vault, make_strategy) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 6000)
        vault.register_strategy(OPERATOR, make_strategy("strat:b"), 4000)
        assert vault.total_target_bps == 10_000

    @pytest.mark.parametrize("bps", [-1, 10_001])
    def test_target_out_of_range(self, vault: Vault, make_strategy, bps: int) -> None:
        with pytest.raises(InvalidAllocation):
            vault.register_strategy(OPERATOR, make_strategy(), bps)

    def test_already_active(self, vault: Vault, make_strategy) -> None:
        s = make_strategy("strat:a")
        vault.register_strategy(OPERATOR, s, 1000)
        with pytest.raises(AlreadyActive):
            vault.register_strategy(OPERATOR, s, 1000)

    def test_wrong_vault_identity(self, vault: Vault, asset: Asset) -> None:
        foreign = SimulatedStrategy("strat:x", "vault:other", asset)
        with pytest.raises(IdentityMismatch):
            vault.register_strategy(OPERATOR, foreign, 1000)

    def test_wrong_asset_identity(self, vault: Vault) -> None:
        dai = Asset("DAI", decimals=18)
        foreign = SimulatedStrategy("strat:x", vault.address, dai)
        with pytest.raises(IdentityMismatch):
            vault.register_strategy(OPERATOR, foreign, 1000)

    def test_non_adapter_rejected(self, vault: Vault) -> None:
        with pytest.raises(IdentityMismatch):
            vault.register_strategy(OPERATOR, object(), 1000)  # type: ignore[arg-type]

    def test_zero_address_rejected(self, vault: Vault, asset: Asset) -> None:
        with pytest.raises(InvalidAddress):
            SimulatedStrategy("0x0", vault.address, asset)


class TestUpdateTarget:
    def test_update_target(self, vault: Vault, make_strategy) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 3000)
        vault.update_target(OPERATOR, "strat:a", 7000)

        assert vault.strategy_record("strat:a").allocation_target_bps == 7000
        assert vault.total_target_bps == 7000
        event = vault.events.last(VaultEventType.ALLOCATION_UPDATED)
        assert event is not None
        assert (event.old_bps, event.new_bps) == (3000, 7000)

    def test_update_cannot_exceed_sum(self, vault: Vault, make_strategy) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 5000)
        vault.register_strategy(OPERATOR, make_strategy("strat:b"), 5000)
        with pytest.raises(InvalidAllocation):
            vault.update_target(OPERATOR, "strat:a", 5001)
        assert vault.strategy_record("strat:a").allocation_target_bps == 5000

    def test_update_inactive(self, vault: Vault) -> None:
        with pytest.raises(NotActive):
            vault.update_target(OPERATOR, "strat:missing", 100)

    def test_update_does_not_move_capital(self, vault: Vault, make_strategy, deposit) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 5000)
        deposit("alice", 1000)

        vault.update_target(OPERATOR, "strat:a", 8000)
        assert vault.total_debt == 500

        assert vault.deploy_idle(OPERATOR) == 300
        assert vault.total_debt == 800


class TestReRegistration:
    def test_reregister_moves_to_end(self, vault: Vault, make_strategy) -> None:
        a = make_strategy("strat:a")
        vault.register_strategy(OPERATOR, a, 1000)
        vault.register_strategy(OPERATOR, make_strategy("strat:b"), 1000)
        vault.deregister_strategy(OPERATOR, "strat:a")

        vault.register_strategy(OPERATOR, a, 2000)

        assert [r.strategy for r in vault.strategies()] == ["strat:b", "strat:a"]
        assert vault.total_target_bps == 3000

    def test_active_only_filter(self, vault: Vault, make_strategy) -> None:
        vault.register_strategy(OPERATOR, make_strategy("strat:a"), 1000)
        vault.register_strategy(OPERATOR, make_strategy("strat:b"), 1000)
        vault.deregister_strategy(OPERATOR, "strat:a")

        assert [r.strategy for r in vault.strategies(active_only=True)] == ["strat:b"]
        assert len(vault.strategies()) == 2
