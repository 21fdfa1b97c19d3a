"""SimulatedStrategy / adapter registry 테스트."""

from __future__ import annotations

import pytest

from src.core.exceptions import InsufficientBalance, InvalidAmount
from src.strategy import (
    BaseStrategyAdapter,
    SimulatedStrategy,
    get_adapter,
    list_adapters,
    register_adapter,
)
from src.vault.asset import Asset
from src.vault.ports import StrategyAdapterPort

VAULT = "vault:x"


@pytest.fixture
def usdc() -> Asset:
    return Asset("USDC")


@pytest.fixture
def strategy(usdc: Asset) -> SimulatedStrategy:
    return SimulatedStrategy("strat:a", VAULT, usdc, name="Lending", apr_bps=450)


def _send(usdc: Asset, strategy: SimulatedStrategy, amount: int) -> None:
    """vault → strategy 전송 후 deposit."""
    usdc.mint(VAULT, amount)
    usdc.transfer(VAULT, strategy.address, amount)
    strategy.deposit(amount)


class TestIdentity:
    def test_protocol_conformance(self, strategy: SimulatedStrategy) -> None:
        assert isinstance(strategy, StrategyAdapterPort)
        assert strategy.vault == VAULT
        assert strategy.asset == "asset:usdc"
        assert strategy.name == "Lending"
        assert strategy.estimate_apr() == 450

    def test_default_name(self, usdc: Asset) -> None:
        assert SimulatedStrategy("strat:b", VAULT, usdc).name == "SimulatedStrategy"


class TestCapital:
    def test_deposit_moves_into_pool(self, usdc: Asset, strategy: SimulatedStrategy) -> None:
        _send(usdc, strategy, 500)

        assert strategy.position == 500
        assert strategy.idle_balance() == 0
        assert strategy.balance_of() == 500
        assert usdc.balance_of(strategy.pool) == 500

    def test_deposit_requires_transfer(self, strategy: SimulatedStrategy) -> None:
        with pytest.raises(InsufficientBalance):
            strategy.deposit(100)

    def test_withdraw_returns_to_vault(self, usdc: Asset, strategy: SimulatedStrategy) -> None:
        _send(usdc, strategy, 500)

        assert strategy.withdraw(200) == 200
        assert usdc.balance_of(VAULT) == 200
        assert strategy.position == 300

    def test_withdraw_capped_at_balance(self, usdc: Asset, strategy: SimulatedStrategy) -> None:
        _send(usdc, strategy, 100)
        assert strategy.withdraw(500) == 100
        assert strategy.withdraw(0) == 0

    def test_haircut(self, usdc: Asset) -> None:
        s = SimulatedStrategy("strat:h", VAULT, usdc, withdraw_haircut_bps=2500)
        _send(usdc, s, 1000)

        assert s.withdraw(200) == 150
        assert usdc.balance_of(VAULT) == 150

    def test_invalid_haircut(self, usdc: Asset) -> None:
        with pytest.raises(InvalidAmount):
            SimulatedStrategy("strat:h", VAULT, usdc, withdraw_haircut_bps=10_001)


class TestYield:
    def test_accrue_and_harvest(self, usdc: Asset, strategy: SimulatedStrategy) -> None:
        _send(usdc, strategy, 500)
        strategy.accrue(50)

        assert strategy.balance_of() == 550
        assert strategy.harvest() == 50
        assert strategy.harvest() == 0

    def test_realize_loss_capped(self, usdc: Asset, strategy: SimulatedStrategy) -> None:
        _send(usdc, strategy, 100)
        assert strategy.realize_loss(150) == 100
        assert strategy.balance_of() == 0


class TestAdapterRegistry:
    def test_simulated_registered(self) -> None:
        assert "simulated" in list_adapters()
        assert get_adapter("simulated") is SimulatedStrategy

    def test_unknown_adapter(self) -> None:
        with pytest.raises(KeyError, match="simulated"):
            get_adapter("nope")

    def test_duplicate_name(self) -> None:
        with pytest.raises(ValueError, match="already registered"):

            @register_adapter("simulated")
            class Other(SimulatedStrategy):
                pass

    def test_base_is_abstract(self, usdc: Asset) -> None:
        with pytest.raises(TypeError):
            BaseStrategyAdapter("strat:z", VAULT, usdc)  # type: ignore[abstract]
