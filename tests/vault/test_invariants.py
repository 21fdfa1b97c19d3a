"""Randomized ledger invariant 테스트.

임의 순서의 deposit / withdraw / accrue / loss / reconcile / target 변경 /
register / deregister 후에도 ledger 불변식이 유지되고, 실패한 연산은 상태를
바꾸지 않는지 검증합니다.
"""

from __future__ import annotations

import random

import pytest

from src.core.exceptions import InsufficientLiquidity, PreconditionError
from src.vault.asset import Asset
from src.vault.vault import Vault

OPERATOR = "ops"
ACCOUNTS = ["alice", "bob", "carol"]


def _observe(vault: Vault, asset: Asset) -> dict[str, object]:
    return {
        "snapshot": vault.snapshot().model_dump(),
        "vault_balance": asset.balance_of(vault.address),
        "asset_supply": asset.total_supply,
        "events": len(vault.events),
    }


def _assert_invariants(vault: Vault, asset: Asset) -> None:
    records = vault.strategies()
    assert vault.total_debt == sum(r.recorded_debt for r in records)
    assert vault.total_assets == vault.available_capital + vault.total_debt
    assert asset.balance_of(vault.address) >= vault.available_capital
    assert sum(r.allocation_target_bps for r in records if r.active) <= 10_000
    assert all(r.recorded_debt == 0 and r.allocation_target_bps == 0 for r in records if not r.active)
    assert vault.total_supply == sum(vault.share_balance(a) for a in ACCOUNTS)
    assert not vault.is_locked


@pytest.mark.parametrize("seed", [0, 1, 7, 42, 2026])
def test_random_operations_preserve_invariants(
    seed: int, vault: Vault, asset: Asset, make_strategy, fund
) -> None:
    rng = random.Random(seed)
    strategies = {
        "strat:a": make_strategy("strat:a", apr_bps=400),
        "strat:b": make_strategy("strat:b", apr_bps=900, withdraw_haircut_bps=50),
        "strat:c": make_strategy("strat:c"),
    }
    vault.register_strategy(OPERATOR, strategies["strat:a"], 4000)
    vault.register_strategy(OPERATOR, strategies["strat:b"], 3000)
    vault.register_strategy(OPERATOR, strategies["strat:c"], 2000)

    actions = [
        "deposit", "withdraw", "accrue", "loss", "reconcile", "target", "register", "deregister",
    ]
    for _ in range(300):
        action = rng.choice(actions)
        account = rng.choice(ACCOUNTS)
        address = rng.choice(list(strategies))
        before = _observe(vault, asset)
        try:
            match action:
                case "deposit":
                    amount = rng.randint(1, 10_000)
                    fund(account, amount)
                    before = _observe(vault, asset)
                    vault.deposit(account, amount)
                case "withdraw":
                    vault.withdraw(account, rng.randint(1, max(vault.max_withdraw(account), 1)))
                case "accrue":
                    strategies[address].accrue(rng.randint(0, 500))
                case "loss":
                    strategies[address].realize_loss(rng.randint(0, 300))
                case "reconcile":
                    vault.reconcile(address)
                case "target":
                    vault.update_target(OPERATOR, address, rng.randint(0, 5000))
                    vault.deploy_idle(OPERATOR)
                case "register":
                    vault.register_strategy(OPERATOR, strategies[address], rng.randint(0, 6000))
                case "deregister":
                    vault.deregister_strategy(OPERATOR, address)
        except (PreconditionError, InsufficientLiquidity):
            # 실패한 연산은 아무 흔적도 남기지 않음
            assert _observe(vault, asset) == before
        _assert_invariants(vault, asset)


def test_recorded_debt_matches_after_full_reconcile(
    vault: Vault, asset: Asset, make_strategy, deposit
) -> None:
    """모든 strategy reconcile 직후 recorded_debt == 실제 balance."""
    a = make_strategy("strat:a")
    b = make_strategy("strat:b")
    vault.register_strategy(OPERATOR, a, 5000)
    vault.register_strategy(OPERATOR, b, 5000)
    deposit("alice", 10_000)
    a.accrue(321)
    b.realize_loss(123)

    vault.reconcile("strat:a")
    vault.reconcile("strat:b")

    assert vault.strategy_record("strat:a").recorded_debt == a.balance_of()
    assert vault.strategy_record("strat:b").recorded_debt == b.balance_of()
    _assert_invariants(vault, asset)
