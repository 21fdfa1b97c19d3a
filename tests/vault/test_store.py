"""VaultSnapshot / VaultStateStore / Vault.restore 테스트."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.core.exceptions import IdentityMismatch
from src.vault.asset import Asset
from src.vault.store import VaultStateStore
from src.vault.vault import Vault

OPERATOR = "ops"


@pytest.fixture
def populated(vault: Vault, make_strategy, deposit):
    a = make_strategy("strat:a", name="A")
    b = make_strategy("strat:b", name="B")
    vault.register_strategy(OPERATOR, a, 5000)
    vault.register_strategy(OPERATOR, b, 2000)
    deposit("alice", 1000)
    deposit("bob", 500)
    a.accrue(40)
    vault.reconcile("strat:a")
    return vault, {"strat:a": a, "strat:b": b}


class TestSnapshot:
    def test_snapshot_captures_state(self, populated) -> None:
        vault, _ = populated
        snap = vault.snapshot()

        assert snap.total_assets == vault.total_assets
        assert snap.total_debt == vault.total_debt
        assert snap.share_balances == {"alice": 1000, "bob": 500}
        assert [r.strategy for r in snap.strategies] == ["strat:a", "strat:b"]

    def test_tampered_snapshot_rejected(self, populated) -> None:
        vault, _ = populated
        data = vault.snapshot().model_dump()
        data["total_debt"] += 1
        with pytest.raises(ValidationError):
            type(vault.snapshot()).model_validate(data)


class TestVaultStateStore:
    def test_save_and_load(self, populated, tmp_path: Path) -> None:
        vault, _ = populated
        store = VaultStateStore(tmp_path)

        path = store.save(vault.snapshot())

        assert path == tmp_path / "vault_test.yaml"
        assert store.exists(vault.address)
        assert store.list_vaults() == [vault.address]
        assert store.load(vault.address).model_dump() == vault.snapshot().model_dump()

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            VaultStateStore(tmp_path).load("vault:none")

    def test_list_empty_dir(self, tmp_path: Path) -> None:
        assert VaultStateStore(tmp_path / "missing").list_vaults() == []


class TestRestore:
    def test_restore_round_trip(self, populated, asset: Asset, tmp_path: Path) -> None:
        vault, adapters = populated
        store = VaultStateStore(tmp_path)
        store.save(vault.snapshot())

        restored = Vault.restore(store.load(vault.address), asset, adapters)

        assert restored.total_assets == vault.total_assets
        assert restored.total_supply == vault.total_supply
        assert restored.performance_fee_bps == vault.performance_fee_bps
        assert [r.model_dump() for r in restored.strategies()] == [
            r.model_dump() for r in vault.strategies()
        ]

        # 복원된 vault도 정상 동작
        restored.withdraw("bob", 100)
        assert asset.balance_of("bob") == 100

    def test_restore_with_other_asset(self, populated) -> None:
        vault, adapters = populated
        with pytest.raises(IdentityMismatch):
            Vault.restore(vault.snapshot(), Asset("DAI"), adapters)

    def test_restore_missing_adapter(self, populated, asset: Asset) -> None:
        vault, adapters = populated
        with pytest.raises(KeyError):
            Vault.restore(vault.snapshot(), asset, {"strat:a": adapters["strat:a"]})
