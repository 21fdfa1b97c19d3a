"""YAML 시뮬레이션 설정 로더 / VaultSettings 테스트."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config.config_loader import (
    DepositStep,
    ReconcileStep,
    SimulationConfig,
    load_config,
)
from src.config.settings import VaultSettings, get_settings

_YAML = """\
asset:
  symbol: DAI
  decimals: 18
vault:
  operator: ops
  performance_fee_bps: 150
strategies:
  - address: "strat:a"
    target_bps: 6000
    params: {apr_bps: 500}
steps:
  - {action: deposit, account: alice, amount: 1000}
  - {action: reconcile, strategy: "strat:a"}
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "vault.yaml"
    path.write_text(_YAML, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_load(self, config_file: Path) -> None:
        cfg = load_config(config_file)

        assert cfg.asset.symbol == "DAI"
        assert cfg.vault.address == "vault:0"
        assert cfg.vault.performance_fee_bps == 150
        assert cfg.strategies[0].adapter == "simulated"
        assert cfg.strategies[0].params == {"apr_bps": 500}
        assert isinstance(cfg.steps[0], DepositStep)
        assert isinstance(cfg.steps[1], ReconcileStep)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_unknown_action(self) -> None:
        with pytest.raises(ValidationError):
            SimulationConfig.model_validate(
                {"vault": {"operator": "ops"}, "steps": [{"action": "explode"}]}
            )

    def test_duplicate_strategy_addresses(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate strategy"):
            SimulationConfig.model_validate(
                {
                    "vault": {"operator": "ops"},
                    "strategies": [{"address": "strat:a"}, {"address": "strat:a"}],
                }
            )

    def test_non_positive_deposit(self) -> None:
        with pytest.raises(ValidationError):
            DepositStep(account="alice", amount=0)

    def test_operator_required(self) -> None:
        with pytest.raises(ValidationError):
            SimulationConfig.model_validate({"vault": {}})

    def test_asset_defaults_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """asset 섹션 생략 시 VAULT_ASSET_* 값 사용."""
        monkeypatch.setenv("VAULT_ASSET_SYMBOL", "WETH")
        monkeypatch.setenv("VAULT_ASSET_DECIMALS", "18")
        get_settings.cache_clear()
        try:
            cfg = SimulationConfig.model_validate({"vault": {"operator": "ops"}})
        finally:
            get_settings.cache_clear()

        assert cfg.asset.symbol == "WETH"
        assert cfg.asset.decimals == 18


class TestVaultSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("VAULT_MAX_PERFORMANCE_FEE_BPS", raising=False)
        monkeypatch.delenv("VAULT_DEFAULT_PERFORMANCE_FEE_BPS", raising=False)
        settings = VaultSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.max_performance_fee_bps == 5000
        assert settings.default_performance_fee_bps == 1000

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_DEFAULT_PERFORMANCE_FEE_BPS", "250")
        settings = VaultSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.default_performance_fee_bps == 250

    def test_default_above_cap(self) -> None:
        with pytest.raises(ValidationError):
            VaultSettings(  # type: ignore[call-arg]
                _env_file=None,
                max_performance_fee_bps=100,
                default_performance_fee_bps=200,
            )
