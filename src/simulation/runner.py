"""Scenario runner.

SimulationConfig로부터 Asset, Vault, Strategy adapter를 구성하고
steps를 순서대로 실행합니다. 각 step의 성공/실패는 StepOutcome으로 기록됩니다.

흐름: load_config → build_vault → run_simulation → (CLI 출력 / 스냅샷 저장)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from pydantic import BaseModel, ConfigDict

from src.config.config_loader import (
    AccrueStep,
    DeployStep,
    DepositStep,
    DeregisterStep,
    LossStep,
    ReconcileStep,
    SetFeeStep,
    UpdateTargetStep,
    WithdrawStep,
)
from src.core.exceptions import NotActive, VaultError
from src.strategy import get_adapter
from src.strategy.simulated import SimulatedStrategy
from src.vault.asset import Asset
from src.vault.vault import Vault

if TYPE_CHECKING:
    from src.config.config_loader import SimulationConfig, SimulationStep
    from src.strategy.base import BaseStrategyAdapter


class StepOutcome(BaseModel):
    """Step 하나의 실행 결과."""

    model_config = ConfigDict(frozen=True)

    index: int
    action: str
    ok: bool
    detail: str = ""
    error: str | None = None


class SimulationResult:
    """실행이 끝난 vault와 adapter, step 결과 묶음."""

    def __init__(
        self,
        vault: Vault,
        adapters: dict[str, BaseStrategyAdapter],
        outcomes: list[StepOutcome],
    ) -> None:
        self.vault = vault
        self.adapters = adapters
        self.outcomes = outcomes

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def build_vault(cfg: SimulationConfig) -> tuple[Vault, dict[str, BaseStrategyAdapter]]:
    """설정으로 vault를 만들고 strategy를 registration 순서대로 등록.

    Raises:
        KeyError: 등록되지 않은 adapter 이름
        VaultError: 등록 precondition 위반
    """
    asset = Asset(cfg.asset.symbol, decimals=cfg.asset.decimals)
    vault = Vault(
        asset,
        cfg.vault.operator,
        address=cfg.vault.address,
        fee_recipient=cfg.vault.fee_recipient,
        performance_fee_bps=cfg.vault.performance_fee_bps,
        max_performance_fee_bps=cfg.vault.max_performance_fee_bps,
    )

    adapters: dict[str, BaseStrategyAdapter] = {}
    for section in cfg.strategies:
        adapter_cls = get_adapter(section.adapter)
        adapter = adapter_cls(
            section.address,
            vault.address,
            asset,
            name=section.name,
            **section.params,
        )
        vault.register_strategy(cfg.vault.operator, adapter, section.target_bps)
        adapters[section.address] = adapter

    return vault, adapters


def _simulated(adapters: dict[str, BaseStrategyAdapter], strategy: str) -> SimulatedStrategy:
    adapter = adapters.get(strategy)
    if not isinstance(adapter, SimulatedStrategy):
        msg = "Step requires a simulated strategy"
        raise NotActive(msg, context={"strategy": strategy})
    return adapter


def _apply(
    step: SimulationStep,
    vault: Vault,
    adapters: dict[str, BaseStrategyAdapter],
    operator: str,
) -> str:
    """Step 하나를 실행하고 요약 문자열을 반환."""
    match step:
        case DepositStep(account=account, amount=amount):
            vault.asset.mint(account, amount)
            vault.asset.approve(account, vault.address, amount)
            shares = vault.deposit(account, amount)
            return f"{account} deposited {amount} for {shares} shares"
        case WithdrawStep(account=account, amount=amount):
            shares = vault.withdraw(account, amount)
            return f"{account} withdrew {amount} burning {shares} shares"
        case AccrueStep(strategy=strategy, amount=amount):
            _simulated(adapters, strategy).accrue(amount)
            return f"{strategy} accrued {amount}"
        case LossStep(strategy=strategy, amount=amount):
            lost = _simulated(adapters, strategy).realize_loss(amount)
            return f"{strategy} lost {lost}"
        case ReconcileStep(strategy=strategy):
            result = vault.reconcile(strategy)
            return (
                f"{strategy} profit={result.profit} loss={result.loss} "
                f"fee={result.fee} debt={result.new_debt}"
            )
        case UpdateTargetStep(strategy=strategy, target_bps=target_bps):
            vault.update_target(operator, strategy, target_bps)
            return f"{strategy} target -> {target_bps} bps"
        case DeregisterStep(strategy=strategy):
            vault.deregister_strategy(operator, strategy)
            return f"{strategy} deregistered"
        case DeployStep():
            deployed = vault.deploy_idle(operator)
            return f"deployed {deployed}"
        case SetFeeStep(fee_bps=fee_bps):
            vault.set_performance_fee(operator, fee_bps)
            return f"performance fee -> {fee_bps} bps"
    msg = f"Unsupported step: {step!r}"
    raise ValueError(msg)


def run_simulation(cfg: SimulationConfig, *, stop_on_error: bool = True) -> SimulationResult:
    """Steps를 순서대로 실행.

    VaultError는 해당 step의 실패로 기록되며, stop_on_error면 그 지점에서 중단합니다.
    그 외 예외는 그대로 전파됩니다.
    """
    vault, adapters = build_vault(cfg)
    operator = cfg.vault.operator
    outcomes: list[StepOutcome] = []

    for index, step in enumerate(cfg.steps):
        try:
            detail = _apply(step, vault, adapters, operator)
        except VaultError as exc:
            logger.warning("Step {} ({}) failed: {}", index, step.action, exc)
            outcomes.append(
                StepOutcome(index=index, action=step.action, ok=False, error=str(exc))
            )
            if stop_on_error:
                break
            continue
        outcomes.append(StepOutcome(index=index, action=step.action, ok=True, detail=detail))

    logger.info(
        "Simulation finished: {}/{} steps ok, total_assets={}",
        sum(o.ok for o in outcomes),
        len(cfg.steps),
        vault.total_assets,
    )
    return SimulationResult(vault, adapters, outcomes)
