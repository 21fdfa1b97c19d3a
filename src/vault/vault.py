"""Vault facade.

Depositor / operator / keeper에게 노출되는 단일 진입점입니다.
Ledger, Registry, Allocator, Reconciler, ShareLedger를 하나의 소유 상태로
묶고, 모든 ledger 변경 진입점을 reentrancy guard로 감쌉니다.

흐름:
    deposit   → idle 증가 → Allocator.deploy
    withdraw  → idle 우선 사용 → 부족 시 Allocator.pull → 여전히 부족하면 원자적 실패
    reconcile → HarvestReconciler (누구나 호출 가능)

Rules Applied:
    - Single writer: 진입점당 하나의 guard 구간
    - All-or-nothing: 예외 시 StateJournal이 연산 시작 시점으로 복원
    - #23 Exception Handling: precondition은 상태 변경 전에 검사
    - #15 Logging Standards: operation 단위 LoggingContext + trace_id
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Self

from loguru import logger

from src.config.settings import get_settings
from src.core.event_log import EventLog
from src.core.events import (
    AllocationUpdatedEvent,
    DepositEvent,
    FeeRecipientUpdatedEvent,
    OperatorUpdatedEvent,
    PerformanceFeeUpdatedEvent,
    StrategyDeregisteredEvent,
    StrategyRegisteredEvent,
    WithdrawEvent,
)
from src.core.exceptions import (
    FeeTooHigh,
    IdentityMismatch,
    InsufficientLiquidity,
    InsufficientShares,
    InvalidAmount,
)
from src.logging.context import LoggingContext, generate_trace_id
from src.models.types import MAX_BPS, VaultOperation
from src.vault.allocator import CapitalAllocator
from src.vault.asset import require_address, require_amount
from src.vault.guard import OperatorRole, ReentrancyGuard
from src.vault.journal import StateJournal
from src.vault.ledger import VaultLedger
from src.vault.models import ReconcileResult, StrategyRecord, VaultSnapshot
from src.vault.reconciler import HarvestReconciler, PerformanceFee
from src.vault.registry import AllocationRegistry
from src.vault.shares import Rounding, ShareLedger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from src.models.types import Address
    from src.vault.asset import Asset
    from src.vault.ports import StrategyAdapterPort


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Vault:
    """Pooled-capital yield vault (단일 underlying asset).

    Args:
        asset: underlying asset ledger
        operator: privileged operator 주소
        address: vault 주소
        fee_recipient: performance fee 수령 주소 (기본: operator)
        performance_fee_bps: 초기 fee (기본: settings.default_performance_fee_bps)
        max_performance_fee_bps: fee 상한 (기본: settings.max_performance_fee_bps)
        events: 이벤트 로그 (기본: 새 EventLog)
        clock: 현재 시각 공급자 (테스트에서 고정 시각 주입)

    Example:
        >>> usdc = Asset("USDC")
        >>> vault = Vault(usdc, operator="0xOPS")
        >>> vault.register_strategy("0xOPS", adapter, 5000)
        >>> usdc.mint("0xALICE", 1_000)
        >>> usdc.approve("0xALICE", vault.address, 1_000)
        >>> vault.deposit("0xALICE", 1_000)
        1000
    """

    def __init__(
        self,
        asset: Asset,
        operator: Address,
        *,
        address: Address = "vault:0",
        fee_recipient: Address | None = None,
        performance_fee_bps: int | None = None,
        max_performance_fee_bps: int | None = None,
        events: EventLog | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = get_settings()
        self.address: Address = require_address(address, "vault")
        self.asset = asset
        self.events = events if events is not None else EventLog()
        self._clock = clock or _utc_now

        self._access = OperatorRole(operator)
        self._guard = ReentrancyGuard()
        self._ledger = VaultLedger()
        self._shares = ShareLedger()
        self._registry = AllocationRegistry(self.address, asset.address)
        self._journal = StateJournal(self._journal_participants)

        max_fee = (
            settings.max_performance_fee_bps
            if max_performance_fee_bps is None
            else max_performance_fee_bps
        )
        fee_bps = (
            min(settings.default_performance_fee_bps, max_fee)
            if performance_fee_bps is None
            else performance_fee_bps
        )
        if not 0 <= max_fee <= MAX_BPS:
            msg = f"max_performance_fee_bps must be in [0, {MAX_BPS}]"
            raise FeeTooHigh(msg, context={"max_performance_fee_bps": max_fee})
        if not 0 <= fee_bps <= max_fee:
            msg = "Performance fee exceeds the configured maximum"
            raise FeeTooHigh(msg, context={"fee_bps": fee_bps, "max_fee_bps": max_fee})
        self._fee = PerformanceFee(
            fee_bps=fee_bps,
            max_fee_bps=max_fee,
            recipient=require_address(fee_recipient or operator, "fee_recipient"),
        )

        self._allocator = CapitalAllocator(
            self.address, asset, self._ledger, self._registry, self.events
        )
        self._reconciler = HarvestReconciler(
            self.address,
            asset,
            self._ledger,
            self._registry,
            self._fee,
            self.events,
            self._clock,
        )

    # =========================================================================
    # Operation scope
    # =========================================================================

    @contextmanager
    def _operation(self, operation: VaultOperation) -> Iterator[None]:
        """Guard + 로그 컨텍스트 + all-or-nothing 실행.

        예외로 끝나면 asset / ledger / registry / shares / adapter 상태를
        연산 시작 시점으로 되돌리고, 보류된 이벤트는 발행하지 않습니다.
        불변식 검사도 commit 전에 수행됩니다.
        """
        with (
            self._guard.enter(operation),
            LoggingContext(
                vault=self.address,
                operation=operation.value,
                trace_id=generate_trace_id(),
            ),
            self._journal.transaction(),
            self.events.deferred(),
        ):
            yield
            self._check_invariants()

    def _journal_participants(self) -> list[object]:
        return [
            self.asset,
            self._ledger,
            self._registry,
            self._shares,
            *self._registry.adapters(),
        ]

    def _check_invariants(self) -> None:
        self._ledger.check_invariants(
            self._registry.records(),
            self.asset.balance_of(self.address),
        )

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def operator(self) -> Address:
        return self._access.operator

    @property
    def fee_recipient(self) -> Address:
        return self._fee.recipient

    @property
    def performance_fee_bps(self) -> int:
        return self._fee.fee_bps

    @property
    def max_performance_fee_bps(self) -> int:
        return self._fee.max_fee_bps

    @property
    def total_assets(self) -> int:
        """idle + total_debt (share pricing의 유일한 기준)."""
        return self._ledger.total_assets

    @property
    def available_capital(self) -> int:
        """Idle 자본."""
        return self._ledger.idle

    @property
    def total_debt(self) -> int:
        """배포된 debt 합계."""
        return self._ledger.total_debt

    @property
    def total_target_bps(self) -> int:
        return self._registry.total_target_bps

    @property
    def total_supply(self) -> int:
        return self._shares.total_supply

    @property
    def is_locked(self) -> bool:
        """외부 호출 도중이면 True."""
        return self._guard.locked

    def share_balance(self, owner: Address) -> int:
        return self._shares.balance_of(owner)

    def strategy_record(self, strategy: Address) -> StrategyRecord | None:
        """레코드 사본 (없으면 None)."""
        record = self._registry.get(strategy)
        return record.model_copy() if record is not None else None

    def strategies(self, *, active_only: bool = False) -> list[StrategyRecord]:
        """레코드 사본 목록 (registration 순서)."""
        records = self._registry.active_records() if active_only else self._registry.records()
        return [r.model_copy() for r in records]

    def convert_to_shares(self, assets: int) -> int:
        return self._shares.to_shares(assets, self.total_assets)

    def convert_to_assets(self, shares: int) -> int:
        return self._shares.to_assets(shares, self.total_assets)

    def max_withdraw(self, owner: Address) -> int:
        """owner share로 인출 가능한 최대 asset (유동성 제약 미반영)."""
        return self._shares.to_assets(self._shares.balance_of(owner), self.total_assets)

    def price_per_share(self) -> Decimal:
        return self._shares.price_per_share(self.total_assets)

    def estimated_apr(self) -> int:
        """Debt 가중 평균 APR (bps, idle은 0%)."""
        total = self.total_assets
        if total == 0:
            return 0
        weighted = sum(
            self._registry.adapter(r.strategy).estimate_apr() * r.recorded_debt
            for r in self._registry.active_records()
            if r.recorded_debt
        )
        return weighted // total

    # =========================================================================
    # Depositor operations
    # =========================================================================

    def deposit(self, caller: Address, assets: int, receiver: Address | None = None) -> int:
        """Asset을 예치하고 share를 발행한 뒤 deploy path 실행.

        caller는 사전에 vault에 대한 allowance를 부여해야 합니다.

        Returns:
            발행된 share 수

        Raises:
            InvalidAmount: 0 이하 금액, 또는 share가 0개로 계산되는 금액
            InsufficientBalance: caller 잔고/allowance 부족
        """
        with self._operation(VaultOperation.DEPOSIT):
            require_amount(assets, allow_zero=False)
            receiver = require_address(receiver or caller, "receiver")

            shares = self._shares.to_shares(assets, self.total_assets, Rounding.DOWN)
            if shares == 0:
                msg = "Deposit too small to mint shares"
                raise InvalidAmount(msg, context={"assets": assets})

            self.asset.transfer_from(self.address, caller, self.address, assets)
            self._ledger.credit_idle(assets)
            self._shares.mint(receiver, shares)

            logger.info("Deposit: {} assets -> {} shares for {}", assets, shares, receiver)
            self.events.publish(
                DepositEvent(vault=self.address, owner=receiver, assets=assets, shares=shares)
            )

            self._allocator.deploy()
            return shares

    def withdraw(self, caller: Address, assets: int, receiver: Address | None = None) -> int:
        """caller의 share를 소각하고 assets를 receiver에게 지급.

        Idle이 부족하면 strategy에서 회수합니다. 회수 후에도 부족하면
        부분 지급 없이 InsufficientLiquidity로 실패합니다 (share/지급 변동 없음).

        Returns:
            소각된 share 수

        Raises:
            InvalidAmount: 0 이하 금액
            InsufficientShares: share 부족
            InsufficientLiquidity: idle + 회수액 < assets
        """
        with self._operation(VaultOperation.WITHDRAW):
            require_amount(assets, allow_zero=False)
            receiver = require_address(receiver or caller, "receiver")

            total = self.total_assets
            if assets > total:
                msg = "Withdrawal exceeds total assets"
                raise InsufficientLiquidity(
                    msg, requested=assets, available=total, context={"owner": caller}
                )

            shares = self._shares.to_shares(assets, total, Rounding.UP)
            balance = self._shares.balance_of(caller)
            if shares > balance:
                msg = "Insufficient shares"
                raise InsufficientShares(
                    msg, context={"owner": caller, "balance": balance, "shares": shares}
                )

            return self._withdraw(caller, receiver, assets, shares)

    def redeem(self, caller: Address, shares: int, receiver: Address | None = None) -> int:
        """Share 수량 기준 인출.

        Returns:
            지급된 asset
        """
        with self._operation(VaultOperation.WITHDRAW):
            require_amount(shares, allow_zero=False)
            receiver = require_address(receiver or caller, "receiver")

            balance = self._shares.balance_of(caller)
            if shares > balance:
                msg = "Insufficient shares"
                raise InsufficientShares(
                    msg, context={"owner": caller, "balance": balance, "shares": shares}
                )
            assets = self._shares.to_assets(shares, self.total_assets, Rounding.DOWN)
            if assets == 0:
                msg = "Redemption too small to pay out assets"
                raise InvalidAmount(msg, context={"shares": shares})

            self._withdraw(caller, receiver, assets, shares)
            return assets

    def _withdraw(self, owner: Address, receiver: Address, assets: int, shares: int) -> int:
        if assets > self._ledger.idle:
            self._allocator.pull(assets - self._ledger.idle)
            if assets > self._ledger.idle:
                msg = "Insufficient liquidity to honor withdrawal"
                raise InsufficientLiquidity(
                    msg,
                    requested=assets,
                    available=self._ledger.idle,
                    context={"owner": owner},
                )

        self._shares.burn(owner, shares)
        self._ledger.debit_idle(assets)
        self.asset.transfer(self.address, receiver, assets)

        logger.info("Withdraw: {} shares -> {} assets to {}", shares, assets, receiver)
        self.events.publish(
            WithdrawEvent(
                vault=self.address,
                owner=owner,
                receiver=receiver,
                assets=assets,
                shares=shares,
            )
        )
        return shares

    # =========================================================================
    # Privileged operations
    # =========================================================================

    def register_strategy(
        self,
        caller: Address,
        adapter: StrategyAdapterPort,
        target_bps: int,
    ) -> StrategyRecord:
        """Strategy 등록 (debt 0).

        Raises:
            Unauthorized, InvalidAllocation, IdentityMismatch, AlreadyActive
        """
        with self._operation(VaultOperation.REGISTER):
            self._access.require(caller, VaultOperation.REGISTER)
            record = self._registry.register(adapter, target_bps, now=self._clock())
            self.events.publish(
                StrategyRegisteredEvent(
                    vault=self.address,
                    strategy=record.strategy,
                    target_bps=record.allocation_target_bps,
                    total_target_bps=self._registry.total_target_bps,
                )
            )
            return record.model_copy()

    def update_target(self, caller: Address, strategy: Address, new_bps: int) -> None:
        """Allocation target 변경. 자본 이동은 다음 deploy/pull 사이클에서 일어남.

        Raises:
            Unauthorized, NotActive, InvalidAllocation
        """
        with self._operation(VaultOperation.UPDATE_TARGET):
            self._access.require(caller, VaultOperation.UPDATE_TARGET)
            old_bps, new_bps = self._registry.update_target(strategy, new_bps)
            self.events.publish(
                AllocationUpdatedEvent(
                    vault=self.address,
                    strategy=strategy,
                    old_bps=old_bps,
                    new_bps=new_bps,
                    total_target_bps=self._registry.total_target_bps,
                )
            )

    def deregister_strategy(self, caller: Address, strategy: Address) -> StrategyRecord:
        """Strategy 제거.

        recorded_debt 전액 회수를 시도하고, 반환되지 않은 잔여분은
        손실로 상각한 뒤 레코드를 비활성화합니다.

        Raises:
            Unauthorized, NotActive
        """
        with self._operation(VaultOperation.DEREGISTER):
            self._access.require(caller, VaultOperation.DEREGISTER)
            record = self._registry.require_active(strategy)

            returned, written_off = self._allocator.recall(record)
            self._registry.deactivate(strategy)

            self.events.publish(
                StrategyDeregisteredEvent(
                    vault=self.address,
                    strategy=strategy,
                    returned=returned,
                    written_off=written_off,
                    total_target_bps=self._registry.total_target_bps,
                )
            )
            return record.model_copy()

    def deploy_idle(self, caller: Address) -> int:
        """Deploy path를 수동 실행 (target 변경 후 수렴용).

        Returns:
            투입된 금액 (추가 idle이 없으면 0)
        """
        with self._operation(VaultOperation.DEPLOY):
            self._access.require(caller, VaultOperation.DEPLOY)
            return self._allocator.deploy()

    def set_performance_fee(self, caller: Address, fee_bps: int) -> None:
        """Raises: Unauthorized, FeeTooHigh."""
        with self._operation(VaultOperation.SET_FEE):
            self._access.require(caller, VaultOperation.SET_FEE)
            if (
                not isinstance(fee_bps, int)
                or isinstance(fee_bps, bool)
                or not 0 <= fee_bps <= self._fee.max_fee_bps
            ):
                msg = "Performance fee exceeds the configured maximum"
                raise FeeTooHigh(
                    msg, context={"fee_bps": fee_bps, "max_fee_bps": self._fee.max_fee_bps}
                )
            old_bps = self._fee.fee_bps
            self._fee.fee_bps = fee_bps
            logger.info("Performance fee {} -> {} bps", old_bps, fee_bps)
            self.events.publish(
                PerformanceFeeUpdatedEvent(vault=self.address, old_bps=old_bps, new_bps=fee_bps)
            )

    def set_fee_recipient(self, caller: Address, recipient: Address) -> None:
        """Raises: Unauthorized, InvalidAddress."""
        with self._operation(VaultOperation.SET_FEE_RECIPIENT):
            self._access.require(caller, VaultOperation.SET_FEE_RECIPIENT)
            recipient = require_address(recipient, "fee_recipient")
            old = self._fee.recipient
            self._fee.recipient = recipient
            self.events.publish(
                FeeRecipientUpdatedEvent(
                    vault=self.address, old_recipient=old, new_recipient=recipient
                )
            )

    def set_operator(self, caller: Address, new_operator: Address) -> None:
        """Raises: Unauthorized, InvalidAddress."""
        with self._operation(VaultOperation.SET_OPERATOR):
            self._access.require(caller, VaultOperation.SET_OPERATOR)
            old = self._access.transfer(new_operator)
            logger.warning("Operator transferred: {} -> {}", old, new_operator)
            self.events.publish(
                OperatorUpdatedEvent(vault=self.address, old_operator=old, new_operator=new_operator)
            )

    # =========================================================================
    # Permissionless operations
    # =========================================================================

    def reconcile(self, strategy: Address) -> ReconcileResult:
        """Strategy harvest + profit/loss 인식 (누구나 호출 가능).

        Raises:
            NotActive: 미등록 또는 비활성 strategy
        """
        with self._operation(VaultOperation.RECONCILE):
            return self._reconciler.reconcile(strategy)

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> VaultSnapshot:
        """현재 상태의 불변 스냅샷."""
        return VaultSnapshot(
            vault=self.address,
            asset=self.asset.address,
            operator=self.operator,
            fee_recipient=self.fee_recipient,
            performance_fee_bps=self.performance_fee_bps,
            max_performance_fee_bps=self.max_performance_fee_bps,
            idle=self._ledger.idle,
            total_debt=self._ledger.total_debt,
            total_supply=self._shares.total_supply,
            share_balances=self._shares.balances(),
            strategies=self.strategies(),
            taken_at=self._clock(),
        )

    @classmethod
    def restore(
        cls,
        snapshot: VaultSnapshot,
        asset: Asset,
        adapters: dict[Address, StrategyAdapterPort],
        *,
        events: EventLog | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> Self:
        """스냅샷과 live asset / adapter로 vault 재구성.

        Raises:
            IdentityMismatch: asset 또는 adapter identity 불일치
            InvariantViolation: 복원된 상태가 ledger 불변식 위반
        """
        if asset.address != snapshot.asset:
            msg = "Snapshot asset does not match the supplied asset"
            raise IdentityMismatch(
                msg, context={"snapshot_asset": snapshot.asset, "asset": asset.address}
            )

        vault = cls(
            asset,
            snapshot.operator,
            address=snapshot.vault,
            fee_recipient=snapshot.fee_recipient,
            performance_fee_bps=snapshot.performance_fee_bps,
            max_performance_fee_bps=snapshot.max_performance_fee_bps,
            events=events,
            clock=clock,
        )
        vault._registry.restore(snapshot.strategies, adapters)
        vault._ledger.reset(snapshot.idle, snapshot.total_debt)
        vault._shares.restore(snapshot.share_balances)
        vault._check_invariants()

        logger.info(
            "Vault {} restored: {} strategies, total_assets={}",
            vault.address,
            len(snapshot.strategies),
            vault.total_assets,
        )
        return vault

    def __repr__(self) -> str:
        return (
            f"Vault(address={self.address!r}, total_assets={self.total_assets}, "
            f"strategies={len(self._registry.active_records())})"
        )
