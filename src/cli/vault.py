"""Typer CLI for Vault Simulation.

Commands:
    - simulate: YAML 시나리오 실행 후 strategy 테이블과 totals 출력
    - show-config: YAML 설정 검증 후 요약 출력
    - inspect: 저장된 vault 스냅샷(YAML) 출력
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.config.config_loader import SimulationConfig, load_config
from src.core.logger import setup_logger
from src.simulation.runner import run_simulation
from src.vault.store import VaultStateStore

if TYPE_CHECKING:
    from src.simulation.runner import StepOutcome
    from src.vault.models import VaultSnapshot

app = typer.Typer(no_args_is_help=True)
console = Console()


def _load_or_exit(config_path: Path) -> SimulationConfig:
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e
    except ValidationError as e:
        console.print(f"[red]Invalid config:[/red]\n{e}")
        raise typer.Exit(code=1) from e


def _render_steps(outcomes: list[StepOutcome]) -> None:
    table = Table(title="Steps", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Action", style="cyan")
    table.add_column("Result")

    for o in outcomes:
        if o.ok:
            table.add_row(str(o.index), o.action, f"[green]{o.detail}[/green]")
        else:
            table.add_row(str(o.index), o.action, f"[red]{o.error}[/red]")
    console.print(table)


def _render_snapshot(snapshot: VaultSnapshot) -> None:
    table = Table(title="Strategies", show_header=True, header_style="bold")
    table.add_column("Strategy", style="cyan")
    table.add_column("Name")
    table.add_column("Target (bps)", justify="right")
    table.add_column("Recorded Debt", justify="right")
    table.add_column("Last Reconciled")
    table.add_column("Status")

    for r in snapshot.strategies:
        reconciled = (
            r.last_reconciled_at.strftime("%Y-%m-%d %H:%M") if r.last_reconciled_at else "-"
        )
        status = "[green]active[/green]" if r.active else "[dim]inactive[/dim]"
        table.add_row(
            r.strategy,
            r.name,
            str(r.allocation_target_bps),
            str(r.recorded_debt),
            reconciled,
            status,
        )
    console.print(table)

    totals = (
        f"Vault: [bold]{snapshot.vault}[/bold]  Asset: {snapshot.asset}\n"
        f"Total Assets: {snapshot.total_assets}  "
        f"Idle: {snapshot.idle}  Total Debt: {snapshot.total_debt}\n"
        f"Total Supply: {snapshot.total_supply}  "
        f"Performance Fee: {snapshot.performance_fee_bps} bps "
        f"(max {snapshot.max_performance_fee_bps})  Recipient: {snapshot.fee_recipient}"
    )
    console.print(Panel(totals, title="Totals", expand=False))


# ─── Commands ────────────────────────────────────────────────────────


@app.command()
def simulate(
    config_path: Annotated[Path, typer.Argument(help="YAML scenario file")],
    save: Annotated[
        Path | None,
        typer.Option("--save", help="Directory to store the final vault snapshot"),
    ] = None,
    keep_going: Annotated[
        bool,
        typer.Option("--keep-going", help="Continue after a failed step"),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Debug logging")] = False,
) -> None:
    """YAML 시나리오 실행."""
    setup_logger(console_level="DEBUG" if verbose else "WARNING", enable_file=False)
    cfg = _load_or_exit(config_path)

    result = run_simulation(cfg, stop_on_error=not keep_going)
    snapshot = result.vault.snapshot()

    _render_steps(result.outcomes)
    _render_snapshot(snapshot)

    if save is not None:
        path = VaultStateStore(save).save(snapshot)
        console.print(f"[green]Snapshot saved:[/green] {path}")

    if not result.ok:
        console.print(f"[red]{len(result.failed)} step(s) failed.[/red]")
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config(
    config_path: Annotated[Path, typer.Argument(help="YAML scenario file")],
) -> None:
    """YAML 설정 검증 후 요약 출력."""
    cfg = _load_or_exit(config_path)

    console.print(
        Panel(
            f"Vault: [bold]{cfg.vault.address}[/bold]\n"
            f"Operator: {cfg.vault.operator}\n"
            f"Asset: {cfg.asset.symbol} ({cfg.asset.decimals} decimals)\n"
            f"Performance Fee: {cfg.vault.performance_fee_bps or 'default'}",
            title="Vault Config",
            expand=False,
        )
    )

    table = Table(title="Strategies", show_header=True, header_style="bold")
    table.add_column("Address", style="cyan")
    table.add_column("Adapter")
    table.add_column("Target (bps)", justify="right")
    table.add_column("Params")
    for s in cfg.strategies:
        params = ", ".join(f"{k}={v}" for k, v in s.params.items()) or "-"
        table.add_row(s.address, s.adapter, str(s.target_bps), params)
    console.print(table)

    total_bps = sum(s.target_bps for s in cfg.strategies)
    console.print(f"Total target: {total_bps} bps, {len(cfg.steps)} step(s)")


@app.command()
def inspect(
    snapshot_path: Annotated[Path, typer.Argument(help="Saved vault snapshot (YAML)")],
) -> None:
    """저장된 vault 스냅샷 출력."""
    if not snapshot_path.exists():
        console.print(f"[red]Snapshot not found: {snapshot_path}[/red]")
        raise typer.Exit(code=1)
    try:
        snapshot = VaultStateStore.load_path(snapshot_path)
    except ValidationError as e:
        console.print(f"[red]Invalid snapshot:[/red]\n{e}")
        raise typer.Exit(code=1) from e
    _render_snapshot(snapshot)
