"""CLI interface using Typer.

Available subcommands:
    - vault: Vault scenario simulation and snapshot inspection

Usage:
    uv run yvault vault simulate config/example_vault.yaml
    uv run yvault vault show-config config/example_vault.yaml
    uv run yvault vault inspect data/vault/vault_0.yaml
"""

import typer


def create_app() -> typer.Typer:
    """Create the main CLI application with all sub-commands.

    Lazy import를 사용하여 서브커맨드 모듈을 필요할 때만 로드합니다.
    """
    from src.cli.vault import app as vault_app

    main_app = typer.Typer(
        name="yvault",
        help="Yield Vault - pooled-capital ledger and allocation engine",
        no_args_is_help=True,
    )

    main_app.add_typer(vault_app, name="vault", help="Vault scenario simulation (YAML)")

    return main_app


def main() -> None:
    """Entry point for the ``yvault`` console script."""
    app = create_app()
    app()
