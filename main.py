"""Yield Vault - Entry Point.

Usage:
    python main.py vault simulate config/example_vault.yaml
    python main.py vault simulate config/example_vault.yaml --save data/vault
    python main.py vault show-config config/example_vault.yaml
"""

from src.cli import create_app

app = create_app()


if __name__ == "__main__":
    app()
