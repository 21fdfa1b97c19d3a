"""Scenario simulation for the vault ledger."""

from src.simulation.runner import (
    SimulationResult,
    StepOutcome,
    build_vault,
    run_simulation,
)

__all__ = ["SimulationResult", "StepOutcome", "build_vault", "run_simulation"]
