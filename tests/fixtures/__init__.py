"""Test fixtures for lot-sizing model testing."""

from .solver_mocks import (
    create_crashing_solver_config,
    create_failing_solver_config,
    create_mock_solver_config,
    lot_for_lot_plan,
)

__all__ = [
    'create_crashing_solver_config',
    'create_failing_solver_config',
    'create_mock_solver_config',
    'lot_for_lot_plan',
]
