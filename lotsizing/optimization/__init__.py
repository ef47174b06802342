"""Optimization module for capacitated lot-sizing.

This module provides the Pyomo formulation of the CLSP, the derivation of
its big-M and hop bounds, and the solver boundary that turns any solver
outcome into an explicit OptimizationResult.
"""

from .solver_config import (
    SolverConfig,
    SolverType,
    SolverInfo,
    get_global_config,
    get_solver,
)
from .base_model import (
    BaseOptimizationModel,
    OptimizationResult,
    SolveStatus,
)
from .parameters import (
    DerivedParameters,
    derive_parameters,
    hop_inventory_bound,
    max_production,
)
from .result_schema import (
    CapacityUsage,
    LotSizingSolution,
    PlanCostBreakdown,
)
from .clsp_model import (
    CLSPModel,
    formulate,
)

__all__ = [
    # Solver configuration
    "SolverConfig",
    "SolverType",
    "SolverInfo",
    "get_global_config",
    "get_solver",
    # Base model
    "BaseOptimizationModel",
    "OptimizationResult",
    "SolveStatus",
    # Derived parameters
    "DerivedParameters",
    "derive_parameters",
    "hop_inventory_bound",
    "max_production",
    # Solution schema
    "CapacityUsage",
    "LotSizingSolution",
    "PlanCostBreakdown",
    # CLSP model
    "CLSPModel",
    "formulate",
]
