"""Solver configuration and detection.

Detects which Pyomo solver plugins are usable on this machine and picks the
best one by preference. The lot-sizing core only needs a solver that accepts
a MIP and reports an assignment or a failure; everything solver specific
(option names, HiGHS tuning) lives here and in the base model.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pyomo.environ import ConcreteModel, Constraint, NonNegativeReals, Objective, Var, minimize, value
from pyomo.opt import SolverFactory, SolverStatus

logger = logging.getLogger(__name__)


class SolverType(str, Enum):
    """Solver plugins the model can be handed to."""
    GUROBI = "gurobi"
    CPLEX = "cplex"
    APPSI_HIGHS = "appsi_highs"
    HIGHS = "highs"
    CBC = "cbc"
    GLPK = "glpk"


@dataclass
class SolverInfo:
    """Detection and smoke-test status of a solver."""
    name: str
    available: bool
    version: Optional[str] = None
    tested: bool = False
    works: bool = False

    def __str__(self) -> str:
        """String representation."""
        if not self.available:
            return f"{self.name.upper()}: ✗ unavailable"
        suffix = " (tested)" if self.tested and self.works else ""
        if self.tested and not self.works:
            suffix = " (test failed)"
        return f"{self.name.upper()}: ✓ available{suffix}"


class SolverConfig:
    """Detects available solvers and creates configured solver instances."""

    # Commercial solvers first, then HiGHS (pip installable via highspy)
    SOLVER_PREFERENCE = [
        SolverType.GUROBI,
        SolverType.CPLEX,
        SolverType.APPSI_HIGHS,
        SolverType.HIGHS,
        SolverType.CBC,
        SolverType.GLPK,
    ]

    #: HiGHS MIP options applied to every HiGHS solve
    HIGHS_MIP_OPTIONS = {
        'presolve': 'on',
        'parallel': 'on',
        'mip_detect_symmetry': True,
        'mip_heuristic_effort': 0.5,
    }

    def __init__(self):
        self._solver_info: Dict[str, SolverInfo] = {}
        self._detect_solvers()

    def _detect_solvers(self) -> None:
        """Probe every known solver plugin."""
        for solver_type in SolverType:
            name = solver_type.value
            try:
                solver = SolverFactory(name)
                available = bool(solver.available(exception_flag=False))
            except Exception as e:
                logger.debug(f"Solver {name} detection failed: {e}")
                available = False
            self._solver_info[name] = SolverInfo(name=name, available=available)

    def get_available_solvers(self) -> List[str]:
        """Names of detected solvers, in preference order."""
        return [
            solver_type.value for solver_type in self.SOLVER_PREFERENCE
            if self._solver_info[solver_type.value].available
        ]

    def get_solver_info(self, solver_name: str) -> Optional[SolverInfo]:
        """Detection info for a solver, or None if unknown."""
        return self._solver_info.get(solver_name)

    def get_best_available_solver(self, test_if_needed: bool = False) -> str:
        """
        Pick the most preferred available solver.

        Args:
            test_if_needed: Smoke-test candidates and skip ones that fail

        Raises:
            RuntimeError: If no solver is available
        """
        for name in self.get_available_solvers():
            if not test_if_needed:
                return name
            info = self._solver_info[name]
            if not info.tested:
                self.test_solver(name)
            if info.works:
                return name

        raise RuntimeError(
            "No optimization solver available. Install HiGHS with "
            "'pip install highspy' or make CBC/GLPK available on PATH."
        )

    def create_solver(self, solver_name: Optional[str] = None, options: Optional[Dict[str, Any]] = None):
        """
        Create a solver instance with options applied.

        Args:
            solver_name: Solver to create (None = best available)
            options: Solver options

        Raises:
            RuntimeError: If the solver is unknown or unavailable
        """
        name = solver_name or self.get_best_available_solver()
        info = self._solver_info.get(name)
        if info is None:
            raise RuntimeError(
                f"Unknown solver '{name}'. Known solvers: {', '.join(self._solver_info)}"
            )
        if not info.available:
            raise RuntimeError(f"Solver '{name}' is not available on this system")

        solver = SolverFactory(name)
        for key, val in (options or {}).items():
            solver.options[key] = val
        return solver

    def test_solver(self, solver_name: str) -> bool:
        """Solve a one-variable model to confirm the solver actually runs."""
        info = self._solver_info.get(solver_name)
        if info is None or not info.available:
            return False

        model = ConcreteModel()
        model.x = Var(within=NonNegativeReals)
        model.con = Constraint(expr=model.x >= 1)
        model.obj = Objective(expr=model.x, sense=minimize)

        try:
            results = SolverFactory(solver_name).solve(model)
            works = (
                results.solver.status == SolverStatus.ok
                and abs(value(model.x) - 1.0) < 1e-6
            )
        except Exception as e:
            logger.warning(f"Solver {solver_name} smoke test failed: {e}")
            works = False

        info.tested = True
        info.works = works
        return works


_global_config: Optional[SolverConfig] = None


def get_global_config() -> SolverConfig:
    """Shared SolverConfig (detection runs once per process)."""
    global _global_config
    if _global_config is None:
        _global_config = SolverConfig()
    return _global_config


def get_solver(solver_name: Optional[str] = None, options: Optional[Dict[str, Any]] = None):
    """Create a solver using the shared configuration."""
    return get_global_config().create_solver(solver_name, options)
