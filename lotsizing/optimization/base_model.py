"""Base class for optimization models.

This module provides an abstract base class for Pyomo models, providing common
functionality for model building, solving, and result extraction. It is the
boundary to the external MIP solver: whatever the solver does, ``solve()``
returns an OptimizationResult whose ``status`` says explicitly whether an
assignment is available (OPTIMAL / FEASIBLE) or why not (INFEASIBLE /
SOLVER_ERROR). Solver exceptions are translated at this boundary.

IMPORTANT: Models must return a validated LotSizingSolution from
extract_solution(). Schema violations are programming errors and are raised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING
import logging
import math
import time

from pydantic import ValidationError
from pyomo.common.errors import ApplicationError
from pyomo.environ import ConcreteModel, Var, value
from pyomo.opt import SolverStatus, TerminationCondition

from .solver_config import SolverConfig, SolverType

if TYPE_CHECKING:
    from .result_schema import LotSizingSolution

logger = logging.getLogger(__name__)

# Raised by solver plugins when the solver process crashes or cannot be run
SOLVER_EXCEPTIONS = (ApplicationError, RuntimeError, OSError)


class SolveStatus(str, Enum):
    """Outcome of a solve as seen by the pipeline."""
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"          # incumbent without optimality proof (e.g. time limit)
    INFEASIBLE = "infeasible"
    SOLVER_ERROR = "solver_error"


@dataclass
class OptimizationResult:
    """
    Results from optimization model solve.

    Attributes:
        status: Explicit outcome (OPTIMAL, FEASIBLE, INFEASIBLE, SOLVER_ERROR)
        objective_value: Objective of the returned assignment
        solver_status: Pyomo solver status (legacy interface only)
        termination_condition: Pyomo termination condition
        solve_time_seconds: Time taken to solve (seconds)
        solver_name: Name of solver used
        gap: MIP gap (if available)
        num_variables: Number of decision variables
        num_constraints: Number of constraints
        num_integer_vars: Number of integer/binary variables
        infeasibility_message: Why no assignment is available (if applicable)
        metadata: Additional result metadata
    """
    status: SolveStatus
    objective_value: Optional[float] = None
    solver_status: Optional[SolverStatus] = None
    termination_condition: Optional[TerminationCondition] = None
    solve_time_seconds: Optional[float] = None
    solver_name: Optional[str] = None
    gap: Optional[float] = None
    num_variables: int = 0
    num_constraints: int = 0
    num_integer_vars: int = 0
    infeasibility_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Whether an assignment is available."""
        return self.status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)

    def is_optimal(self) -> bool:
        """Check if solution is proven optimal."""
        return self.status == SolveStatus.OPTIMAL

    def is_feasible(self) -> bool:
        """Check if solution is feasible (optimal or time-limited incumbent)."""
        return self.success

    def is_infeasible(self) -> bool:
        """Check if model was proven infeasible."""
        return self.status == SolveStatus.INFEASIBLE

    def __str__(self) -> str:
        """String representation."""
        result = f"OptimizationResult: {self.status.value.upper()}"
        if self.objective_value is not None:
            result += f", objective = {self.objective_value:,.2f}"
        if self.solve_time_seconds is not None:
            result += f", time = {self.solve_time_seconds:.2f}s"
        return result


class BaseOptimizationModel(ABC):
    """
    Abstract base class for optimization models.

    Subclasses implement:
    - build_model(): Construct the Pyomo model
    - extract_solution(): Extract solution from solved model

    This base class provides:
    - Solver configuration and management
    - Model building and solving workflow
    - Result extraction and validation

    Example:
        model = CLSPModel(instance)
        result = model.solve(time_limit_seconds=60)
        if result.success:
            solution = model.get_solution()
    """

    def __init__(self, solver_config: Optional[SolverConfig] = None):
        """
        Initialize optimization model.

        Args:
            solver_config: SolverConfig instance. If None, creates default config.
        """
        self.solver_config = solver_config or SolverConfig()
        self.model: Optional[ConcreteModel] = None
        self.result: Optional[OptimizationResult] = None
        self.solution: Optional['LotSizingSolution'] = None
        self._build_time: Optional[float] = None

    @abstractmethod
    def build_model(self) -> ConcreteModel:
        """Build and return the Pyomo optimization model."""
        raise NotImplementedError("Subclass must implement build_model()")

    @abstractmethod
    def extract_solution(self, model: ConcreteModel) -> 'LotSizingSolution':
        """
        Extract solution values from the solved model.

        Raises:
            ValidationError: If solution data doesn't conform to schema
        """
        raise NotImplementedError("Subclass must implement extract_solution()")

    def solve(
        self,
        solver_name: Optional[str] = None,
        solver_options: Optional[Dict[str, Any]] = None,
        tee: bool = False,
        time_limit_seconds: Optional[float] = None,
        mip_gap: Optional[float] = None,
    ) -> OptimizationResult:
        """
        Build and solve the optimization model.

        Args:
            solver_name: Name of solver to use (None = best available)
            solver_options: Additional solver options
            tee: If True, print solver output
            time_limit_seconds: Maximum solve time in seconds (passed as a hint)
            mip_gap: MIP gap tolerance (e.g., 0.01 for 1% gap)

        Returns:
            OptimizationResult with explicit status and objective value
        """
        build_start = time.time()
        self.model = self.build_model()
        self._build_time = time.time() - build_start

        stats = self.get_model_statistics()
        logger.info(
            f"Model built in {self._build_time:.2f}s: {stats['num_variables']} variables "
            f"({stats['num_integer_vars']} integer), {stats['num_constraints']} constraints"
        )

        if solver_name is None:
            try:
                solver_name = self.solver_config.get_best_available_solver()
            except RuntimeError as e:
                return self._error_result(str(e))

        if solver_name == SolverType.APPSI_HIGHS.value:
            self.result = self._solve_with_appsi_highs(
                time_limit_seconds=time_limit_seconds,
                mip_gap=mip_gap,
                tee=tee,
            )
            return self.result

        options = dict(solver_options or {})
        options.update(self._legacy_solver_options(solver_name, time_limit_seconds, mip_gap))

        try:
            solver = self.solver_config.create_solver(solver_name, options)
        except RuntimeError as e:
            return self._error_result(str(e), solver_name)

        solve_start = time.time()
        try:
            results = solver.solve(
                self.model,
                tee=tee,
                symbolic_solver_labels=False,
                load_solutions=False,
            )
        except SOLVER_EXCEPTIONS as e:
            return self._error_result(f"Solver {solver_name} raised during solve: {e}", solver_name)
        solve_time = time.time() - solve_start

        result = self._process_results(results, solver_name, solve_time)
        self.result = result

        if result.success:
            self.model.solutions.load_from(results)
            if result.objective_value is None and hasattr(self.model, 'obj'):
                result.objective_value = value(self.model.obj)
            self._extract(result)

        return result

    def _legacy_solver_options(
        self,
        solver_name: str,
        time_limit_seconds: Optional[float],
        mip_gap: Optional[float],
    ) -> Dict[str, Any]:
        """Translate time limit and gap into solver-specific option names."""
        names = {
            'cbc': ('seconds', 'ratio'),
            'gurobi': ('TimeLimit', 'MIPGap'),
            'cplex': ('timelimit', 'mip_tolerances_mipgap'),
            'glpk': ('tmlim', 'mipgap'),
            'highs': ('time_limit', 'mip_rel_gap'),
        }
        time_key, gap_key = names.get(solver_name, ('time_limit', 'mip_gap'))

        options: Dict[str, Any] = {}
        if solver_name == SolverType.HIGHS.value:
            options.update(SolverConfig.HIGHS_MIP_OPTIONS)
        if time_limit_seconds is not None:
            # glpk only accepts whole seconds
            options[time_key] = int(time_limit_seconds) if solver_name == 'glpk' else time_limit_seconds
        if mip_gap is not None:
            options[gap_key] = mip_gap
        return options

    def _solve_with_appsi_highs(
        self,
        time_limit_seconds: Optional[float] = None,
        mip_gap: Optional[float] = None,
        tee: bool = False,
    ) -> OptimizationResult:
        """
        Solve model using APPSI HiGHS solver (persistent Pyomo interface).

        Solutions are loaded manually so that an infeasible model reports a
        status instead of raising.
        """
        from pyomo.contrib.appsi.solvers import Highs
        from pyomo.contrib.appsi.base import TerminationCondition as AppsiTC

        solver = Highs()
        if not solver.available():
            return self._error_result(
                "APPSI HiGHS is not available (install highspy)", SolverType.APPSI_HIGHS.value
            )

        solver.config.load_solution = False
        solver.config.stream_solver = tee
        if time_limit_seconds:
            solver.config.time_limit = time_limit_seconds
        if mip_gap is not None:
            solver.config.mip_gap = mip_gap
        for key, val in SolverConfig.HIGHS_MIP_OPTIONS.items():
            solver.highs_options[key] = val

        solve_start = time.time()
        try:
            results = solver.solve(self.model)
        except SOLVER_EXCEPTIONS as e:
            return self._error_result(f"HiGHS error: {e}", SolverType.APPSI_HIGHS.value)
        solve_time = time.time() - solve_start

        appsi_tc = results.termination_condition
        best_objective = results.best_feasible_objective
        has_incumbent = best_objective is not None and math.isfinite(best_objective)

        infeasibility_message = None
        if appsi_tc == AppsiTC.optimal:
            legacy_tc, status = TerminationCondition.optimal, SolveStatus.OPTIMAL
        elif appsi_tc in (AppsiTC.infeasible, AppsiTC.infeasibleOrUnbounded):
            legacy_tc, status = TerminationCondition.infeasible, SolveStatus.INFEASIBLE
            infeasibility_message = "Model is infeasible. Constraints cannot all be satisfied simultaneously."
        elif appsi_tc in (AppsiTC.maxTimeLimit, AppsiTC.maxIterations, AppsiTC.interrupted):
            legacy_tc = TerminationCondition.maxTimeLimit
            status = SolveStatus.FEASIBLE if has_incumbent else SolveStatus.SOLVER_ERROR
            if not has_incumbent:
                infeasibility_message = f"Solver stopped ({appsi_tc}) without a feasible solution"
        elif appsi_tc == AppsiTC.unbounded:
            legacy_tc, status = TerminationCondition.unbounded, SolveStatus.SOLVER_ERROR
            infeasibility_message = "Model is unbounded"
        else:
            legacy_tc, status = TerminationCondition.unknown, SolveStatus.SOLVER_ERROR
            infeasibility_message = f"Solver failed - Termination: {appsi_tc}"

        gap = None
        bound = results.best_objective_bound
        if has_incumbent and bound is not None and math.isfinite(bound) and abs(best_objective) > 1e-10:
            gap = abs((best_objective - bound) / best_objective)

        result = OptimizationResult(
            status=status,
            objective_value=best_objective if has_incumbent else None,
            termination_condition=legacy_tc,
            solve_time_seconds=solve_time,
            solver_name=SolverType.APPSI_HIGHS.value,
            gap=gap,
            infeasibility_message=infeasibility_message,
            **self._size_fields(),
        )

        if result.success:
            results.solution_loader.load_vars()
            self._extract(result)

        return result

    def _process_results(
        self,
        results,
        solver_name: Optional[str],
        solve_time: float
    ) -> OptimizationResult:
        """
        Process legacy solver results into OptimizationResult.

        Args:
            results: Pyomo solver results
            solver_name: Name of solver used
            solve_time: Time taken to solve

        Returns:
            OptimizationResult
        """
        solver_status = results.solver.status if hasattr(results, 'solver') else None
        termination_condition = results.solver.termination_condition if hasattr(results, 'solver') else None

        if termination_condition in (TerminationCondition.infeasible, TerminationCondition.infeasibleOrUnbounded):
            status = SolveStatus.INFEASIBLE
        elif solver_status == SolverStatus.ok and termination_condition == TerminationCondition.optimal:
            status = SolveStatus.OPTIMAL
        elif solver_status in (SolverStatus.ok, SolverStatus.warning, SolverStatus.aborted) and termination_condition in (
            TerminationCondition.feasible,
            TerminationCondition.maxTimeLimit,
        ) and len(getattr(results, 'solution', [])) > 0:
            status = SolveStatus.FEASIBLE
        else:
            status = SolveStatus.SOLVER_ERROR

        # For minimization, upper_bound is the objective value
        objective_value = None
        ub = getattr(results.problem, 'upper_bound', None)
        if isinstance(ub, (int, float)) and math.isfinite(ub):
            objective_value = float(ub)

        gap = None
        lb = getattr(results.problem, 'lower_bound', None)
        if (objective_value is not None and isinstance(lb, (int, float))
                and math.isfinite(lb) and abs(objective_value) > 1e-10):
            gap = abs((objective_value - lb) / objective_value)

        infeasibility_message = None
        if status == SolveStatus.INFEASIBLE:
            infeasibility_message = (
                "Model is infeasible. Constraints cannot all be satisfied simultaneously."
            )
        elif status == SolveStatus.SOLVER_ERROR:
            error_details = f"Status: {solver_status}, Termination: {termination_condition}"
            message = getattr(results.solver, 'message', None)
            if message:
                error_details += f", Message: {message}"
            infeasibility_message = f"Solver failed - {error_details}"

        return OptimizationResult(
            status=status,
            objective_value=objective_value,
            solver_status=solver_status,
            termination_condition=termination_condition,
            solve_time_seconds=solve_time,
            solver_name=solver_name,
            gap=gap,
            infeasibility_message=infeasibility_message,
            **self._size_fields(),
        )

    def _extract(self, result: OptimizationResult) -> None:
        """Extract the solution after values were loaded into the model."""
        try:
            self.solution = self.extract_solution(self.model)
        except ValidationError as ve:
            # extract_solution() produced data that violates the schema: a bug
            logger.error(f"CRITICAL: Model violates LotSizingSolution schema: {ve}")
            raise

        if result.objective_value is None:
            result.objective_value = self.solution.objective_value
        result.metadata.update(self.solution.model_dump(mode='json'))

    def _error_result(self, message: str, solver_name: Optional[str] = None) -> OptimizationResult:
        """Result for a solve that produced no usable solver output."""
        logger.error(message)
        self.result = OptimizationResult(
            status=SolveStatus.SOLVER_ERROR,
            solver_name=solver_name,
            infeasibility_message=message,
            **self._size_fields(),
        )
        return self.result

    def _size_fields(self) -> Dict[str, int]:
        stats = self.get_model_statistics()
        return {
            'num_variables': stats['num_variables'],
            'num_constraints': stats['num_constraints'],
            'num_integer_vars': stats['num_integer_vars'],
        }

    def get_solution(self) -> Optional['LotSizingSolution']:
        """
        Get extracted solution from last solve.

        Returns:
            LotSizingSolution, or None if not solved or no assignment
        """
        return self.solution

    def get_model_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the model.

        Returns:
            Dictionary with model statistics
        """
        if self.model is None:
            return {
                'built': False,
                'num_variables': 0,
                'num_constraints': 0,
                'num_integer_vars': 0,
            }

        num_integer = sum(
            1 for var in self.model.component_data_objects(Var, active=True)
            if var.is_integer() or var.is_binary()
        )

        return {
            'built': True,
            'build_time_seconds': self._build_time,
            'num_variables': self.model.nvariables(),
            'num_constraints': self.model.nconstraints(),
            'num_integer_vars': num_integer,
        }

    def get_build_time(self) -> Optional[float]:
        """Model build time in seconds, or None if model not built."""
        return self._build_time

    def reset(self):
        """Clear the built model, results, and solution."""
        self.model = None
        self.result = None
        self.solution = None
        self._build_time = None
