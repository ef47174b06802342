"""Load -> derive -> formulate -> solve -> verify orchestration.

The pipeline is single-threaded and synchronous. Every stage either hands a
validated value to the next one or raises the error type of its stage
(DataError, ModelError, SolverFailure, VerificationMismatch); nothing is
recovered locally.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging
import time

from .constants import BALANCE_TOLERANCE
from .exceptions import SolverFailure
from .exporters.excel_export import export_plan_workbook
from .models.instance import CLSPInstance
from .models.run_config import RunConfig, TrigeiroFormatPolicy
from .optimization.base_model import OptimizationResult, SolveStatus
from .optimization.clsp_model import CLSPModel
from .optimization.result_schema import LotSizingSolution
from .optimization.solver_config import SolverConfig
from .parsers.trigeiro_parser import TrigeiroParser
from .persistence.results_log import ResultsLog, RunRecord
from .validation.instance_validator import InstanceValidator, ValidationIssue
from .validation.solution_verifier import SolutionVerifier, VerificationReport

logger = logging.getLogger(__name__)


@dataclass
class PlanRun:
    """
    Outcome of one pipeline run.

    Attributes:
        instance: Instance that was solved
        hop_horizon: Hop limit the model was built with
        result: Solver outcome (OPTIMAL or FEASIBLE)
        solution: Extracted assignment
        report: Verification report
        elapsed_seconds: Wall-clock time from load (or formulation) to verification
        preflight_issues: Pre-flight instance issues
    """
    instance: CLSPInstance
    hop_horizon: int
    result: OptimizationResult
    solution: LotSizingSolution
    report: VerificationReport
    elapsed_seconds: float
    preflight_issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def verified_cost(self) -> float:
        """Recomputed setup plus holding cost."""
        return self.report.cost_breakdown.verified_cost

    @property
    def status(self) -> SolveStatus:
        return self.result.status

    def to_record(self) -> RunRecord:
        """Run log entry for this run."""
        return RunRecord(
            instance=self.instance.name,
            items=self.instance.item_count,
            periods=self.instance.period_count,
            hop_horizon=self.hop_horizon,
            objective_value=self.result.objective_value,
            verified_cost=self.verified_cost,
            elapsed_seconds=self.elapsed_seconds,
            status=self.result.status.value,
        )


class LotSizingPipeline:
    """
    Runs instances through formulation, solve and verification.

    Example:
        pipeline = LotSizingPipeline(RunConfig(time_limit_seconds=60))
        run = pipeline.run_file("data/G30.dat")
        print(run.result.objective_value, run.verified_cost)
    """

    def __init__(self, config: Optional[RunConfig] = None, solver_config: Optional[SolverConfig] = None):
        """
        Initialize pipeline.

        Args:
            config: Run options (default: RunConfig())
            solver_config: Solver configuration (default: detected on first solve)
        """
        self.config = config or RunConfig()
        self.solver_config = solver_config

    def load(self, file_path: Path | str, policy: Optional[TrigeiroFormatPolicy] = None) -> CLSPInstance:
        """
        Load an instance file with the configured hop horizon.

        Raises:
            DataError: If the file is missing or malformed
        """
        return TrigeiroParser(file_path, policy).parse(hop_horizon=self.config.hop_horizon)

    def run_file(
        self,
        file_path: Path | str,
        policy: Optional[TrigeiroFormatPolicy] = None,
        strict: bool = True,
    ) -> PlanRun:
        """Load an instance file and run it (elapsed time includes loading)."""
        start = time.time()
        instance = self.load(file_path, policy)
        return self.run(instance, strict=strict, start_time=start)

    def run(
        self,
        instance: CLSPInstance,
        strict: bool = True,
        start_time: Optional[float] = None,
    ) -> PlanRun:
        """
        Formulate, solve and verify an instance.

        Args:
            instance: Validated instance (its hop_horizon is used)
            strict: Raise VerificationMismatch when verification fails
            start_time: Reference for elapsed time (default: now)

        Returns:
            PlanRun

        Raises:
            DataError: If a unit production time is zero
            ModelError: If the hop horizon is outside [1, period_count]
            SolverFailure: If the solver returns no assignment
            VerificationMismatch: If strict and verification fails
        """
        start = start_time if start_time is not None else time.time()
        logger.info(f"Running {instance}")

        validator = InstanceValidator(instance)
        preflight = validator.validate_all()
        validator.log_issues()

        model = CLSPModel(
            instance,
            allow_initial_inventory=self.config.allow_initial_inventory,
            solver_config=self.solver_config,
        )
        result = model.solve(
            solver_name=self.config.solver_name,
            tee=self.config.tee,
            time_limit_seconds=self.config.time_limit_seconds,
            mip_gap=self.config.mip_gap,
        )
        logger.info(str(result))

        if not result.success:
            raise SolverFailure(
                result.infeasibility_message or f"Solver returned {result.status.value}",
                infeasible=result.is_infeasible(),
                context={
                    'instance': instance.name,
                    'status': result.status.value,
                    'solver': result.solver_name,
                },
            )
        if result.status == SolveStatus.FEASIBLE:
            logger.warning(
                f"Solver stopped without proving optimality; using incumbent "
                f"(gap: {result.gap if result.gap is not None else 'unknown'})"
            )

        solution = model.get_solution()
        report = SolutionVerifier(instance, model.hop_horizon).verify(solution, result.objective_value)
        elapsed = time.time() - start

        if report.initial_inventory_used > BALANCE_TOLERANCE:
            logger.warning(
                f"Plan uses {report.initial_inventory_used:g} units of penalized initial "
                f"inventory: capacity cannot cover demand on time"
            )

        if report.is_valid:
            logger.info("Verification passed")
        else:
            for issue in report.issues:
                logger.error(f"Verification [{issue.category}]: {issue.message}")

        run = PlanRun(
            instance=instance,
            hop_horizon=model.hop_horizon,
            result=result,
            solution=solution,
            report=report,
            elapsed_seconds=elapsed,
            preflight_issues=preflight,
        )

        if strict:
            report.raise_for_mismatch()
        return run

    def write_outputs(self, run: PlanRun) -> None:
        """Append the run record and write the optional workbook."""
        if self.config.results_path:
            ResultsLog(self.config.results_path).append(run.to_record())

        if self.config.excel_path:
            export_plan_workbook(
                run.instance,
                run.solution,
                run.report,
                self.config.excel_path,
                status=run.result.status.value,
                elapsed_seconds=run.elapsed_seconds,
            )
