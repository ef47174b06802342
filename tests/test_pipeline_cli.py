"""Tests for the pipeline and the command line interface.

Solvers are mocked; see tests/test_clsp_solve_integration.py for runs
against HiGHS.
"""

from unittest.mock import patch

import pytest
from pyomo.common.errors import ApplicationError
from pyomo.opt import SolverStatus, TerminationCondition

from lotsizing import cli
from lotsizing.exceptions import DataError, SolverFailure, VerificationMismatch
from lotsizing.models import RunConfig
from lotsizing.optimization import SolveStatus
from lotsizing.persistence import ResultsLog
from lotsizing.pipeline import LotSizingPipeline
from tests.conftest import make_instance
from tests.fixtures.solver_mocks import create_crashing_solver_config, create_mock_solver_config


def _infeasible_config():
    return create_mock_solver_config(
        termination_condition=TerminationCondition.infeasible,
        solver_status=SolverStatus.warning,
    )


class TestLotSizingPipeline:
    """Tests for LotSizingPipeline."""

    def test_run_verifies_plan(self, two_by_three_instance, mock_solver_config):
        """Test a solved and verified run."""
        pipeline = LotSizingPipeline(RunConfig(results_path=None), solver_config=mock_solver_config)

        run = pipeline.run(two_by_three_instance)

        assert run.status == SolveStatus.OPTIMAL
        assert run.report.is_valid
        assert run.verified_cost == pytest.approx(300.0)
        assert run.hop_horizon == 3
        assert [issue.id for issue in run.preflight_issues] == ["HOP_002"]
        assert run.elapsed_seconds >= 0

    def test_run_passes_solver_options(self, two_by_three_instance, mock_solver_config):
        """Test that the run configuration reaches the solver."""
        config = RunConfig(solver_name='cbc', time_limit_seconds=30, mip_gap=0.05, results_path=None)

        LotSizingPipeline(config, solver_config=mock_solver_config).run(two_by_three_instance)

        solver = mock_solver_config.created[-1]
        assert solver.options['seconds'] == 30
        assert solver.options['ratio'] == 0.05

    def test_infeasible_raises_solver_failure(self, two_by_three_instance):
        """Test that no assignment means SolverFailure."""
        pipeline = LotSizingPipeline(solver_config=_infeasible_config())

        with pytest.raises(SolverFailure) as exc_info:
            pipeline.run(two_by_three_instance)

        assert exc_info.value.infeasible is True
        assert exc_info.value.exit_code == 5
        assert exc_info.value.context['status'] == SolveStatus.INFEASIBLE.value

    def test_solver_crash_raises_solver_failure(self, two_by_three_instance):
        """Test that a crashing solver surfaces as a solve-stage failure."""
        config = create_crashing_solver_config(ApplicationError("Solver (cbc) did not exit normally"))
        pipeline = LotSizingPipeline(solver_config=config)

        with pytest.raises(SolverFailure) as exc_info:
            pipeline.run(two_by_three_instance)

        assert exc_info.value.infeasible is False
        assert exc_info.value.context['status'] == SolveStatus.SOLVER_ERROR.value
        assert "did not exit normally" in exc_info.value.message

    def test_objective_mismatch_strict(self, two_by_three_instance):
        """Test that a wrong reported objective fails a strict run."""
        config = create_mock_solver_config(instance=two_by_three_instance, reported_objective=250.0)
        pipeline = LotSizingPipeline(solver_config=config)

        with pytest.raises(VerificationMismatch) as exc_info:
            pipeline.run(two_by_three_instance)

        assert not exc_info.value.report.is_valid

    def test_objective_mismatch_not_strict(self, two_by_three_instance):
        """Test that a non-strict run returns the failed report."""
        config = create_mock_solver_config(instance=two_by_three_instance, reported_objective=250.0)
        pipeline = LotSizingPipeline(solver_config=config)

        run = pipeline.run(two_by_three_instance, strict=False)

        assert not run.report.is_valid
        assert run.report.cost_discrepancy == pytest.approx(50.0)

    def test_run_file(self, instance_file, two_by_three_instance):
        """Test loading and running a Trigeiro file."""
        config = create_mock_solver_config(instance=two_by_three_instance)
        pipeline = LotSizingPipeline(RunConfig(hop_horizon=2), solver_config=config)

        run = pipeline.run_file(instance_file)

        assert run.instance.name == "two_by_three"
        assert run.hop_horizon == 2
        assert run.report.is_valid

    def test_load_missing_file(self, tmp_path):
        """Test that a missing file is a DataError."""
        with pytest.raises(DataError):
            LotSizingPipeline().load(tmp_path / "missing.dat")

    def test_write_outputs(self, tmp_path, two_by_three_instance, mock_solver_config):
        """Test the run record and the workbook."""
        results = tmp_path / "result.csv"
        excel = tmp_path / "plan.xlsx"
        config = RunConfig(results_path=str(results), excel_path=str(excel))
        pipeline = LotSizingPipeline(config, solver_config=mock_solver_config)

        run = pipeline.run(two_by_three_instance)
        pipeline.write_outputs(run)

        history = ResultsLog(results).load()
        assert list(history['instance']) == ["two_by_three"]
        assert history.iloc[0]['status'] == "optimal"
        assert history.iloc[0]['verified_cost'] == pytest.approx(300.0)
        assert excel.exists()


class TestCli:
    """Tests for clsp-solve."""

    def _patched(self, solver_config):
        return patch(
            'lotsizing.cli.LotSizingPipeline',
            side_effect=lambda config: LotSizingPipeline(config, solver_config=solver_config),
        )

    def test_success(self, instance_file, capsys):
        """Test a verified run prints the plan and exits 0."""
        with self._patched(create_mock_solver_config(instance=make_instance())):
            code = cli.main(["-f", str(instance_file), "-i", "3", "--no-results"])

        out = capsys.readouterr().out
        assert code == 0
        assert "N. ITEMS    =  2" in out
        assert "Item 1" in out
        assert "1 :: 30/100" in out
        assert "Plan verified" in out

    def test_writes_results_and_excel(self, instance_file, tmp_path):
        """Test --results and --excel outputs."""
        results = tmp_path / "result.csv"
        excel = tmp_path / "plan.xlsx"

        with self._patched(create_mock_solver_config(instance=make_instance())):
            code = cli.main([
                "-f", str(instance_file), "-i", "2",
                "--results", str(results), "--excel", str(excel),
            ])

        assert code == 0
        assert len(ResultsLog(results).load()) == 1
        assert excel.exists()

    def test_missing_file_exit_code(self, tmp_path, capsys):
        """Test that a load failure exits 3."""
        code = cli.main(["-f", str(tmp_path / "missing.dat"), "--no-results"])

        assert code == 3
        assert "load failed" in capsys.readouterr().err

    def test_hop_out_of_range_exit_code(self, instance_file):
        """Test that the default hop of 6 on a 3-period file exits 4."""
        with self._patched(create_mock_solver_config(instance=make_instance())):
            code = cli.main(["-f", str(instance_file), "--no-results"])

        assert code == 4

    def test_infeasible_exit_code(self, instance_file, capsys):
        """Test that a solver failure exits 5."""
        with self._patched(_infeasible_config()):
            code = cli.main(["-f", str(instance_file), "-i", "3", "--no-results"])

        assert code == 5
        assert "solve failed" in capsys.readouterr().err

    def test_solver_crash_exit_code(self, instance_file, capsys):
        """Test that a crashing solver exits 5 with a solve-stage message."""
        config = create_crashing_solver_config(ApplicationError("Solver (cbc) did not exit normally"))

        with self._patched(config):
            code = cli.main(["-f", str(instance_file), "-i", "3", "--no-results"])

        assert code == 5
        assert "solve failed" in capsys.readouterr().err

    def test_verification_mismatch_writes_outputs_then_exits(self, instance_file, tmp_path):
        """Test that a mismatch still records the run before exiting 6."""
        results = tmp_path / "result.csv"
        solver_config = create_mock_solver_config(instance=make_instance(), reported_objective=250.0)

        with self._patched(solver_config):
            code = cli.main(["-f", str(instance_file), "-i", "3", "--results", str(results)])

        assert code == 6
        assert len(ResultsLog(results).load()) == 1

    def test_file_is_required(self):
        """Test that argparse rejects a missing -f."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 2

    def test_invalid_time_limit(self, instance_file):
        """Test that a non-positive time limit is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["-f", str(instance_file), "-t", "0"])

        assert exc_info.value.code == 2
