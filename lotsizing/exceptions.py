"""Error taxonomy for the lot-sizing pipeline.

Every error names the pipeline stage that failed so the command line can
report it before terminating. None of these are recovered locally.
"""

from typing import Any, Dict, Optional


class LotSizingError(Exception):
    """Base error with context, carrying the failed stage and an exit code."""

    stage = "run"
    exit_code = 1

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with context."""
        msg = self.message
        if self.context:
            msg += "\n\nContext:"
            for key, value in self.context.items():
                msg += f"\n  {key}: {value}"
        return msg


class DataError(LotSizingError):
    """Malformed or inconsistent instance input."""

    stage = "load"
    exit_code = 3


class ModelError(LotSizingError):
    """Formulation-time inconsistency (e.g. hop horizon out of range)."""

    stage = "formulate"
    exit_code = 4


class SolverFailure(LotSizingError):
    """The external solver did not return a usable solution."""

    stage = "solve"
    exit_code = 5

    def __init__(
        self,
        message: str,
        infeasible: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.infeasible = infeasible
        super().__init__(message, context)


class VerificationMismatch(LotSizingError):
    """Recomputed capacity or cost disagrees with the solver's solution."""

    stage = "verify"
    exit_code = 6

    def __init__(self, message: str, report=None, context: Optional[Dict[str, Any]] = None):
        self.report = report
        super().__init__(message, context)
