"""Capacitated lot-sizing (CLSP) formulation, solve and verification."""

__version__ = "1.0.0"

from .exceptions import DataError, LotSizingError, ModelError, SolverFailure, VerificationMismatch
from .models import CLSPInstance, RunConfig, TrigeiroFormatPolicy
from .optimization import CLSPModel, SolveStatus, formulate
from .parsers import TrigeiroParser, parse_trigeiro_text
from .pipeline import LotSizingPipeline, PlanRun
from .validation import SolutionVerifier, VerificationReport

__all__ = [
    'CLSPInstance',
    'CLSPModel',
    'DataError',
    'LotSizingError',
    'LotSizingPipeline',
    'ModelError',
    'PlanRun',
    'RunConfig',
    'SolutionVerifier',
    'SolveStatus',
    'SolverFailure',
    'TrigeiroFormatPolicy',
    'TrigeiroParser',
    'VerificationMismatch',
    'VerificationReport',
    'formulate',
    'parse_trigeiro_text',
]
