"""Instance pre-flight checks and solution verification."""

from .instance_validator import InstanceValidator, ValidationIssue, ValidationSeverity
from .solution_verifier import SolutionVerifier, VerificationIssue, VerificationReport

__all__ = [
    'InstanceValidator',
    'ValidationIssue',
    'ValidationSeverity',
    'SolutionVerifier',
    'VerificationIssue',
    'VerificationReport',
]
