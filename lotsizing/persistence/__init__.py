"""Run record persistence."""

from .results_log import ResultsLog, RunRecord

__all__ = ['ResultsLog', 'RunRecord']
