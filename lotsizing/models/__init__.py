"""Data models for capacitated lot-sizing instances and runs."""

from .instance import CLSPInstance
from .run_config import RunConfig, TrigeiroFormatPolicy

__all__ = [
    "CLSPInstance",
    "RunConfig",
    "TrigeiroFormatPolicy",
]
