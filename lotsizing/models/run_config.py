"""Run configuration and loader policy models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_HOP_HORIZON, DEFAULT_RESULTS_PATH, DEFAULT_TIME_LIMIT_SECONDS


class TrigeiroFormatPolicy(BaseModel):
    """
    How the benchmark file format is mapped onto an instance.

    The format carries no production cost and its production time column is
    conventionally normalized to a unit value. Both conventions are explicit
    here instead of being hidden in the reader.

    Attributes:
        override_unit_production_time: Replace the file's production time
            with ``unit_production_time`` (default: True)
        unit_production_time: Production time used when overriding
        unit_production_cost: Production cost applied to every item and period
    """
    override_unit_production_time: bool = Field(
        default=True,
        description="Ignore the file's production time column",
    )
    unit_production_time: float = Field(
        default=1.0,
        gt=0,
        description="Production time used when overriding the file value",
    )
    unit_production_cost: float = Field(
        default=0.0,
        ge=0,
        description="Production cost per unit (not present in the file)",
    )

    model_config = ConfigDict(frozen=True)


class RunConfig(BaseModel):
    """
    Options for a single load -> formulate -> solve -> verify run.

    Attributes:
        time_limit_seconds: Wall-clock budget passed to the solver as a hint
        hop_horizon: Hop limit applied to the loaded instance
        solver_name: Solver to use (None = best available)
        mip_gap: Relative MIP gap (None = solver default)
        tee: Stream solver output
        allow_initial_inventory: Allow penalized starting inventory as slack
        results_path: File the run record is appended to (None = no record)
        excel_path: Optional workbook export of the plan
    """
    time_limit_seconds: Optional[float] = Field(default=DEFAULT_TIME_LIMIT_SECONDS, gt=0)
    hop_horizon: int = Field(default=DEFAULT_HOP_HORIZON)
    solver_name: Optional[str] = Field(default=None)
    mip_gap: Optional[float] = Field(default=None, ge=0)
    tee: bool = Field(default=False)
    allow_initial_inventory: bool = Field(default=True)
    results_path: Optional[str] = Field(default=DEFAULT_RESULTS_PATH)
    excel_path: Optional[str] = Field(default=None)
