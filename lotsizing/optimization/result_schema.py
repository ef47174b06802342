"""Pydantic schemas for lot-sizing solutions.

The solver adapter hands its assignment to the rest of the pipeline only as a
validated LotSizingSolution, so verification and reporting never touch Pyomo
objects. Values are stored exactly as the solver returned them (binaries may
read 0.9999999, continuous values may be -1e-12); the activity thresholds in
``lotsizing.constants`` decide what counts as "on".
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import INVENTORY_ACTIVE_THRESHOLD, SETUP_ACTIVE_THRESHOLD


class LotSizingSolution(BaseModel):
    """Per-variable values of a solved CLSP model.

    ``inventory`` has ``period_count - 1`` entries per item: there is no
    inventory variable for the last period, so terminal inventory is zero.
    """
    model_type: Literal["clsp"] = Field(default="clsp", description="Model identifier")
    item_count: int = Field(..., gt=0)
    period_count: int = Field(..., gt=0)
    setup: List[List[float]] = Field(..., description="Setup values [item][period]")
    produce: List[List[float]] = Field(..., description="Production [item][period]")
    inventory: List[List[float]] = Field(..., description="Ending inventory [item][period < T-1]")
    initial_inventory: List[float] = Field(..., description="Starting inventory per item")
    objective_value: Optional[float] = Field(None, description="Objective reported by the solver")

    model_config = ConfigDict(extra="allow")

    @model_validator(mode='after')
    def validate_dimensions(self):
        """Arrays must match the instance dimensions."""
        for field_name, width in (
            ('setup', self.period_count),
            ('produce', self.period_count),
            ('inventory', self.period_count - 1),
        ):
            rows = getattr(self, field_name)
            if len(rows) != self.item_count:
                raise ValueError(f"{field_name} has {len(rows)} rows, expected {self.item_count}")
            for j, row in enumerate(rows):
                if len(row) != width:
                    raise ValueError(f"{field_name}[{j}] has {len(row)} values, expected {width}")

        if len(self.initial_inventory) != self.item_count:
            raise ValueError(
                f"initial_inventory has {len(self.initial_inventory)} values, expected {self.item_count}"
            )
        return self

    def is_setup(self, item: int, period: int) -> bool:
        """Whether the setup of item in period is active."""
        return self.setup[item][period] > SETUP_ACTIVE_THRESHOLD

    def ending_inventory(self, item: int, period: int) -> float:
        """Ending inventory, zero for the last period."""
        if period >= self.period_count - 1:
            return 0.0
        return self.inventory[item][period]

    def starting_inventory(self, item: int, period: int) -> float:
        """Inventory entering the period (initial inventory for period 0)."""
        if period == 0:
            return self.initial_inventory[item]
        return self.inventory[item][period - 1]

    def is_holding(self, item: int, period: int) -> bool:
        """Whether the ending inventory counts for holding cost."""
        return self.ending_inventory(item, period) > INVENTORY_ACTIVE_THRESHOLD

    def total_production(self, item: int) -> float:
        """Total production of an item."""
        return sum(self.produce[item])

    def setup_count(self) -> int:
        """Number of active setups in the plan."""
        return sum(
            1 for j in range(self.item_count) for t in range(self.period_count)
            if self.is_setup(j, t)
        )


class CapacityUsage(BaseModel):
    """Recomputed capacity use of one period."""
    period: int = Field(..., ge=0)
    used: float = Field(..., description="Setup plus production time of active setups")
    capacity: float = Field(..., ge=0)
    violated: bool = Field(default=False, description="Use exceeds capacity beyond tolerance")

    @property
    def utilization(self) -> Optional[float]:
        """Used / capacity (None when capacity is zero)."""
        if self.capacity <= 0:
            return None
        return self.used / self.capacity

    @property
    def slack(self) -> float:
        """Unused capacity (negative when overloaded)."""
        return self.capacity - self.used


class PlanCostBreakdown(BaseModel):
    """Recomputed objective components.

    ``total_cost`` is the objective of the assignment with every unit of
    inventory charged; it is what the solver's objective is compared with.
    ``verified_cost`` is the thresholded setup plus holding figure shown in
    reports, where inventory at or below the activity threshold is not charged.
    """
    setup_cost: float = Field(..., ge=0, description="Setup cost of active setups")
    holding_cost: float = Field(..., description="Holding cost of all carried inventory")
    production_cost: float = Field(default=0.0, description="Unit production cost")
    initial_inventory_penalty: float = Field(default=0.0, description="Penalty on starting inventory")
    total_cost: float = Field(..., description="Sum of all components")
    verified_cost: float = Field(..., ge=0, description="Setup plus holding cost of active inventory")

    @model_validator(mode='after')
    def validate_total_cost(self):
        """total_cost equals the sum of components."""
        component_sum = (
            self.setup_cost
            + self.holding_cost
            + self.production_cost
            + self.initial_inventory_penalty
        )
        if abs(self.total_cost - component_sum) > 1e-6 * max(1.0, abs(component_sum)):
            raise ValueError(
                f"total_cost ({self.total_cost:.4f}) does not match sum of components ({component_sum:.4f})"
            )
        return self
