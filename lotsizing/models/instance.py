"""CLSP instance data model.

An instance holds the raw problem data of a capacitated lot-sizing problem
with setups: demand, cost coefficients and resource consumption for every
(item, period) pair plus the production time available in each period.

All per-item data are rectangular ``item_count x period_count`` tuples indexed
``[item][period]`` (both 0-based). The model is frozen: once built it is
passed explicitly through derivation, formulation and verification and never
mutated.
"""

import math
from typing import List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..constants import DEFAULT_HOP_HORIZON
from ..exceptions import DataError

Matrix = Tuple[Tuple[float, ...], ...]

#: Item x period fields that must be rectangular and non-negative
MATRIX_FIELDS = (
    'demand',
    'unit_production_cost',
    'setup_cost',
    'holding_cost',
    'unit_production_time',
    'setup_time',
)


def _check_value(field_name: str, value: float, location: str) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{field_name} {location} is not a finite number ({value})")
    if value < 0:
        raise ValueError(f"{field_name} {location} is negative ({value})")


class CLSPInstance(BaseModel):
    """
    Capacitated lot-sizing instance.

    Attributes:
        name: Instance label (file stem when loaded from disk)
        item_count: Number of items (P)
        period_count: Number of periods in the horizon (T)
        demand: Demand of item j in period t
        unit_production_cost: Cost per unit produced
        setup_cost: Fixed cost of producing the item in the period
        holding_cost: Cost per unit of ending inventory
        unit_production_time: Capacity consumed per unit produced
        setup_time: Capacity consumed by a setup
        period_capacity: Production time available in period t, shared by all items
        hop_horizon: Number of future periods whose demand may justify
            carrying inventory (checked against the horizon at formulation)
    """
    name: str = Field(default="instance", description="Instance label")
    item_count: int = Field(..., gt=0, description="Number of items")
    period_count: int = Field(..., gt=0, description="Number of periods")
    demand: Matrix = Field(..., description="Demand [item][period]")
    unit_production_cost: Matrix = Field(..., description="Unit production cost [item][period]")
    setup_cost: Matrix = Field(..., description="Setup cost [item][period]")
    holding_cost: Matrix = Field(..., description="Holding cost per unit [item][period]")
    unit_production_time: Matrix = Field(..., description="Capacity per unit produced [item][period]")
    setup_time: Matrix = Field(..., description="Capacity per setup [item][period]")
    period_capacity: Tuple[float, ...] = Field(..., description="Capacity per period")
    hop_horizon: int = Field(default=DEFAULT_HOP_HORIZON, description="Hop (inventory horizon) limit")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator(*MATRIX_FIELDS)
    @classmethod
    def values_must_be_non_negative(cls, v: Matrix, info) -> Matrix:
        """Reject negative or non-finite costs, times and demands."""
        for j, row in enumerate(v):
            for t, value in enumerate(row):
                _check_value(info.field_name, value, f"[item {j}, period {t}]")
        return v

    @field_validator('period_capacity')
    @classmethod
    def capacity_must_be_non_negative(cls, v: Tuple[float, ...]) -> Tuple[float, ...]:
        """Reject negative or non-finite period capacities."""
        for t, value in enumerate(v):
            _check_value('period_capacity', value, f"[period {t}]")
        return v

    @model_validator(mode='after')
    def validate_dimensions(self):
        """Every matrix must be item_count x period_count."""
        for field_name in MATRIX_FIELDS:
            matrix = getattr(self, field_name)
            if len(matrix) != self.item_count:
                raise ValueError(
                    f"{field_name} has {len(matrix)} item rows, expected {self.item_count}"
                )
            for j, row in enumerate(matrix):
                if len(row) != self.period_count:
                    raise ValueError(
                        f"{field_name}[item {j}] has {len(row)} periods, expected {self.period_count}"
                    )

        if len(self.period_capacity) != self.period_count:
            raise ValueError(
                f"period_capacity has {len(self.period_capacity)} entries, "
                f"expected {self.period_count}"
            )
        return self

    @classmethod
    def create(cls, **data) -> 'CLSPInstance':
        """
        Build a validated instance, raising DataError on invalid input.

        Raises:
            DataError: If counts are non-positive, values negative, or shapes
                inconsistent
        """
        try:
            return cls(**data)
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in err['loc']) or 'instance'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise DataError(
                f"Invalid CLSP instance '{data.get('name', 'instance')}'",
                context={'errors': "; ".join(errors)},
            ) from exc

    @classmethod
    def from_item_parameters(
        cls,
        period_capacity: float,
        unit_production_time: Sequence[float],
        holding_cost: Sequence[float],
        setup_time: Sequence[float],
        setup_cost: Sequence[float],
        demand: Sequence[Sequence[float]],
        unit_production_cost: float = 0.0,
        hop_horizon: int = DEFAULT_HOP_HORIZON,
        name: str = "instance",
    ) -> 'CLSPInstance':
        """
        Build an instance whose item parameters are constant over the horizon.

        This is the shape of the benchmark file format: one capacity for all
        periods and one (time, holding, setup time, setup cost) row per item.

        Args:
            period_capacity: Capacity applied to every period
            unit_production_time: Per-item production time
            holding_cost: Per-item holding cost
            setup_time: Per-item setup time
            setup_cost: Per-item setup cost
            demand: Demand [item][period]
            unit_production_cost: Production cost applied to every item and period
            hop_horizon: Hop limit
            name: Instance label

        Raises:
            DataError: If the resulting instance is invalid
        """
        item_count = len(demand)
        period_count = len(demand[0]) if item_count else 0

        def spread(per_item: Sequence[float]) -> List[List[float]]:
            return [[per_item[j]] * period_count for j in range(len(per_item))]

        return cls.create(
            name=name,
            item_count=item_count,
            period_count=period_count,
            demand=demand,
            unit_production_cost=[[unit_production_cost] * period_count for _ in range(item_count)],
            setup_cost=spread(setup_cost),
            holding_cost=spread(holding_cost),
            unit_production_time=spread(unit_production_time),
            setup_time=spread(setup_time),
            period_capacity=[period_capacity] * period_count,
            hop_horizon=hop_horizon,
        )

    @property
    def items(self) -> range:
        """Item indices."""
        return range(self.item_count)

    @property
    def periods(self) -> range:
        """Period indices."""
        return range(self.period_count)

    def with_hop_horizon(self, hop_horizon: int) -> 'CLSPInstance':
        """Return a copy with a different hop horizon."""
        return self.model_copy(update={'hop_horizon': hop_horizon})

    def total_demand(self, item: int) -> float:
        """Total demand of an item over the horizon."""
        return sum(self.demand[item])

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.name}: {self.item_count} items x {self.period_count} periods "
            f"(hop {self.hop_horizon})"
        )
