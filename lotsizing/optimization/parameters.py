"""Secondary parameters derived from a CLSP instance.

Two families of parameters feed the formulation:

- ``max_production[j][t]``: the largest quantity of item j that fits in
  period t on its own, ``(capacity - setup_time) / unit_production_time``.
  It is the per-(item, period) big-M of the setup linking constraint. The
  bound is kept exact: a negative value means the item cannot be set up in
  that period at all, which the linking constraint turns into "produce zero".

- ``hop_bounds[(j, t)]``: the cumulative demand of the next ``hop`` periods,
  the largest inventory of item j that may be carried out of period t.
  Defined for ``t <= T - hop`` (and only where an inventory variable exists,
  ``t <= T - 2``); demand beyond the horizon contributes nothing.

Everything here is a pure function of the instance.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..exceptions import DataError, ModelError
from ..models.instance import CLSPInstance, Matrix


@dataclass(frozen=True)
class DerivedParameters:
    """
    Parameters derived once per formulation.

    Attributes:
        max_production: Big-M bound per [item][period]
        hop_horizon: Hop limit the bounds were computed for
        hop_bounds: Inventory upper bound per (item, period) in the hop range
    """
    max_production: Matrix
    hop_horizon: int
    hop_bounds: Dict[Tuple[int, int], float] = field(default_factory=dict)

    def is_blocked(self, item: int, period: int) -> bool:
        """True when the item cannot be produced in the period (non-positive bound)."""
        return self.max_production[item][period] <= 0


def max_production(instance: CLSPInstance) -> Matrix:
    """
    Compute the maximum feasible production per item and period.

    Raises:
        DataError: If a unit production time is zero
    """
    rows = []
    for j in instance.items:
        row = []
        for t in instance.periods:
            unit_time = instance.unit_production_time[j][t]
            if unit_time == 0:
                raise DataError(
                    "Unit production time is zero; maximum production is undefined",
                    context={'item': j, 'period': t, 'instance': instance.name},
                )
            row.append((instance.period_capacity[t] - instance.setup_time[j][t]) / unit_time)
        rows.append(tuple(row))
    return tuple(rows)


def check_hop_horizon(instance: CLSPInstance, hop_horizon: int) -> None:
    """
    Validate a hop horizon against the planning horizon.

    Raises:
        ModelError: If the hop horizon is outside [1, period_count]
    """
    if isinstance(hop_horizon, bool) or not isinstance(hop_horizon, int):
        raise ModelError(
            f"Hop horizon must be an integer, got {hop_horizon!r}",
            context={'instance': instance.name},
        )
    if not 1 <= hop_horizon <= instance.period_count:
        raise ModelError(
            f"Hop horizon {hop_horizon} is outside [1, {instance.period_count}]",
            context={'instance': instance.name, 'period_count': instance.period_count},
        )


def hop_periods(period_count: int, hop_horizon: int) -> range:
    """Periods whose ending inventory is limited by the hop rule."""
    # inventory only exists up to T-2
    last = min(period_count - hop_horizon, period_count - 2)
    return range(0, last + 1)


def hop_inventory_bound(instance: CLSPInstance, item: int, period: int, hop_horizon: int) -> float:
    """Cumulative demand of ``item`` over periods (period, period + hop_horizon]."""
    last = min(period + hop_horizon, instance.period_count - 1)
    return sum(instance.demand[item][k] for k in range(period + 1, last + 1))


def derive_parameters(instance: CLSPInstance, hop_horizon: Optional[int] = None) -> DerivedParameters:
    """
    Derive big-M bounds and hop bounds for an instance.

    Args:
        instance: Validated instance
        hop_horizon: Hop limit (default: the instance's hop_horizon)

    Returns:
        DerivedParameters

    Raises:
        DataError: If a unit production time is zero
        ModelError: If the hop horizon is outside [1, period_count]
    """
    hop = instance.hop_horizon if hop_horizon is None else hop_horizon
    check_hop_horizon(instance, hop)

    bounds = {
        (j, t): hop_inventory_bound(instance, j, t, hop)
        for j in instance.items
        for t in hop_periods(instance.period_count, hop)
    }

    return DerivedParameters(
        max_production=max_production(instance),
        hop_horizon=hop,
        hop_bounds=bounds,
    )
