"""Plan and capacity reports built from a verified solution.

Frames are long-format pandas DataFrames (one row per item and period) so
they can be printed, exported to Excel, or aggregated. The text layout puts
periods in columns with demand, setup, production and inventory rows per
item, with the initial inventory in front of the inventory row.
"""

from typing import List, Optional

import pandas as pd

from ..constants import REPORT_ZERO_THRESHOLD
from ..models.instance import CLSPInstance
from ..optimization.result_schema import CapacityUsage, LotSizingSolution, PlanCostBreakdown


def _clean(value: float) -> float:
    """Show solver noise as zero."""
    return 0.0 if abs(value) < REPORT_ZERO_THRESHOLD else value


def production_plan_frame(instance: CLSPInstance, solution: LotSizingSolution) -> pd.DataFrame:
    """
    Production plan as one row per item and period.

    Columns: item, period, demand, setup, produce, starting_inventory,
    ending_inventory. Items and periods are 0-based.
    """
    rows = []
    for j in instance.items:
        for t in instance.periods:
            rows.append({
                'item': j,
                'period': t,
                'demand': instance.demand[j][t],
                'setup': solution.is_setup(j, t),
                'produce': _clean(solution.produce[j][t]),
                'starting_inventory': _clean(solution.starting_inventory(j, t)),
                'ending_inventory': _clean(solution.ending_inventory(j, t)),
            })
    return pd.DataFrame(rows)


def capacity_frame(capacity_rows: List[CapacityUsage]) -> pd.DataFrame:
    """Capacity use per period with utilization and slack."""
    return pd.DataFrame([
        {
            'period': row.period,
            'used': row.used,
            'capacity': row.capacity,
            'utilization': row.utilization,
            'slack': row.slack,
            'violated': row.violated,
        }
        for row in capacity_rows
    ])


def item_summary_frame(instance: CLSPInstance, solution: LotSizingSolution) -> pd.DataFrame:
    """Totals per item."""
    plan = production_plan_frame(instance, solution)
    summary = plan.groupby('item').agg(
        demand=('demand', 'sum'),
        produced=('produce', 'sum'),
        setups=('setup', 'sum'),
        inventory_carried=('ending_inventory', 'sum'),
    ).reset_index()
    summary['initial_inventory'] = [_clean(v) for v in solution.initial_inventory]
    return summary


def format_plan(instance: CLSPInstance, solution: LotSizingSolution) -> str:
    """Periods as columns; demand, setup, production and inventory rows per item."""
    columns = ['start'] + [str(t + 1) for t in instance.periods]
    blocks = []
    for j in instance.items:
        inventory = [solution.ending_inventory(j, t) for t in instance.periods]
        frame = pd.DataFrame(
            [
                [''] + [f"{d:g}" for d in instance.demand[j]],
                [''] + [str(int(solution.is_setup(j, t))) for t in instance.periods],
                [''] + [f"{_clean(x):g}" for x in solution.produce[j]],
                [f"{_clean(solution.initial_inventory[j]):g}"] + [f"{_clean(s):g}" for s in inventory],
            ],
            index=['demand', 'setup', 'produce', 'inventory'],
            columns=columns,
        )
        blocks.append(f"Item {j + 1}\n{frame.to_string()}")
    return "\n\n".join(blocks)


def format_capacity(capacity_rows: List[CapacityUsage]) -> str:
    """One 'period :: used/capacity' line per period."""
    lines = []
    for row in capacity_rows:
        flag = "  OVERLOADED" if row.violated else ""
        lines.append(f"{row.period + 1:>4} :: {row.used:g}/{row.capacity:g}{flag}")
    return "\n".join(lines)


def format_plan_summary(
    instance: CLSPInstance,
    costs: PlanCostBreakdown,
    objective_value: Optional[float],
    elapsed_seconds: Optional[float] = None,
) -> str:
    """Objective, recomputed cost components and elapsed time."""
    lines = [f"Instance: {instance}"]
    if objective_value is not None:
        lines.append(f"z* = {objective_value:,.4f}")
    lines.extend([
        f"z verified (setup + holding) = {costs.verified_cost:,.4f}",
        f"  setup cost        = {costs.setup_cost:,.4f}",
        f"  holding cost      = {costs.holding_cost:,.4f}",
        f"  production cost   = {costs.production_cost:,.4f}",
        f"  initial inventory = {costs.initial_inventory_penalty:,.4f}",
        f"  total             = {costs.total_cost:,.4f}",
    ])
    if elapsed_seconds is not None:
        lines.append(f"Elapsed: {elapsed_seconds:.2f} seconds")
    return "\n".join(lines)
