"""Independent verification of solver solutions.

The verifier runs AFTER solution extraction and recomputes capacity use and
cost from the instance and the raw assignment, without trusting anything the
solver reports about itself. A disagreement beyond tolerance means the
formulation or the solver adapter is wrong; it is reported, never ignored.

Verification is a pure function of (instance, solution, reported objective):
running it twice yields identical figures.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from ..constants import (
    BALANCE_TOLERANCE,
    BIG_PENALTY,
    CAPACITY_ABS_TOLERANCE,
    CAPACITY_REL_TOLERANCE,
    COST_ABS_TOLERANCE,
    COST_REL_TOLERANCE,
)
from ..exceptions import VerificationMismatch
from ..models.instance import CLSPInstance
from ..optimization.parameters import hop_inventory_bound, hop_periods
from ..optimization.result_schema import CapacityUsage, LotSizingSolution, PlanCostBreakdown

logger = logging.getLogger(__name__)


@dataclass
class VerificationIssue:
    """A disagreement between the solution and the instance."""
    category: str
    message: str
    details: Dict = field(default_factory=dict)


@dataclass
class VerificationReport:
    """
    Result of verifying one solution.

    Attributes:
        capacity_rows: Recomputed capacity use per period
        cost_breakdown: Recomputed objective components
        reported_objective: Objective reported by the solver (if any)
        initial_inventory_used: Total starting inventory in the plan
        issues: Every disagreement found (empty when the solution checks out)
    """
    capacity_rows: List[CapacityUsage]
    cost_breakdown: PlanCostBreakdown
    reported_objective: Optional[float]
    initial_inventory_used: float = 0.0
    issues: List[VerificationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True if no issue was found."""
        return not self.issues

    @property
    def cost_discrepancy(self) -> Optional[float]:
        """Recomputed total minus reported objective."""
        if self.reported_objective is None:
            return None
        return self.cost_breakdown.total_cost - self.reported_objective

    @property
    def overloaded_periods(self) -> List[int]:
        """Periods whose capacity is exceeded."""
        return [row.period for row in self.capacity_rows if row.violated]

    def raise_for_mismatch(self) -> None:
        """
        Raise if verification found any issue.

        Raises:
            VerificationMismatch: Carrying this report
        """
        if self.is_valid:
            return
        raise VerificationMismatch(
            f"Solution failed verification with {len(self.issues)} issue(s)",
            report=self,
            context={
                issue.category: issue.message
                for issue in self.issues[:5]
            },
        )


def _within(value: float, reference: float, abs_tol: float, rel_tol: float) -> bool:
    return abs(value - reference) <= max(abs_tol, rel_tol * max(abs(value), abs(reference)))


class SolutionVerifier:
    """Recomputes capacity use and cost of a solution from the instance."""

    def __init__(self, instance: CLSPInstance, hop_horizon: Optional[int] = None):
        """
        Initialize verifier.

        Args:
            instance: Instance the solution was computed for
            hop_horizon: Hop limit the model was built with (default: instance's)
        """
        self.instance = instance
        self.hop_horizon = instance.hop_horizon if hop_horizon is None else hop_horizon

    def verify(
        self,
        solution: LotSizingSolution,
        reported_objective: Optional[float] = None,
    ) -> VerificationReport:
        """
        Run all checks.

        Args:
            solution: Extracted solution
            reported_objective: Objective reported by the solver
                (default: solution.objective_value)

        Returns:
            VerificationReport

        Raises:
            VerificationMismatch: If the solution does not even have the
                instance's dimensions
        """
        self._check_dimensions(solution)

        if reported_objective is None:
            reported_objective = solution.objective_value

        capacity = self.capacity_utilization(solution)
        costs = self.recompute_costs(solution)

        issues: List[VerificationIssue] = []
        issues.extend(self._validate_capacity(capacity))
        issues.extend(self._validate_objective(costs, reported_objective))
        issues.extend(self._validate_non_negative(solution))
        issues.extend(self._validate_setup_linking(solution))
        issues.extend(self._validate_demand_balance(solution))
        issues.extend(self._validate_hop_bounds(solution))

        for issue in issues:
            logger.debug(f"Verification issue [{issue.category}]: {issue.message}")

        return VerificationReport(
            capacity_rows=capacity,
            cost_breakdown=costs,
            reported_objective=reported_objective,
            initial_inventory_used=sum(solution.initial_inventory),
            issues=issues,
        )

    def capacity_utilization(self, solution: LotSizingSolution) -> List[CapacityUsage]:
        """Setup plus production time of active setups, per period."""
        rows = []
        for t in self.instance.periods:
            used = 0.0
            for j in self.instance.items:
                if solution.is_setup(j, t):
                    used += (
                        self.instance.setup_time[j][t]
                        + self.instance.unit_production_time[j][t] * solution.produce[j][t]
                    )
            capacity = self.instance.period_capacity[t]
            limit = capacity + max(CAPACITY_ABS_TOLERANCE, CAPACITY_REL_TOLERANCE * capacity)
            rows.append(CapacityUsage(period=t, used=used, capacity=capacity, violated=used > limit))
        return rows

    def recompute_costs(self, solution: LotSizingSolution) -> PlanCostBreakdown:
        """Objective components recomputed from the assignment.

        Holding cost charges all ending inventory, as the objective does.
        Inventory above the activity threshold alone makes up verified_cost.
        """
        setup_cost = 0.0
        holding_cost = 0.0
        active_holding_cost = 0.0
        production_cost = 0.0
        for j in self.instance.items:
            for t in self.instance.periods:
                if solution.is_setup(j, t):
                    setup_cost += self.instance.setup_cost[j][t]
                carried = solution.ending_inventory(j, t) * self.instance.holding_cost[j][t]
                holding_cost += carried
                if solution.is_holding(j, t):
                    active_holding_cost += carried
                production_cost += self.instance.unit_production_cost[j][t] * solution.produce[j][t]

        penalty = BIG_PENALTY * sum(solution.initial_inventory)

        return PlanCostBreakdown(
            setup_cost=setup_cost,
            holding_cost=holding_cost,
            production_cost=production_cost,
            initial_inventory_penalty=penalty,
            total_cost=setup_cost + holding_cost + production_cost + penalty,
            verified_cost=setup_cost + active_holding_cost,
        )

    def material_balance(self, solution: LotSizingSolution, item: int) -> Tuple[float, float]:
        """(initial inventory + total production, total demand) of an item."""
        supplied = solution.initial_inventory[item] + solution.total_production(item)
        return supplied, self.instance.total_demand(item)

    def _check_dimensions(self, solution: LotSizingSolution) -> None:
        if (solution.item_count, solution.period_count) != (
            self.instance.item_count, self.instance.period_count
        ):
            raise VerificationMismatch(
                "Solution dimensions do not match the instance",
                context={
                    'solution': f"{solution.item_count}x{solution.period_count}",
                    'instance': f"{self.instance.item_count}x{self.instance.period_count}",
                },
            )

    def _validate_capacity(self, capacity: List[CapacityUsage]) -> List[VerificationIssue]:
        """CRITICAL: recomputed capacity use must not exceed capacity."""
        return [
            VerificationIssue(
                category='Capacity Exceeded',
                message=f"Period {row.period}: {row.used:.4f} used of {row.capacity:.4f}",
                details={'period': row.period, 'used': row.used, 'capacity': row.capacity},
            )
            for row in capacity if row.violated
        ]

    def _validate_objective(
        self,
        costs: PlanCostBreakdown,
        reported_objective: Optional[float],
    ) -> List[VerificationIssue]:
        """CRITICAL: recomputed cost must match the reported objective."""
        if reported_objective is None:
            return []
        if _within(costs.total_cost, reported_objective, COST_ABS_TOLERANCE, COST_REL_TOLERANCE):
            return []
        return [VerificationIssue(
            category='Objective Mismatch',
            message=(
                f"Recomputed cost {costs.total_cost:,.4f} differs from reported "
                f"objective {reported_objective:,.4f}"
            ),
            details={'recomputed': costs.total_cost, 'reported': reported_objective},
        )]

    def _validate_non_negative(self, solution: LotSizingSolution) -> List[VerificationIssue]:
        """Continuous quantities must be non-negative (up to tolerance)."""
        issues = []
        for j in self.instance.items:
            values = (
                [('produce', t, v) for t, v in enumerate(solution.produce[j])]
                + [('inventory', t, v) for t, v in enumerate(solution.inventory[j])]
            )
            for name, t, v in values:
                if v < -BALANCE_TOLERANCE:
                    issues.append(VerificationIssue(
                        category='Negative Quantity',
                        message=f"{name}[{j}, {t}] = {v:.6f}",
                        details={'item': j, 'period': t, 'variable': name, 'value': v},
                    ))
            if solution.initial_inventory[j] < -BALANCE_TOLERANCE:
                issues.append(VerificationIssue(
                    category='Negative Quantity',
                    message=f"initial_inventory[{j}] = {solution.initial_inventory[j]:.6f}",
                    details={'item': j, 'variable': 'initial_inventory'},
                ))
        return issues

    def _validate_setup_linking(self, solution: LotSizingSolution) -> List[VerificationIssue]:
        """Production without an active setup indicates a broken linking constraint."""
        issues = []
        for j in self.instance.items:
            for t in self.instance.periods:
                qty = solution.produce[j][t]
                if qty > BALANCE_TOLERANCE and not solution.is_setup(j, t):
                    issues.append(VerificationIssue(
                        category='Production Without Setup',
                        message=f"Item {j}, period {t}: {qty:.4f} units produced without setup",
                        details={'item': j, 'period': t, 'produce': qty},
                    ))
        return issues

    def _validate_demand_balance(self, solution: LotSizingSolution) -> List[VerificationIssue]:
        """Inflow must equal demand plus ending inventory in every period."""
        issues = []
        for j in self.instance.items:
            for t in self.instance.periods:
                demand = self.instance.demand[j][t]
                residual = (
                    solution.produce[j][t]
                    + solution.starting_inventory(j, t)
                    - demand
                    - solution.ending_inventory(j, t)
                )
                if abs(residual) > BALANCE_TOLERANCE * max(1.0, demand):
                    issues.append(VerificationIssue(
                        category='Demand Balance',
                        message=f"Item {j}, period {t}: balance residual {residual:.6f}",
                        details={'item': j, 'period': t, 'residual': residual},
                    ))
        return issues

    def _validate_hop_bounds(self, solution: LotSizingSolution) -> List[VerificationIssue]:
        """Carried inventory must be covered by demand of the next hop periods."""
        if not 1 <= self.hop_horizon <= self.instance.period_count:
            return []

        issues = []
        for j in self.instance.items:
            for t in hop_periods(self.instance.period_count, self.hop_horizon):
                bound = hop_inventory_bound(self.instance, j, t, self.hop_horizon)
                carried = solution.inventory[j][t]
                if carried > bound + BALANCE_TOLERANCE * max(1.0, bound):
                    issues.append(VerificationIssue(
                        category='Hop Bound',
                        message=f"Item {j}, period {t}: inventory {carried:.4f} exceeds {bound:.4f}",
                        details={'item': j, 'period': t, 'inventory': carried, 'bound': bound},
                    ))
        return issues
