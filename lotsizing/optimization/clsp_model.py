"""Capacitated lot-sizing model with setups (CLSP).

Decision Variables:
- setup[j, t]: 1 if item j is produced in period t (binary)
- produce[j, t]: Quantity of item j produced in period t
- inventory[j, t]: Ending inventory of item j, periods 0..T-2 only
- initial_inventory[j]: Starting inventory before period 0 (penalized slack)

Constraints:
- Capacity: setup plus production time of all items <= period capacity
- Demand balance: inflow (production + carried stock) = demand + ending stock;
  the last period has no ending stock term, so terminal inventory is zero
- Setup linking: produce[j, t] <= max_production[j, t] * setup[j, t]
- Hop: inventory[j, t] <= demand of the next hop periods, for t <= T - hop

Objective:
- Minimize: setup + production + holding cost
  + BIG_PENALTY * initial inventory

The big-M of the linking constraint is the exact per-(item, period) bound
from ``parameters.max_production``, never a global constant; a loose M would
weaken the LP relaxation.
"""

from typing import Optional
import logging

from pyomo.environ import (
    Binary,
    ConcreteModel,
    Constraint,
    NonNegativeReals,
    Objective,
    Set as PyomoSet,
    Var,
    minimize,
    quicksum,
    value,
)

from ..constants import BIG_PENALTY
from ..models.instance import CLSPInstance
from .base_model import BaseOptimizationModel
from .parameters import DerivedParameters, derive_parameters
from .result_schema import LotSizingSolution
from .solver_config import SolverConfig

logger = logging.getLogger(__name__)


def formulate(
    instance: CLSPInstance,
    hop_horizon: Optional[int] = None,
    allow_initial_inventory: bool = True,
    parameters: Optional[DerivedParameters] = None,
) -> ConcreteModel:
    """
    Build the CLSP model for an instance.

    Args:
        instance: Validated instance
        hop_horizon: Hop limit (default: the instance's hop_horizon)
        allow_initial_inventory: If False, starting inventory is fixed at zero
        parameters: Pre-computed derived parameters (computed if omitted)

    Returns:
        Pyomo ConcreteModel

    Raises:
        DataError: If a unit production time is zero
        ModelError: If the hop horizon is outside [1, period_count]
    """
    if parameters is None:
        parameters = derive_parameters(instance, hop_horizon)

    model = ConcreteModel(name=f"CLSP[{instance.name}]")

    model.item_set = PyomoSet(initialize=list(instance.items), ordered=True)
    model.periods = PyomoSet(initialize=list(instance.periods), ordered=True)
    model.inventory_periods = PyomoSet(
        initialize=list(range(instance.period_count - 1)), ordered=True, dimen=1
    )
    model.hop_index = PyomoSet(
        initialize=sorted(parameters.hop_bounds), ordered=True, dimen=2
    )

    _add_variables(model, allow_initial_inventory)
    _add_constraints(model, instance, parameters)
    _build_objective(model, instance)

    blocked = sum(
        1 for j in instance.items for t in instance.periods if parameters.is_blocked(j, t)
    )
    if blocked:
        logger.info(f"{blocked} item-period pairs cannot be set up (setup time >= capacity)")

    return model


def _add_variables(model: ConcreteModel, allow_initial_inventory: bool) -> None:
    """Add decision variables to model."""
    model.setup = Var(
        model.item_set,
        model.periods,
        within=Binary,
        doc="Setup indicator by item and period"
    )
    model.produce = Var(
        model.item_set,
        model.periods,
        within=NonNegativeReals,
        doc="Production quantity by item and period"
    )
    model.inventory = Var(
        model.item_set,
        model.inventory_periods,
        within=NonNegativeReals,
        doc="Ending inventory by item and period (no variable for the last period)"
    )
    model.initial_inventory = Var(
        model.item_set,
        within=NonNegativeReals,
        doc="Starting inventory before the first period"
    )

    if not allow_initial_inventory:
        for j in model.item_set:
            model.initial_inventory[j].fix(0.0)


def _add_constraints(
    model: ConcreteModel,
    instance: CLSPInstance,
    parameters: DerivedParameters,
) -> None:
    """Add capacity, balance, linking and hop constraints."""
    last_period = instance.period_count - 1

    def capacity_rule(model, t):
        return quicksum(
            instance.unit_production_time[j][t] * model.produce[j, t]
            + instance.setup_time[j][t] * model.setup[j, t]
            for j in model.item_set
        ) <= instance.period_capacity[t]

    model.capacity_con = Constraint(
        model.periods,
        rule=capacity_rule,
        doc="Shared production capacity per period"
    )

    def balance_rule(model, j, t):
        carried_in = model.initial_inventory[j] if t == 0 else model.inventory[j, t - 1]
        carried_out = model.inventory[j, t] if t < last_period else 0
        return model.produce[j, t] + carried_in - instance.demand[j][t] - carried_out == 0

    model.balance_con = Constraint(
        model.item_set,
        model.periods,
        rule=balance_rule,
        doc="Demand balance (terminal inventory zero)"
    )

    def setup_link_rule(model, j, t):
        return model.produce[j, t] <= parameters.max_production[j][t] * model.setup[j, t]

    model.setup_link_con = Constraint(
        model.item_set,
        model.periods,
        rule=setup_link_rule,
        doc="Production only in periods with a setup"
    )

    def hop_rule(model, j, t):
        return model.inventory[j, t] <= parameters.hop_bounds[(j, t)]

    model.hop_con = Constraint(
        model.hop_index,
        rule=hop_rule,
        doc="Inventory limited to demand of the next hop periods"
    )


def _build_objective(model: ConcreteModel, instance: CLSPInstance) -> None:
    """Minimize setup, production and holding cost plus the starting-stock penalty."""
    def objective_rule(model):
        penalty = quicksum(BIG_PENALTY * model.initial_inventory[j] for j in model.item_set)
        setup_cost = quicksum(
            instance.setup_cost[j][t] * model.setup[j, t]
            for j in model.item_set for t in model.periods
        )
        production_cost = quicksum(
            instance.unit_production_cost[j][t] * model.produce[j, t]
            for j in model.item_set for t in model.periods
        )
        holding_cost = quicksum(
            instance.holding_cost[j][t] * model.inventory[j, t]
            for j in model.item_set for t in model.inventory_periods
        )
        return penalty + setup_cost + production_cost + holding_cost

    model.obj = Objective(
        rule=objective_rule,
        sense=minimize,
        doc="Minimize total cost"
    )


def _var_value(var) -> float:
    """Value of a variable (0.0 if the solver left it unset)."""
    val = var.value
    return 0.0 if val is None else float(val)


class CLSPModel(BaseOptimizationModel):
    """
    Capacitated lot-sizing model.

    Derived parameters are computed at construction, so an instance with zero
    production time (DataError) or an out-of-range hop horizon (ModelError)
    is rejected before anything is handed to the solver.

    Example:
        model = CLSPModel(instance, hop_horizon=6)
        result = model.solve(solver_name='appsi_highs', time_limit_seconds=180)
        if result.success:
            solution = model.get_solution()
            print(f"Total cost: {result.objective_value:,.2f}")
    """

    def __init__(
        self,
        instance: CLSPInstance,
        hop_horizon: Optional[int] = None,
        allow_initial_inventory: bool = True,
        solver_config: Optional[SolverConfig] = None,
    ):
        """
        Initialize CLSP model.

        Args:
            instance: Validated instance
            hop_horizon: Hop limit (default: the instance's hop_horizon)
            allow_initial_inventory: Allow penalized starting inventory
            solver_config: Solver configuration (optional)
        """
        super().__init__(solver_config)
        self.instance = instance
        self.allow_initial_inventory = allow_initial_inventory
        self.parameters = derive_parameters(instance, hop_horizon)

    @property
    def hop_horizon(self) -> int:
        """Hop limit used by this model."""
        return self.parameters.hop_horizon

    def build_model(self) -> ConcreteModel:
        """Build the Pyomo model."""
        return formulate(
            self.instance,
            allow_initial_inventory=self.allow_initial_inventory,
            parameters=self.parameters,
        )

    def extract_solution(self, model: ConcreteModel) -> LotSizingSolution:
        """
        Extract variable values from the solved model.

        Args:
            model: Solved Pyomo model

        Returns:
            LotSizingSolution
        """
        return LotSizingSolution(
            item_count=self.instance.item_count,
            period_count=self.instance.period_count,
            setup=[[_var_value(model.setup[j, t]) for t in model.periods] for j in model.item_set],
            produce=[[_var_value(model.produce[j, t]) for t in model.periods] for j in model.item_set],
            inventory=[
                [_var_value(model.inventory[j, t]) for t in model.inventory_periods]
                for j in model.item_set
            ],
            initial_inventory=[_var_value(model.initial_inventory[j]) for j in model.item_set],
            objective_value=value(model.obj),
        )
