"""Pytest configuration and shared fixtures."""

import pytest

from lotsizing.models import CLSPInstance
from lotsizing.optimization.result_schema import LotSizingSolution
from tests.fixtures.solver_mocks import create_mock_solver_config


def highs_available() -> bool:
    """Whether the APPSI HiGHS interface (highspy) can be used."""
    try:
        from pyomo.contrib.appsi.solvers import Highs
        return bool(Highs().available())
    except Exception:
        return False


requires_highs = pytest.mark.skipif(not highs_available(), reason="HiGHS (highspy) not installed")


def make_instance(capacity=100.0, demand=None, hop_horizon=3, **overrides) -> CLSPInstance:
    """
    Two symmetric items over three periods.

    Item parameters: unit time 1, holding cost 2, setup time 5, setup cost 50,
    demand 10 per period.
    """
    demand = demand or [[10.0, 10.0, 10.0], [10.0, 10.0, 10.0]]
    item_count = len(demand)
    params = dict(
        period_capacity=capacity,
        unit_production_time=[1.0] * item_count,
        holding_cost=[2.0] * item_count,
        setup_time=[5.0] * item_count,
        setup_cost=[50.0] * item_count,
        demand=demand,
        hop_horizon=hop_horizon,
        name="two_by_three",
    )
    params.update(overrides)
    return CLSPInstance.from_item_parameters(**params)


@pytest.fixture
def two_by_three_instance():
    """Fixture for the 2-item, 3-period instance with capacity 100."""
    return make_instance()


@pytest.fixture
def tight_capacity_instance():
    """Fixture for the same instance with capacity 5 (setups alone do not fit)."""
    return make_instance(capacity=5.0)


@pytest.fixture
def lot_for_lot_solution():
    """Produce each period's demand in that period (cost 300)."""
    return LotSizingSolution(
        item_count=2,
        period_count=3,
        setup=[[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]],
        produce=[[10.0, 10.0, 10.0], [10.0, 10.0, 10.0]],
        inventory=[[0.0, 0.0], [0.0, 0.0]],
        initial_inventory=[0.0, 0.0],
        objective_value=300.0,
    )


@pytest.fixture
def front_loaded_solution():
    """Produce all demand in period 0 (cost 2 * (50 + 20*2 + 10*2) = 220)."""
    return LotSizingSolution(
        item_count=2,
        period_count=3,
        setup=[[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]],
        produce=[[30.0, 0.0, 0.0], [30.0, 0.0, 0.0]],
        inventory=[[20.0, 10.0], [20.0, 10.0]],
        initial_inventory=[0.0, 0.0],
        objective_value=220.0,
    )


@pytest.fixture
def mock_solver_config(two_by_three_instance):
    """
    Fixture for mock solver configuration.

    Provides a mock SolverConfig whose solver writes a lot-for-lot plan of
    the 2x3 instance into the model, without any solver installed.
    """
    return create_mock_solver_config(instance=two_by_three_instance)


@pytest.fixture
def instance_file(tmp_path):
    """The 2x3 instance written in Trigeiro format."""
    path = tmp_path / "two_by_three.dat"
    path.write_text(
        "2 3\n"
        "100\n"
        "1 2 5 50\n"
        "1 2 5 50\n"
        "10 10\n"
        "10 10\n"
        "10 10\n"
    )
    return path
