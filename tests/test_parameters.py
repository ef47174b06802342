"""Tests for derived parameters (big-M and hop bounds)."""

import pytest

from lotsizing.exceptions import DataError, ModelError
from lotsizing.models import CLSPInstance
from lotsizing.optimization.parameters import (
    check_hop_horizon,
    derive_parameters,
    hop_inventory_bound,
    hop_periods,
    max_production,
)
from tests.conftest import make_instance


@pytest.fixture
def varied_instance():
    """One item over five periods with period-dependent data."""
    return CLSPInstance.create(
        name="varied",
        item_count=1,
        period_count=5,
        demand=[[1.0, 2.0, 3.0, 4.0, 5.0]],
        unit_production_cost=[[0.0] * 5],
        setup_cost=[[10.0] * 5],
        holding_cost=[[1.0] * 5],
        unit_production_time=[[1.0, 2.0, 4.0, 0.5, 1.0]],
        setup_time=[[10.0, 10.0, 10.0, 10.0, 60.0]],
        period_capacity=[50.0, 50.0, 50.0, 50.0, 50.0],
        hop_horizon=2,
    )


class TestMaxProduction:
    """Tests for the big-M bound."""

    def test_exact_formula(self, varied_instance):
        """Test (capacity - setup time) / unit time for every period."""
        bounds = max_production(varied_instance)

        assert bounds == ((40.0, 20.0, 10.0, 80.0, -10.0),)

    def test_negative_bound_is_not_clamped(self, varied_instance):
        """Test that setup time above capacity yields a negative bound."""
        params = derive_parameters(varied_instance)

        assert params.max_production[0][4] == -10.0
        assert params.is_blocked(0, 4)
        assert not params.is_blocked(0, 0)

    def test_zero_unit_time_raises_data_error(self):
        """Test that zero production time is rejected."""
        instance = make_instance(unit_production_time=[1.0, 0.0])

        with pytest.raises(DataError, match="Unit production time is zero") as exc_info:
            max_production(instance)

        assert exc_info.value.context['item'] == 1


class TestHopBounds:
    """Tests for the hop inventory bounds."""

    def test_bound_is_demand_of_next_hop_periods(self, varied_instance):
        """Test that the bound sums demand over (t, t + hop]."""
        assert hop_inventory_bound(varied_instance, 0, 0, 2) == 2.0 + 3.0
        assert hop_inventory_bound(varied_instance, 0, 1, 2) == 3.0 + 4.0
        assert hop_inventory_bound(varied_instance, 0, 2, 2) == 4.0 + 5.0

    def test_bound_truncated_at_horizon(self, varied_instance):
        """Test that demand beyond the last period contributes nothing."""
        assert hop_inventory_bound(varied_instance, 0, 3, 2) == 5.0
        assert hop_inventory_bound(varied_instance, 0, 0, 5) == 2.0 + 3.0 + 4.0 + 5.0

    def test_bound_monotone_in_hop(self, varied_instance):
        """Test that the bound never decreases as the hop grows."""
        for t in range(varied_instance.period_count):
            bounds = [hop_inventory_bound(varied_instance, 0, t, h) for h in range(1, 6)]
            assert bounds == sorted(bounds)

    def test_hop_periods_range(self):
        """Test t <= T - hop, limited to periods with an inventory variable."""
        assert list(hop_periods(5, 2)) == [0, 1, 2, 3]
        assert list(hop_periods(5, 1)) == [0, 1, 2, 3]
        assert list(hop_periods(5, 4)) == [0, 1]

    def test_hop_equal_to_horizon_constrains_period_zero_only(self, varied_instance):
        """Test the hop = T boundary."""
        params = derive_parameters(varied_instance, hop_horizon=5)

        assert list(params.hop_bounds) == [(0, 0)]
        assert params.hop_bounds[(0, 0)] == 14.0

    def test_single_period_has_no_hop_bounds(self):
        """Test that T = 1 has no inventory to bound."""
        instance = make_instance(demand=[[5.0]], hop_horizon=1)

        assert derive_parameters(instance).hop_bounds == {}

    def test_derive_uses_instance_hop_by_default(self, varied_instance):
        """Test the default hop horizon."""
        params = derive_parameters(varied_instance)

        assert params.hop_horizon == 2
        assert set(params.hop_bounds) == {(0, 0), (0, 1), (0, 2), (0, 3)}

    @pytest.mark.parametrize("hop", [0, -1, 6])
    def test_out_of_range_hop_raises_model_error(self, varied_instance, hop):
        """Test that hop outside [1, T] is rejected."""
        with pytest.raises(ModelError, match="outside"):
            derive_parameters(varied_instance, hop_horizon=hop)

    def test_non_integer_hop_raises_model_error(self, varied_instance):
        """Test that the hop horizon must be an integer."""
        with pytest.raises(ModelError, match="must be an integer"):
            check_hop_horizon(varied_instance, 2.5)

    def test_model_error_names_formulate_stage(self, varied_instance):
        """Test the stage reported for hop errors."""
        with pytest.raises(ModelError) as exc_info:
            check_hop_horizon(varied_instance, 0)

        assert exc_info.value.stage == "formulate"

    def test_derive_is_pure(self, varied_instance):
        """Test that derivation is repeatable and leaves the instance unchanged."""
        first = derive_parameters(varied_instance)
        second = derive_parameters(varied_instance)

        assert first == second
        assert varied_instance.hop_horizon == 2
