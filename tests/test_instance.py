"""Tests for the CLSP instance model."""

import math

import pytest
from pydantic import ValidationError

from lotsizing.exceptions import DataError
from lotsizing.models import CLSPInstance, RunConfig, TrigeiroFormatPolicy
from tests.conftest import make_instance


def _fields(**overrides):
    data = dict(
        name="tiny",
        item_count=1,
        period_count=2,
        demand=[[4.0, 6.0]],
        unit_production_cost=[[0.0, 0.0]],
        setup_cost=[[10.0, 10.0]],
        holding_cost=[[1.0, 1.0]],
        unit_production_time=[[1.0, 1.0]],
        setup_time=[[2.0, 2.0]],
        period_capacity=[20.0, 20.0],
    )
    data.update(overrides)
    return data


class TestCLSPInstance:
    """Tests for CLSPInstance construction and validation."""

    def test_create_valid_instance(self):
        """Test creating a valid instance."""
        instance = CLSPInstance.create(**_fields())

        assert instance.item_count == 1
        assert instance.period_count == 2
        assert instance.demand == ((4.0, 6.0),)
        assert instance.period_capacity == (20.0, 20.0)
        assert instance.hop_horizon == 6

    def test_items_and_periods(self, two_by_three_instance):
        """Test index ranges."""
        assert list(two_by_three_instance.items) == [0, 1]
        assert list(two_by_three_instance.periods) == [0, 1, 2]

    def test_instance_is_frozen(self, two_by_three_instance):
        """Test that instance fields cannot be reassigned."""
        with pytest.raises(ValidationError):
            two_by_three_instance.hop_horizon = 1

    def test_with_hop_horizon_returns_copy(self, two_by_three_instance):
        """Test that with_hop_horizon leaves the original unchanged."""
        other = two_by_three_instance.with_hop_horizon(1)

        assert other.hop_horizon == 1
        assert two_by_three_instance.hop_horizon == 3
        assert other.demand == two_by_three_instance.demand

    def test_total_demand(self, two_by_three_instance):
        """Test total demand per item."""
        assert two_by_three_instance.total_demand(0) == 30.0

    def test_str(self, two_by_three_instance):
        """Test string representation."""
        assert str(two_by_three_instance) == "two_by_three: 2 items x 3 periods (hop 3)"

    @pytest.mark.parametrize("field_name", ["item_count", "period_count"])
    def test_non_positive_counts_raise_data_error(self, field_name):
        """Test that zero counts are rejected."""
        with pytest.raises(DataError):
            CLSPInstance.create(**_fields(**{field_name: 0}))

    @pytest.mark.parametrize("field_name", [
        "demand", "setup_cost", "holding_cost", "unit_production_time", "setup_time",
    ])
    def test_negative_values_raise_data_error(self, field_name):
        """Test that negative matrix values are rejected."""
        with pytest.raises(DataError, match="Invalid CLSP instance"):
            CLSPInstance.create(**_fields(**{field_name: [[1.0, -1.0]]}))

    def test_negative_capacity_raises_data_error(self):
        """Test that negative capacity is rejected."""
        with pytest.raises(DataError) as exc_info:
            CLSPInstance.create(**_fields(period_capacity=[20.0, -1.0]))

        assert "period_capacity" in exc_info.value.context['errors']

    def test_non_finite_value_raises_data_error(self):
        """Test that NaN values are rejected."""
        with pytest.raises(DataError):
            CLSPInstance.create(**_fields(demand=[[math.nan, 1.0]]))

    def test_ragged_matrix_raises_data_error(self):
        """Test that rows of the wrong length are rejected."""
        with pytest.raises(DataError) as exc_info:
            CLSPInstance.create(**_fields(holding_cost=[[1.0, 1.0, 1.0]]))

        assert "holding_cost" in exc_info.value.context['errors']

    def test_wrong_item_rows_raise_data_error(self):
        """Test that a matrix with too many item rows is rejected."""
        with pytest.raises(DataError):
            CLSPInstance.create(**_fields(setup_time=[[2.0, 2.0], [2.0, 2.0]]))

    def test_capacity_length_mismatch_raises_data_error(self):
        """Test that capacity must have one entry per period."""
        with pytest.raises(DataError):
            CLSPInstance.create(**_fields(period_capacity=[20.0]))

    def test_unknown_field_rejected(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(DataError):
            CLSPInstance.create(**_fields(shelf_life=3))

    def test_data_error_names_load_stage(self):
        """Test that instance errors report the load stage."""
        with pytest.raises(DataError) as exc_info:
            CLSPInstance.create(**_fields(item_count=0))

        assert exc_info.value.stage == "load"
        assert exc_info.value.exit_code != 0


class TestFromItemParameters:
    """Tests for building instances from per-item parameters."""

    def test_spreads_item_parameters_over_periods(self, two_by_three_instance):
        """Test that per-item values apply to every period."""
        assert two_by_three_instance.setup_time == ((5.0, 5.0, 5.0), (5.0, 5.0, 5.0))
        assert two_by_three_instance.period_capacity == (100.0, 100.0, 100.0)
        assert two_by_three_instance.unit_production_cost == ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_production_cost_applied(self):
        """Test that unit production cost is applied to every item and period."""
        instance = make_instance(unit_production_cost=3.0)

        assert all(c == 3.0 for row in instance.unit_production_cost for c in row)

    def test_invalid_parameters_raise_data_error(self):
        """Test that negative parameters raise DataError."""
        with pytest.raises(DataError):
            make_instance(holding_cost=[2.0, -2.0])


class TestRunConfig:
    """Tests for run configuration models."""

    def test_defaults(self):
        """Test default run options."""
        config = RunConfig()

        assert config.time_limit_seconds == 180
        assert config.hop_horizon == 6
        assert config.solver_name is None
        assert config.allow_initial_inventory is True
        assert config.results_path == "result.csv"

    def test_rejects_non_positive_time_limit(self):
        """Test that the time limit must be positive."""
        with pytest.raises(ValidationError):
            RunConfig(time_limit_seconds=0)

    def test_format_policy_defaults(self):
        """Test default Trigeiro format policy."""
        policy = TrigeiroFormatPolicy()

        assert policy.override_unit_production_time is True
        assert policy.unit_production_time == 1.0
        assert policy.unit_production_cost == 0.0
