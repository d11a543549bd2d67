"""
Tests for single-vent influence accumulation.
"""

import numpy as np
import pytest

from src.multiflow.accumulation import (
    accumulate_influence,
    check_vent_location,
    find_terminal_cells,
)
from src.multiflow.errors import OutOfBoundsError
from src.multiflow.flow_routing import compute_flow_weights
from src.multiflow.sink_fill import priority_flood_fill


def _route(dem, dx=10.0):
    filled = priority_flood_fill(dem)
    return filled, compute_flow_weights(filled, dx=dx)


class TestAccumulateInfluence:
    """Test suite for accumulate_influence."""

    def test_single_path_carries_full_influence(self):
        dem = np.array([[3.0, 2.0, 1.0]])
        weights = compute_flow_weights(dem, dx=1.0)

        influence = accumulate_influence(dem, weights, (0, 0))

        np.testing.assert_array_equal(influence, [[1.0, 1.0, 1.0]])

    def test_symmetric_split(self):
        dem = np.array([
            [9.0, 10.0, 9.0],
            [20.0, 20.0, 20.0],
        ])
        weights = compute_flow_weights(dem, dx=1.0)

        influence = accumulate_influence(dem, weights, (1, 0))

        np.testing.assert_allclose(influence, [[0.5, 1.0, 0.5], [0.0, 0.0, 0.0]])

    def test_vent_self_influence_is_exactly_one(self, cone_dem):
        filled, weights = _route(cone_dem)
        influence = accumulate_influence(filled, weights, (20, 20))
        assert influence[20, 20] == 1.0

    def test_vent_on_slope_is_exactly_one(self, rough_dem):
        filled, weights = _route(rough_dem)
        influence = accumulate_influence(filled, weights, (25, 12))
        assert influence[12, 25] == 1.0

    def test_influence_conserved_at_terminal_cells(self, cone_dem):
        """All injected influence ends up in cells without outflow."""
        filled, weights = _route(cone_dem)
        influence = accumulate_influence(filled, weights, (20, 20))

        terminal = find_terminal_cells(weights)
        assert influence[terminal].sum() == pytest.approx(1.0, rel=1e-9)

    def test_influence_conserved_on_rough_terrain(self, rough_dem):
        filled, weights = _route(rough_dem)
        influence = accumulate_influence(filled, weights, (3, 2))

        terminal = find_terminal_cells(weights)
        assert influence[terminal].sum() == pytest.approx(1.0, rel=1e-9)

    def test_influence_conserved_in_closed_bowl(self):
        """A bowl fills to its rim and still delivers the whole unit to the outlet."""
        yy, xx = np.mgrid[0:21, 0:21]
        dem = np.hypot(xx - 10, yy - 10)
        dem[0, 10] = -5.0  # single notch in the rim
        filled, weights = _route(dem)

        influence = accumulate_influence(filled, weights, (5, 5))

        assert influence[0, 10] == pytest.approx(1.0, rel=1e-9)

    def test_influence_bounded_by_vent_value(self, rough_dem):
        filled, weights = _route(rough_dem)
        influence = accumulate_influence(filled, weights, (3, 2))

        assert np.all(influence >= 0.0)
        assert np.all(influence <= 1.0)

    def test_upslope_cells_receive_nothing(self, ramp_dem):
        filled, weights = _route(ramp_dem)
        influence = accumulate_influence(filled, weights, (2, 2))

        uphill = filled > filled[2, 2]
        assert np.all(influence[uphill] == 0.0)

    def test_does_not_modify_inputs(self, cone_dem):
        filled, weights = _route(cone_dem)
        filled_copy, weights_copy = filled.copy(), weights.copy()

        accumulate_influence(filled, weights, (20, 20))

        np.testing.assert_array_equal(filled, filled_copy)
        np.testing.assert_array_equal(weights, weights_copy)

    @pytest.mark.parametrize("vent", [(5, 0), (0, 5), (-1, 0), (0, -1), (10, 10)])
    def test_vent_outside_grid_rejected(self, ramp_dem, vent):
        filled, weights = _route(ramp_dem)
        with pytest.raises(OutOfBoundsError):
            accumulate_influence(filled, weights, vent)

    def test_mismatched_weights_rejected(self, ramp_dem):
        weights = np.zeros((4, 5, 8))
        with pytest.raises(ValueError, match="shape"):
            accumulate_influence(ramp_dem, weights, (0, 0))


class TestCheckVentLocation:
    """Vent bounds use (x, y) = (column, row)."""

    def test_accepts_last_cell(self):
        check_vent_location((3, 7), (6, 2))

    def test_x_is_column(self):
        with pytest.raises(OutOfBoundsError, match="x=7"):
            check_vent_location((3, 7), (7, 0))

    def test_y_is_row(self):
        with pytest.raises(OutOfBoundsError, match="y=3"):
            check_vent_location((3, 7), (0, 3))


class TestFindTerminalCells:

    def test_ramp_has_single_terminal_corner(self, ramp_dem):
        weights = compute_flow_weights(ramp_dem, dx=1.0)
        terminal = find_terminal_cells(weights)
        assert terminal[4, 4]
        assert terminal.sum() == 1
