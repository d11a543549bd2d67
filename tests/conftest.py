"""Pytest configuration and fixtures for multiflow tests."""
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import numpy as np


def make_ramp(shape=(5, 5), high=10.0, low=0.0):
    """Planar ramp descending from the (0, 0) corner to the opposite corner."""
    rows, cols = shape
    yy, xx = np.mgrid[0:rows, 0:cols]
    steps = (rows - 1) + (cols - 1)
    return high - (high - low) * (xx + yy) / steps


def make_cone(size=41, peak=1000.0, slope=10.0):
    """Conical volcano with its summit at the grid centre."""
    center = size // 2
    yy, xx = np.mgrid[0:size, 0:size]
    return peak - slope * np.hypot(xx - center, yy - center)


@pytest.fixture
def ramp_dem():
    """5x5 ramp from (0, 0) = 10 down to (4, 4) = 0."""
    return make_ramp()


@pytest.fixture
def cone_dem():
    """41x41 cone, summit (x=20, y=20)."""
    return make_cone()


@pytest.fixture
def pit_dem():
    """5x5 plateau with a low rim and a single-cell pit in the middle."""
    dem = np.full((5, 5), 10.0)
    dem[0, :] = dem[-1, :] = 5.0
    dem[:, 0] = dem[:, -1] = 5.0
    dem[2, 2] = 2.0
    return dem


@pytest.fixture
def rough_dem():
    """Random rough terrain with many small depressions."""
    rng = np.random.default_rng(42)
    base = make_ramp((30, 40), high=200.0, low=100.0)
    return base + rng.normal(0.0, 5.0, size=base.shape)
