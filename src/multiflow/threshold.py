"""
Distance-decay threshold classification.

A cell is predicted to be inundated when

    log10(influence) > a * L**b - c

where L is the planar distance from the vent in kilometres. The threshold is
clamped to at most zero.
"""

import logging
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


def distance_from_vent(
    shape: Tuple[int, int], vent_location: Tuple[int, int], dx: float
) -> np.ndarray:
    """
    Planar distance (km) from the vent to every cell centre.

    Args:
        shape: Grid shape ``(rows, cols)``
        vent_location: ``(x, y)`` pixel coordinate of the vent
        dx: Grid resolution in metres

    Returns:
        float64 array of distances in kilometres
    """
    rows, cols = shape
    x, y = vent_location
    yy, xx = np.mgrid[0:rows, 0:cols]
    return np.hypot(xx - x, yy - y) * (dx / 1000.0)


def compute_influence_threshold(
    distance_km: np.ndarray, a: float, b: float, c: float
) -> np.ndarray:
    """
    Evaluate ``T = a * L**b - c`` and clamp it to ``T <= 0``.

    Args:
        distance_km: Distance from the vent in kilometres (non-negative)
        a: Threshold coefficient
        b: Threshold exponent, must be positive so ``0**b`` is defined
        c: Threshold intercept

    Returns:
        float64 threshold array
    """
    if not b > 0:
        raise ValueError(f"Threshold exponent b must be positive, got {b}")

    threshold = a * np.power(distance_km, b) - c
    return np.minimum(threshold, 0.0)


def classify_flow(influence: np.ndarray, threshold: np.ndarray) -> np.ndarray:
    """
    Mark cells whose log-influence exceeds the threshold.

    Zero influence is mapped to ``-inf`` before comparing, so cells that the
    vent never reaches are never marked (and no divide-by-zero warning is
    emitted).

    Args:
        influence: Non-negative influence grid
        threshold: Threshold grid of the same shape

    Returns:
        uint8 array, 1 where flow is predicted
    """
    log_influence = np.full(influence.shape, -np.inf, dtype=np.float64)
    positive = influence > 0
    np.log10(influence, out=log_influence, where=positive)

    flow_map = (log_influence > threshold).astype(np.uint8)
    logger.debug(f"Threshold classification: {int(flow_map.sum()):,} flow cells")
    return flow_map
