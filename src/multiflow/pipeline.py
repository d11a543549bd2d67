"""
Single-vent flow footprint pipeline.

Combines the stages into one run:
1. Depression filling (priority-flood with epsilon gradient)
2. Multiple-flow-direction routing weights
3. Influence accumulation from the vent
4. Distance-decay threshold classification
5. Largest connected region selection

Inputs are validated eagerly; no stage runs on invalid input.
"""

import logging
import numbers
from typing import Any, Dict, Tuple

import numpy as np

from src.config import DEFAULT_FILL_EPSILON, DEFAULT_ROUTING_EXPONENT
from src.multiflow.accumulation import accumulate_influence, check_vent_location
from src.multiflow.components import select_largest_component
from src.multiflow.errors import DegenerateGridError, InvalidInputError
from src.multiflow.flow_routing import compute_flow_weights
from src.multiflow.sink_fill import priority_flood_fill
from src.multiflow.threshold import (
    classify_flow,
    compute_influence_threshold,
    distance_from_vent,
)

logger = logging.getLogger(__name__)


def _require_finite(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name} must be a real number, got {value!r}")
    if not np.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    return float(value)


def validate_inputs(
    elevation: np.ndarray,
    vent_location: Tuple[int, int],
    dx: float,
    a: float,
    b: float,
    c: float,
    routing_exponent: float = DEFAULT_ROUTING_EXPONENT,
    fill_epsilon: float = DEFAULT_FILL_EPSILON,
) -> np.ndarray:
    """
    Validate all pipeline inputs before any computation.

    Returns
    -------
    np.ndarray (float64)
        The elevation grid as a float64 array.

    Raises
    ------
    InvalidInputError
        Non-numeric or non-2D elevation, NaN/inf elevations, bad ``dx``,
        ``b <= 0``, non-finite threshold parameters, bad routing exponent or
        fill epsilon, non-integer vent coordinates.
    DegenerateGridError
        Grid smaller than 2x2 or entirely flat.
    OutOfBoundsError
        Vent outside the grid.
    """
    elevation = np.asarray(elevation)
    if elevation.ndim != 2:
        raise InvalidInputError(f"Elevation must be a 2D grid, got {elevation.ndim}D")
    if not (np.issubdtype(elevation.dtype, np.integer) or np.issubdtype(elevation.dtype, np.floating)):
        raise InvalidInputError(f"Elevation must be numeric, got dtype {elevation.dtype}")

    rows, cols = elevation.shape
    if rows < 2 or cols < 2:
        raise DegenerateGridError(f"Grid must be at least 2x2, got {rows}x{cols}")

    elevation = elevation.astype(np.float64)
    non_finite = int(np.count_nonzero(~np.isfinite(elevation)))
    if non_finite:
        raise InvalidInputError(
            f"Elevation contains {non_finite:,} non-finite values (NaN or inf)"
        )
    if np.ptp(elevation) == 0:
        raise DegenerateGridError("Elevation grid is entirely flat, no relief to route flow over")

    if (
        len(vent_location) != 2
        or any(isinstance(v, bool) or not isinstance(v, numbers.Integral) for v in vent_location)
    ):
        raise InvalidInputError(
            f"Vent location must be an (x, y) pair of integers, got {vent_location!r}"
        )

    dx = _require_finite("dx", dx)
    if dx <= 0:
        raise InvalidInputError(f"dx must be positive, got {dx}")

    _require_finite("a", a)
    b = _require_finite("b", b)
    if b <= 0:
        raise InvalidInputError(f"Threshold exponent b must be positive, got {b}")
    _require_finite("c", c)

    routing_exponent = _require_finite("routing_exponent", routing_exponent)
    if routing_exponent <= 0:
        raise InvalidInputError(f"routing_exponent must be positive, got {routing_exponent}")
    fill_epsilon = _require_finite("fill_epsilon", fill_epsilon)
    if fill_epsilon <= 0:
        # flats must be graded or interior cells are left without a receiver
        raise InvalidInputError(f"fill_epsilon must be positive, got {fill_epsilon}")

    check_vent_location(elevation.shape, vent_location)
    return elevation


def compute_multiflow(
    elevation: np.ndarray,
    vent_location: Tuple[int, int],
    dx: float,
    a: float,
    b: float,
    c: float,
    routing_exponent: float = DEFAULT_ROUTING_EXPONENT,
    fill_epsilon: float = DEFAULT_FILL_EPSILON,
) -> Dict[str, Any]:
    """
    Run the full pipeline and return every intermediate product.

    Parameters
    ----------
    elevation : np.ndarray
        MxN elevation grid (depressions do not need to be filled). Not modified.
    vent_location : tuple of int
        ``(x, y)`` pixel coordinate of the vent, 0-based (x = column, y = row)
    dx : float
        Grid resolution in metres
    a, b, c : float
        Threshold function ``log10(influence) > a * L**b - c``, L in km
    routing_exponent : float, default 1.1
        MFD dispersal exponent
    fill_epsilon : float, default 1e-6
        Gradient applied across filled depressions and flats, must be positive

    Returns
    -------
    dict
        Dictionary with keys:
        - 'influence': np.ndarray, accumulated influence in [0, 1]
        - 'flow_map': np.ndarray (uint8), largest connected flow region
        - 'raw_flow_map': np.ndarray (uint8), thresholded map before region selection
        - 'filled_dem': np.ndarray, depression-filled DEM
        - 'threshold': np.ndarray, clamped log-influence threshold
        - 'distance_km': np.ndarray, distance from the vent
        - 'metadata': dict, run parameters and cell counts

    Examples
    --------
    >>> result = compute_multiflow(dem, (120, 45), dx=30.0, a=0.5, b=1.0, c=6.0)
    >>> footprint = result['flow_map']
    """
    elevation = validate_inputs(
        elevation, vent_location, dx, a, b, c, routing_exponent, fill_epsilon
    )
    vent_location = (int(vent_location[0]), int(vent_location[1]))
    rows, cols = elevation.shape
    logger.info(
        f"Multiflow run: {rows}x{cols} grid, vent (x={vent_location[0]}, y={vent_location[1]}), "
        f"dx={dx}, a={a}, b={b}, c={c}"
    )

    logger.info("1. Filling depressions...")
    filled = priority_flood_fill(elevation, epsilon=fill_epsilon)

    logger.info("2. Computing MFD routing weights...")
    weights = compute_flow_weights(filled, dx, exponent=routing_exponent)
    if not np.any(weights[vent_location[1], vent_location[0]] > 0):
        logger.warning("Vent cell has no downhill neighbor, influence stays at the vent")

    logger.info("3. Accumulating influence...")
    influence = accumulate_influence(filled, weights, vent_location)
    del weights

    logger.info("4. Applying distance threshold...")
    distance_km = distance_from_vent(elevation.shape, vent_location, dx)
    threshold = compute_influence_threshold(distance_km, a, b, c)
    raw_flow_map = classify_flow(influence, threshold)

    logger.info("5. Selecting largest connected region...")
    flow_map = select_largest_component(raw_flow_map)

    metadata = {
        "shape": (rows, cols),
        "vent_location": vent_location,
        "dx": float(dx),
        "a": float(a),
        "b": float(b),
        "c": float(c),
        "routing_exponent": float(routing_exponent),
        "fill_epsilon": float(fill_epsilon),
        "cells_reached": int(np.count_nonzero(influence)),
        "raw_flow_cells": int(raw_flow_map.sum()),
        "flow_cells": int(flow_map.sum()),
    }
    logger.info(
        f"Flow footprint: {metadata['flow_cells']:,} cells "
        f"({metadata['raw_flow_cells']:,} before region selection)"
    )

    return {
        "influence": influence,
        "flow_map": flow_map,
        "raw_flow_map": raw_flow_map,
        "filled_dem": filled,
        "threshold": threshold,
        "distance_km": distance_km,
        "metadata": metadata,
    }


def multiflow(
    elevation: np.ndarray,
    vent_location: Tuple[int, int],
    dx: float,
    a: float,
    b: float,
    c: float,
    routing_exponent: float = DEFAULT_ROUTING_EXPONENT,
    fill_epsilon: float = DEFAULT_FILL_EPSILON,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the influence grid and flow map for a single vent.

    Returns
    -------
    tuple of np.ndarray
        ``(influence, flow_map)``; see ``compute_multiflow``.
    """
    result = compute_multiflow(
        elevation, vent_location, dx, a, b, c,
        routing_exponent=routing_exponent,
        fill_epsilon=fill_epsilon,
    )
    return result["influence"], result["flow_map"]
