"""
Single-source influence accumulation over the MFD flow graph.

A unit weight is injected at the vent and pushed downhill along the weighted
edges produced by ``compute_flow_weights``. Because every edge points to a
strictly lower cell, visiting cells once in descending elevation order is a
valid topological order: a cell's inflow is complete before it is visited.
"""

import logging
from typing import Tuple

import numpy as np
from numba import jit

from src.multiflow.errors import OutOfBoundsError
from src.multiflow.flow_routing import MFD_OFFSETS

logger = logging.getLogger(__name__)


def check_vent_location(shape: Tuple[int, int], vent_location: Tuple[int, int]) -> None:
    """
    Raise ``OutOfBoundsError`` unless ``vent_location`` lies inside ``shape``.

    ``vent_location`` is ``(x, y)``: x is the column, y the row.
    """
    rows, cols = shape
    x, y = vent_location
    if not (0 <= x < cols and 0 <= y < rows):
        raise OutOfBoundsError(
            f"Vent location (x={x}, y={y}) is outside the grid "
            f"(x in [0, {cols}), y in [0, {rows}))"
        )


@jit(nopython=True, cache=True)
def _accumulate_influence_jit(
    order: np.ndarray,
    start: int,
    weights: np.ndarray,
    offsets: np.ndarray,
    influence: np.ndarray,
) -> int:
    """
    JIT-compiled propagation in topological order (numba accelerated).

    ``influence`` (flat, float64) must already hold the injected weight at
    the vent. Returns the number of cells that received influence.
    """
    rows = weights.shape[0]
    cols = weights.shape[1]
    reached = 0

    for n in range(start, order.shape[0]):
        flat_idx = order[n]
        value = influence[flat_idx]
        if value <= 0.0:
            continue
        reached += 1

        i = flat_idx // cols
        j = flat_idx % cols
        for k in range(8):
            w = weights[i, j, k]
            if w > 0.0:
                ni = i + offsets[k, 0]
                nj = j + offsets[k, 1]
                if 0 <= ni < rows and 0 <= nj < cols:
                    influence[ni * cols + nj] += value * w

    return reached


def accumulate_influence(
    dem: np.ndarray,
    weights: np.ndarray,
    vent_location: Tuple[int, int],
) -> np.ndarray:
    """
    Accumulate influence from a single vent cell.

    Parameters
    ----------
    dem : np.ndarray
        Depression-filled DEM the weights were computed from
    weights : np.ndarray
        MFD weights, shape ``(rows, cols, 8)``
    vent_location : tuple of int
        ``(x, y)`` pixel coordinate of the vent (column, row)

    Returns
    -------
    np.ndarray (float64)
        Influence grid in [0, 1]. The vent holds exactly 1.0; cells that are
        not downstream of the vent hold 0.

    Raises
    ------
    OutOfBoundsError
        If the vent lies outside the grid.

    Notes
    -----
    Cells are sorted once by descending elevation (stable sort, so ties keep
    row-major order) and processing starts at the vent's position: nothing
    ahead of it in the order can be downstream of it. Values are clipped to
    1.0 afterwards to drop floating-point round-off above the injected unit.
    """
    if weights.shape[:2] != dem.shape or weights.shape[2] != 8:
        raise ValueError(
            f"weights shape {weights.shape} does not match DEM shape {dem.shape}"
        )
    check_vent_location(dem.shape, vent_location)

    rows, cols = dem.shape
    x, y = int(vent_location[0]), int(vent_location[1])
    vent_idx = y * cols + x

    order = np.argsort(-np.asarray(dem, dtype=np.float64).ravel(), kind="stable")
    start = int(np.flatnonzero(order == vent_idx)[0])

    influence = np.zeros(rows * cols, dtype=np.float64)
    influence[vent_idx] = 1.0

    reached = _accumulate_influence_jit(
        order, start, np.ascontiguousarray(weights, dtype=np.float64), MFD_OFFSETS, influence
    )
    logger.info(f"Influence reached {reached:,} cells from vent (x={x}, y={y})")

    np.clip(influence, 0.0, 1.0, out=influence)
    return influence.reshape(rows, cols)


def find_terminal_cells(weights: np.ndarray) -> np.ndarray:
    """Boolean mask of cells with no outgoing edge (flow leaves the graph there)."""
    return ~np.any(weights > 0.0, axis=2)
