"""
Single-vent flow footprint prediction.

Core functionality:
- Priority-flood depression filling
- Multiple-flow-direction (MFD) routing weights
- Influence accumulation from a single vent
- Distance-decay threshold classification
- Largest connected region selection
"""

from .errors import (
    MultiflowError,
    InvalidInputError,
    OutOfBoundsError,
    DegenerateGridError,
)
from .sink_fill import priority_flood_fill, find_interior_pits
from .flow_routing import compute_flow_weights, receiver_offsets
from .accumulation import accumulate_influence, find_terminal_cells
from .threshold import distance_from_vent, compute_influence_threshold, classify_flow
from .components import select_largest_component
from .pipeline import validate_inputs, compute_multiflow, multiflow
from .parameters import FlowParameters, load_parameters, save_parameters

__all__ = [
    "MultiflowError",
    "InvalidInputError",
    "OutOfBoundsError",
    "DegenerateGridError",
    "priority_flood_fill",
    "find_interior_pits",
    "compute_flow_weights",
    "receiver_offsets",
    "accumulate_influence",
    "find_terminal_cells",
    "distance_from_vent",
    "compute_influence_threshold",
    "classify_flow",
    "select_largest_component",
    "validate_inputs",
    "compute_multiflow",
    "multiflow",
    "FlowParameters",
    "load_parameters",
    "save_parameters",
]
