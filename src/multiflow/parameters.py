"""
Run parameters for the multiflow pipeline.

Parameters are stored as JSON:

    {
        "a": 0.5,
        "b": 1.0,
        "c": 6.0,
        "vent_location": [120, 45],
        "dx": 30.0,
        "routing_exponent": 1.1,
        "fill_epsilon": 1e-6
    }

``dx`` may be null (or omitted) when the DEM is a georeferenced raster; the
CLI then takes it from the raster's pixel width. ``routing_exponent`` and
``fill_epsilon`` are optional.
"""

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from src.config import DEFAULT_FILL_EPSILON, DEFAULT_ROUTING_EXPONENT
from src.multiflow.errors import InvalidInputError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("a", "b", "c", "vent_location")


@dataclass(frozen=True)
class FlowParameters:
    """
    Threshold constants, vent and routing settings for one run.

    Attributes:
        a: Threshold coefficient
        b: Threshold exponent (positive)
        c: Threshold intercept
        vent_location: ``(x, y)`` pixel coordinate of the vent, 0-based
        dx: Grid resolution in metres, None to take it from the DEM raster
        routing_exponent: MFD dispersal exponent
        fill_epsilon: Gradient applied across filled depressions and flats (positive)
    """

    a: float
    b: float
    c: float
    vent_location: Tuple[int, int]
    dx: Optional[float] = None
    routing_exponent: float = DEFAULT_ROUTING_EXPONENT
    fill_epsilon: float = DEFAULT_FILL_EPSILON

    def __post_init__(self):
        """Validate the parameter set shape; value ranges are checked by the pipeline."""
        if self.b <= 0:
            raise InvalidInputError(f"Threshold exponent b must be positive, got {self.b}")
        if self.dx is not None and self.dx <= 0:
            raise InvalidInputError(f"dx must be positive, got {self.dx}")
        if self.fill_epsilon <= 0:
            raise InvalidInputError(f"fill_epsilon must be positive, got {self.fill_epsilon}")

    def with_dx(self, dx: float) -> "FlowParameters":
        """Return a copy with ``dx`` set."""
        return replace(self, dx=dx)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "vent_location": list(self.vent_location),
            "dx": self.dx,
            "routing_exponent": self.routing_exponent,
            "fill_epsilon": self.fill_epsilon,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowParameters":
        """Deserialize from dictionary."""
        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise InvalidInputError(f"Missing parameter(s): {', '.join(missing)}")

        vent = data["vent_location"]
        if not isinstance(vent, (list, tuple)) or len(vent) != 2:
            raise InvalidInputError(
                f"vent_location must be an [x, y] pair, got {vent!r}"
            )
        if any(isinstance(v, bool) or not isinstance(v, int) for v in vent):
            raise InvalidInputError(
                f"vent_location must contain integer pixel coordinates, got {vent!r}"
            )

        try:
            a = float(data["a"])
            b = float(data["b"])
            c = float(data["c"])
            dx = float(data["dx"]) if data.get("dx") is not None else None
            routing_exponent = float(data.get("routing_exponent", DEFAULT_ROUTING_EXPONENT))
            fill_epsilon = float(data.get("fill_epsilon", DEFAULT_FILL_EPSILON))
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed parameter value: {e}") from e

        return cls(
            a=a,
            b=b,
            c=c,
            vent_location=(vent[0], vent[1]),
            dx=dx,
            routing_exponent=routing_exponent,
            fill_epsilon=fill_epsilon,
        )


def load_parameters(path: Union[str, Path]) -> FlowParameters:
    """
    Load run parameters from a JSON file.

    Args:
        path: Path to the JSON parameter file

    Returns:
        FlowParameters

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputError: If the file is not valid JSON or misses keys
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Parameter file not found: {path}")

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Parameter file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidInputError(f"Parameter file {path} must contain a JSON object")

    params = FlowParameters.from_dict(data)
    logger.info(f"Loaded parameters from {path}: {params.to_dict()}")
    return params


def save_parameters(params: FlowParameters, path: Union[str, Path]) -> Path:
    """Write run parameters to a JSON file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(params.to_dict(), f, indent=2)
    return path
