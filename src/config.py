"""Configuration module for the multiflow project.

Centralizes output paths and default model settings.
"""
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Output directories (created by the CLI when written to)
OUTPUT_DIR = PROJECT_ROOT / "output"
# Diagnostic plots go in this subdirectory of the run output directory
DIAGNOSTICS_SUBDIR = "diagnostics"

# Output file names
INFLUENCE_FILENAME = "influence.tif"
FLOW_MAP_FILENAME = "flow_map.tif"

# Model defaults
# Multiple-flow-direction dispersal exponent (Freeman, 1991)
DEFAULT_ROUTING_EXPONENT = 1.1
# Elevation increment per flooded cell, resolves flats during sink filling
DEFAULT_FILL_EPSILON = 1e-6

# Default settings
DEFAULT_DEM_PATTERN = "*.tif"
DEFAULT_LOG_LEVEL = "INFO"
