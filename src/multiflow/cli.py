"""
Command-line entry point.

Usage:
    multiflow dem.tif params.json --output-dir output/run1 --plots
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from src.config import DEFAULT_LOG_LEVEL, DIAGNOSTICS_SUBDIR, OUTPUT_DIR
from src.multiflow.data_loading import load_dem, resolution_from_transform, save_multiflow_outputs
from src.multiflow.errors import MultiflowError
from src.multiflow.parameters import load_parameters
from src.multiflow.pipeline import compute_multiflow

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multiflow",
        description="Predict a single-vent flow footprint with multi-direction flow routing",
    )
    parser.add_argument('dem', type=Path, help='DEM raster (any rasterio-readable format)')
    parser.add_argument('params', type=Path, help='JSON parameter file (a, b, c, vent_location, dx)')
    parser.add_argument('--output-dir', type=Path, default=OUTPUT_DIR,
                        help=f'Directory for influence.tif and flow_map.tif (default: {OUTPUT_DIR})')
    parser.add_argument('--plots', action='store_true',
                        help='Also write diagnostic PNG plots')
    parser.add_argument('--log-level', type=str, default=DEFAULT_LOG_LEVEL,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help=f'Logging level (default: {DEFAULT_LOG_LEVEL})')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        params = load_parameters(args.params)
        dem, transform, crs, _ = load_dem(args.dem)

        if params.dx is None:
            try:
                dx = resolution_from_transform(transform)
            except ValueError as e:
                logger.error(f"Cannot derive dx from DEM: {e}")
                return 2
            params = params.with_dx(dx)
            logger.info(f"Using DEM pixel width as dx: {params.dx}")

        result = compute_multiflow(
            dem,
            params.vent_location,
            params.dx,
            params.a,
            params.b,
            params.c,
            routing_exponent=params.routing_exponent,
            fill_epsilon=params.fill_epsilon,
        )
    except (MultiflowError, FileNotFoundError) as e:
        logger.error(str(e))
        return 2

    files = save_multiflow_outputs(result, args.output_dir, transform, crs)
    for name, path in files.items():
        print(f"  {name}: {path}")

    if args.plots:
        from src.multiflow.diagnostics import create_multiflow_diagnostics
        create_multiflow_diagnostics(result, dem, args.output_dir / DIAGNOSTICS_SUBDIR)

    return 0


if __name__ == "__main__":
    sys.exit(main())
