"""
Raster I/O for the multiflow pipeline.

Loads DEMs (single files or merged tiles) and writes the influence and flow
map grids as GeoTIFFs. Any raster format readable by rasterio is supported.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import rasterio
from rasterio import Affine
from rasterio.merge import merge
from tqdm import tqdm

from src.config import DEFAULT_DEM_PATTERN, FLOW_MAP_FILENAME, INFLUENCE_FILENAME

logger = logging.getLogger(__name__)


def _mask_nodata(dem: np.ndarray, nodata: Optional[float]) -> np.ndarray:
    """Convert a DEM to float64 with NoData cells set to NaN."""
    dem = dem.astype(np.float64)
    if nodata is not None:
        nodata_count = int(np.count_nonzero(dem == nodata))
        if nodata_count:
            logger.warning(f"DEM contains {nodata_count:,} NoData cells (set to NaN)")
        dem[dem == nodata] = np.nan
    return dem


def load_dem(
    path: Union[str, Path],
) -> Tuple[np.ndarray, Affine, Optional[rasterio.crs.CRS], Optional[float]]:
    """
    Load a single-band DEM raster.

    Args:
        path: Path to the DEM file

    Returns:
        tuple: (dem, transform, crs, nodata) where:
            - dem: float64 elevation array, NoData cells set to NaN
            - transform: affine transform mapping pixel to map coordinates
            - crs: coordinate reference system (None if not georeferenced)
            - nodata: NoData value declared by the file (None if not set)

    Raises:
        FileNotFoundError: If the file does not exist
        rasterio.errors.RasterioIOError: If the file cannot be read
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"DEM file not found: {path}")

    with rasterio.open(path) as src:
        dem = src.read(1)
        transform = src.transform
        crs = src.crs
        nodata = src.nodata

    logger.info(f"Loaded DEM {path.name}: shape {dem.shape}, dtype {dem.dtype}")
    return _mask_nodata(dem, nodata), transform, crs, nodata


def load_dem_files(
    directory_path: Union[str, Path],
    pattern: str = DEFAULT_DEM_PATTERN,
    recursive: bool = False,
) -> Tuple[np.ndarray, Affine]:
    """
    Load and merge DEM tiles from a directory into a single elevation grid.

    Args:
        directory_path: Path to directory containing DEM files
        pattern: File pattern to match (default: "*.tif")
        recursive: Whether to search subdirectories recursively (default: False)

    Returns:
        tuple: (merged_dem, transform) where:
            - merged_dem: float64 elevation array, NoData cells set to NaN
            - transform: affine transform of the merged grid

    Raises:
        ValueError: If the directory does not exist or no valid DEM files are found
    """
    directory = Path(directory_path)
    logger.info(f"Searching for DEM files matching '{pattern}' in: {directory}")

    if not directory.exists():
        raise ValueError(f"Directory does not exist: {directory}")
    if not directory.is_dir():
        raise ValueError(f"Path is not a directory: {directory}")

    glob_func = directory.rglob if recursive else directory.glob
    dem_files = sorted(glob_func(pattern))
    if not dem_files:
        raise ValueError(f"No files matching '{pattern}' found in {directory}")

    dem_datasets = []
    try:
        with tqdm(dem_files, desc="Opening DEM files") as pbar:
            for file in pbar:
                try:
                    ds = rasterio.open(file)
                except rasterio.errors.RasterioIOError as e:
                    logger.warning(f"Failed to open {file}: {str(e)}")
                    continue

                if ds.count == 0:
                    logger.warning(f"No raster bands found in {file}")
                    ds.close()
                    continue

                dem_datasets.append(ds)
                pbar.set_postfix({"opened": len(dem_datasets)})

        if not dem_datasets:
            raise ValueError("No valid DEM files could be opened")

        logger.info(f"Successfully opened {len(dem_datasets)} DEM files")
        nodata = dem_datasets[0].nodata
        merged, transform = merge(dem_datasets)
    finally:
        for ds in dem_datasets:
            ds.close()

    # merge() returns (bands, height, width)
    merged_dem = _mask_nodata(merged[0], nodata)
    logger.info(f"Merged DEM shape: {merged_dem.shape}")
    return merged_dem, transform


def resolution_from_transform(transform: Affine) -> float:
    """
    Grid resolution (pixel width) from an affine transform.

    Raises ``ValueError`` for non-square pixels, since the pipeline assumes a
    single ``dx`` for both axes.
    """
    dx = abs(transform.a)
    dy = abs(transform.e)
    if not np.isclose(dx, dy, rtol=1e-6):
        raise ValueError(f"Non-square pixels are not supported (dx={dx}, dy={dy})")
    return float(dx)


def write_geotiff(
    path: Union[str, Path],
    data: np.ndarray,
    transform: Optional[Affine] = None,
    crs: Optional[rasterio.crs.CRS] = None,
) -> Path:
    """
    Write a 2D array to a single-band GeoTIFF file.

    Parameters
    ----------
    path : str or Path
        Output file path
    data : np.ndarray
        Data array to write
    transform : Affine, optional
        Affine transform (identity if None)
    crs : rasterio.crs.CRS, optional
        Coordinate reference system

    Returns
    -------
    Path
        Path to the written file
    """
    path = Path(path)
    height, width = data.shape

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data.dtype,
        crs=crs,
        transform=transform if transform is not None else Affine.identity(),
        compress="lzw",
    ) as dst:
        dst.write(data, 1)

    return path


def save_multiflow_outputs(
    result: Dict,
    output_dir: Union[str, Path],
    transform: Optional[Affine] = None,
    crs: Optional[rasterio.crs.CRS] = None,
) -> Dict[str, Path]:
    """
    Write the influence grid and flow map of a pipeline run.

    Parameters
    ----------
    result : dict
        Output of ``compute_multiflow``
    output_dir : str or Path
        Directory for the GeoTIFFs (created if missing)
    transform, crs : optional
        Georeferencing copied from the input DEM

    Returns
    -------
    dict
        ``{"influence": Path, "flow_map": Path}``
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    files = {
        "influence": write_geotiff(
            output_dir / INFLUENCE_FILENAME,
            result["influence"].astype(np.float64),
            transform,
            crs,
        ),
        "flow_map": write_geotiff(
            output_dir / FLOW_MAP_FILENAME,
            result["flow_map"].astype(np.uint8),
            transform,
            crs,
        ),
    }
    logger.info(f"Saved outputs to {output_dir}")
    return files
