"""
Diagnostic plots for multiflow runs.

Example:
    from src.multiflow.diagnostics import create_multiflow_diagnostics

    result = compute_multiflow(dem, vent, dx, a, b, c)
    create_multiflow_diagnostics(result, dem, output_dir=Path("output/diagnostics"))
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)

# Colormap constants - all perceptually uniform, colorblind-friendly
FLOW_COLORMAPS = {
    "elevation": "viridis",
    "fill": "magma",
    "influence": "inferno",
    "threshold": "cividis",
    "flow": "autumn",
}


def save_flow_plot(
    data: np.ndarray,
    title: str,
    output_path: Path,
    cmap: str,
    label: str = "",
    log_scale: bool = False,
    overlay_data: Optional[np.ndarray] = None,
    overlay_cmap: Optional[str] = None,
    overlay_alpha: float = 0.6,
    vent_location: Optional[Tuple[int, int]] = None,
    figsize: tuple = (10, 8),
    dpi: int = 150,
) -> Path:
    """
    Save a single diagnostic plot to file.

    Parameters
    ----------
    data : np.ndarray
        2D array of data to plot
    title : str
        Plot title
    output_path : Path
        Output file path
    cmap : str
        Matplotlib colormap name
    label : str, optional
        Colorbar label
    log_scale : bool, optional
        Plot log10 of the positive values; zeros are left blank
    overlay_data : np.ndarray, optional
        Binary array drawn on top (e.g. the flow map)
    overlay_cmap : str, optional
        Colormap for overlay
    overlay_alpha : float, optional
        Alpha for overlay (default: 0.6)
    vent_location : tuple of int, optional
        ``(x, y)`` vent marker
    figsize : tuple, optional
        Figure size in inches
    dpi : int, optional
        Output resolution

    Returns
    -------
    Path
        Path to saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    plot_data = data.astype(float)
    display_label = label
    if log_scale:
        plot_data = np.ma.masked_where(plot_data <= 0, plot_data)
        plot_data = np.ma.log10(plot_data)
        display_label = f"log10({label})" if label else "log10"

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(plot_data, cmap=cmap, interpolation="nearest")
    plt.colorbar(im, ax=ax, label=display_label, shrink=0.8)

    if overlay_data is not None and overlay_cmap is not None:
        overlay_masked = np.ma.masked_where(overlay_data == 0, overlay_data.astype(float))
        ax.imshow(overlay_masked, cmap=overlay_cmap, alpha=overlay_alpha, interpolation="nearest")

    if vent_location is not None:
        ax.plot(vent_location[0], vent_location[1], marker="^", color="red",
                markersize=10, markeredgecolor="black", linestyle="none")

    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Column")
    ax.set_ylabel("Row")

    plt.tight_layout()
    plt.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved plot: {output_path.name}")

    return output_path


def create_multiflow_diagnostics(
    result: Dict,
    dem: np.ndarray,
    output_dir: Path,
    dpi: int = 150,
) -> Dict[str, Path]:
    """
    Generate the standard diagnostic plots for a pipeline run.

    Writes the input DEM, the fill depth, the log-influence grid and the flow
    map drawn over the DEM.

    Parameters
    ----------
    result : dict
        Output of ``compute_multiflow``
    dem : np.ndarray
        Original (unfilled) DEM
    output_dir : Path
        Directory for the PNG files
    dpi : int, optional
        Output resolution

    Returns
    -------
    dict
        Plot name -> saved path
    """
    output_dir = Path(output_dir)
    vent = result["metadata"]["vent_location"]

    plots = {
        "dem": save_flow_plot(
            dem, "Input DEM", output_dir / "01_dem.png",
            cmap=FLOW_COLORMAPS["elevation"], label="Elevation",
            vent_location=vent, dpi=dpi,
        ),
        "fill_depth": save_flow_plot(
            result["filled_dem"] - dem, "Depression Fill Depth", output_dir / "02_fill_depth.png",
            cmap=FLOW_COLORMAPS["fill"], label="Fill depth", dpi=dpi,
        ),
        "influence": save_flow_plot(
            result["influence"], "Influence", output_dir / "03_influence.png",
            cmap=FLOW_COLORMAPS["influence"], label="Influence", log_scale=True,
            vent_location=vent, dpi=dpi,
        ),
        "flow_map": save_flow_plot(
            dem, "Predicted Flow", output_dir / "04_flow_map.png",
            cmap=FLOW_COLORMAPS["elevation"], label="Elevation",
            overlay_data=result["flow_map"], overlay_cmap=FLOW_COLORMAPS["flow"],
            vent_location=vent, dpi=dpi,
        ),
    }
    logger.info(f"Saved {len(plots)} diagnostic plots to {output_dir}")
    return plots
