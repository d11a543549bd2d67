"""Tests for multiflow diagnostic plots."""
import numpy as np

from src.multiflow.diagnostics import create_multiflow_diagnostics, save_flow_plot
from src.multiflow.pipeline import compute_multiflow


def test_save_flow_plot_log_scale_with_zeros(tmp_path):
    data = np.zeros((10, 10))
    data[2:5, 2:5] = 0.3
    data[3, 3] = 1.0

    path = save_flow_plot(data, "Influence", tmp_path / "influence.png",
                          cmap="inferno", label="Influence", log_scale=True,
                          vent_location=(3, 3), dpi=50)

    assert path.exists()
    assert path.stat().st_size > 0


def test_save_flow_plot_with_overlay(tmp_path):
    dem = np.random.default_rng(0).random((8, 8))
    overlay = np.zeros((8, 8), dtype=np.uint8)
    overlay[2:4, 2:6] = 1

    path = save_flow_plot(dem, "Flow", tmp_path / "sub" / "flow.png", cmap="viridis",
                          overlay_data=overlay, overlay_cmap="autumn", dpi=50)

    assert path.exists()


def test_create_multiflow_diagnostics(tmp_path, cone_dem):
    result = compute_multiflow(cone_dem, (20, 20), dx=100.0, a=0.0, b=1.0, c=2.0)

    plots = create_multiflow_diagnostics(result, cone_dem, tmp_path, dpi=50)

    assert set(plots) == {"dem", "fill_depth", "influence", "flow_map"}
    for path in plots.values():
        assert path.exists()
