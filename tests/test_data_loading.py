"""Tests for DEM loading and GeoTIFF output."""
import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from src.multiflow.data_loading import (
    load_dem,
    load_dem_files,
    resolution_from_transform,
    save_multiflow_outputs,
    write_geotiff,
)

CRS = "EPSG:32610"


def create_sample_geotiff(path, data, transform=None, nodata=None):
    """Write a single-band GeoTIFF for tests."""
    transform = transform or from_origin(500000.0, 4000000.0, 30.0, 30.0)
    with rasterio.open(
        path, "w", driver="GTiff",
        height=data.shape[0], width=data.shape[1], count=1,
        dtype=data.dtype, crs=CRS, transform=transform, nodata=nodata,
    ) as dst:
        dst.write(data, 1)
    return path


class TestLoadDem:

    def test_loads_array_and_georeferencing(self, tmp_path, cone_dem):
        path = create_sample_geotiff(tmp_path / "dem.tif", cone_dem.astype(np.float32))

        dem, transform, crs, nodata = load_dem(path)

        assert dem.dtype == np.float64
        np.testing.assert_allclose(dem, cone_dem.astype(np.float32))
        assert transform.a == 30.0
        assert crs.to_epsg() == 32610
        assert nodata is None

    def test_nodata_becomes_nan(self, tmp_path):
        data = np.full((4, 4), 100.0, dtype=np.float32)
        data[1, 2] = -9999.0
        path = create_sample_geotiff(tmp_path / "dem.tif", data, nodata=-9999.0)

        dem, _, _, nodata = load_dem(path)

        assert nodata == -9999.0
        assert np.isnan(dem[1, 2])
        assert np.count_nonzero(np.isnan(dem)) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="DEM file not found"):
            load_dem(tmp_path / "missing.tif")


class TestLoadDemFiles:

    def test_merges_adjacent_tiles(self, tmp_path):
        left = np.full((10, 5), 1.0, dtype=np.float32)
        right = np.full((10, 5), 2.0, dtype=np.float32)
        create_sample_geotiff(tmp_path / "a.tif", left, from_origin(0.0, 10.0, 1.0, 1.0))
        create_sample_geotiff(tmp_path / "b.tif", right, from_origin(5.0, 10.0, 1.0, 1.0))

        dem, transform = load_dem_files(tmp_path)

        assert dem.shape == (10, 10)
        assert np.all(dem[:, :5] == 1.0)
        assert np.all(dem[:, 5:] == 2.0)
        assert transform.c == 0.0

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError, match="does not exist"):
            load_dem_files(tmp_path / "nowhere")

    def test_no_matching_files(self, tmp_path):
        with pytest.raises(ValueError, match="No files matching"):
            load_dem_files(tmp_path, pattern="*.hgt")


class TestResolution:

    def test_square_pixels(self):
        assert resolution_from_transform(from_origin(0.0, 0.0, 30.0, 30.0)) == 30.0

    def test_non_square_pixels_rejected(self):
        with pytest.raises(ValueError, match="Non-square"):
            resolution_from_transform(from_origin(0.0, 0.0, 30.0, 10.0))


class TestWriteOutputs:

    def test_write_geotiff_round_trip(self, tmp_path):
        data = np.arange(12, dtype=np.float64).reshape(3, 4)
        transform = from_origin(10.0, 20.0, 2.0, 2.0)

        path = write_geotiff(tmp_path / "out.tif", data, transform, CRS)

        with rasterio.open(path) as src:
            np.testing.assert_array_equal(src.read(1), data)
            assert src.transform == transform

    def test_write_geotiff_without_georeferencing(self, tmp_path):
        path = write_geotiff(tmp_path / "plain.tif", np.ones((2, 2), dtype=np.uint8))
        with rasterio.open(path) as src:
            assert src.read(1).sum() == 4

    def test_save_multiflow_outputs(self, tmp_path):
        result = {
            "influence": np.array([[1.0, 0.5], [0.25, 0.0]]),
            "flow_map": np.array([[1, 1], [0, 0]], dtype=np.uint8),
        }

        files = save_multiflow_outputs(result, tmp_path / "run")

        assert files["influence"].name == "influence.tif"
        assert files["flow_map"].name == "flow_map.tif"
        with rasterio.open(files["flow_map"]) as src:
            assert src.dtypes[0] == "uint8"
            np.testing.assert_array_equal(src.read(1), result["flow_map"])
        with rasterio.open(files["influence"]) as src:
            np.testing.assert_array_equal(src.read(1), result["influence"])
