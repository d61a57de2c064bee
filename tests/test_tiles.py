"""Tests for line_of_sight.core.tiles."""

import numpy as np
import pytest

from line_of_sight.constants import TILE_SOURCES, TileScheme
from line_of_sight.core.geodesy import GeoCoordinate
from line_of_sight.core.tiles import (
    ElevationTile,
    TileId,
    corner_span,
    neighbors,
    northwest_corner,
    tile_filename,
    tile_for,
    tile_url,
)

MOUNT_HOOD = GeoCoordinate(45.3736, -121.6960)


class TestTileFor:
    """Tests for tile_for()."""

    def test_mount_hood_z14(self):
        assert tile_for(MOUNT_HOOD, 14) == TileId(2653, 5869, 14)

    def test_origin_z1(self):
        assert tile_for(GeoCoordinate(0.0, 0.0), 1) == TileId(1, 1, 1)

    def test_clamps_polar_latitude(self):
        n = 1 << 5
        north = tile_for(GeoCoordinate(89.9, 0.0), 5)
        south = tile_for(GeoCoordinate(-89.9, 0.0), 5)
        assert north.y == 0
        assert south.y == n - 1

    def test_degree_scheme(self):
        tile = tile_for(MOUNT_HOOD, scheme=TileScheme.DEGREE)
        assert tile == TileId(-122, 45, 0, TileScheme.DEGREE)

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="Unknown tiling scheme"):
            tile_for(MOUNT_HOOD, scheme="hexagon")

    def test_scheme_part_of_identity(self):
        assert TileId(1, 2, 0, TileScheme.MERCATOR) != TileId(1, 2, 0, TileScheme.DEGREE)


class TestCorners:
    def test_corner_contains_point(self):
        tile = tile_for(MOUNT_HOOD, 14)
        corner = northwest_corner(tile)
        lat_span, lon_span = corner_span(tile)
        assert corner.latitude - lat_span <= MOUNT_HOOD.latitude <= corner.latitude
        assert corner.longitude <= MOUNT_HOOD.longitude <= corner.longitude + lon_span

    def test_world_tile(self):
        corner = northwest_corner(TileId(0, 0, 0))
        assert corner.longitude == pytest.approx(-180.0)
        assert corner.latitude == pytest.approx(85.05112878, abs=1e-6)

    def test_last_column_span_positive(self):
        n = 1 << 3
        _, lon_span = corner_span(TileId(n - 1, 2, 3))
        assert lon_span == pytest.approx(360.0 / n)

    def test_degree_corner(self):
        tile = TileId(-122, 45, 0, TileScheme.DEGREE)
        assert northwest_corner(tile) == GeoCoordinate(46.0, -122.0)
        assert corner_span(tile) == (1.0, 1.0)


class TestNeighbors:
    def test_radius_one(self):
        tile = TileId(10, 10, 5)
        result = neighbors(tile, 1)
        assert result[0] == tile
        assert len(result) == 9
        assert len(set(result)) == 9

    def test_filters_out_of_range(self):
        assert neighbors(TileId(0, 0, 0), 1) == [TileId(0, 0, 0)]

    def test_radius_zero(self):
        assert neighbors(TileId(3, 3, 4), 0) == [TileId(3, 3, 4)]


class TestNames:
    def test_mercator_filename(self):
        assert tile_filename(TileId(2653, 5869, 14)) == "14_2653_5869.tif"

    def test_degree_filename(self):
        assert tile_filename(TileId(-122, 45, 0, TileScheme.DEGREE)) == "N46W122.tif"

    def test_southern_eastern_degree_filename(self):
        assert tile_filename(TileId(7, -34, 0, TileScheme.DEGREE)) == "S33E007.tif"

    def test_mapzen_url(self):
        url = tile_url(TileId(2653, 5869, 14), TILE_SOURCES["mapzen"]["url_template"])
        assert url.endswith("/geotiff/14/2653/5869.tif")

    def test_3dep_url(self):
        tile = TileId(-122, 45, 0, TileScheme.DEGREE)
        url = tile_url(tile, TILE_SOURCES["3dep"]["url_template"])
        assert url.endswith("/n46w122/USGS_1_n46w122.tif")

    def test_str_is_filename(self):
        assert str(TileId(1, 2, 3)) == "3_1_2.tif"


class TestElevationTile:
    """Tests for ElevationTile.elevation_at()."""

    @pytest.fixture
    def tile(self):
        samples = np.array(
            [[0.0, 10.0, 20.0], [30.0, 40.0, 50.0], [60.0, 70.0, np.nan]], dtype=np.float32
        )
        return ElevationTile(
            tile=TileId(0, 0, 0, TileScheme.DEGREE),
            samples=samples,
            origin=GeoCoordinate(1.0, 0.0),
            cell_size_lat=0.25,
            cell_size_lon=0.25,
        )

    def test_exact_sample(self, tile):
        assert tile.elevation_at(GeoCoordinate(1.0, 0.0)) == pytest.approx(0.0)
        assert tile.elevation_at(GeoCoordinate(0.75, 0.25)) == pytest.approx(40.0)

    def test_bilinear_midpoint(self, tile):
        assert tile.elevation_at(GeoCoordinate(0.875, 0.125)) == pytest.approx(20.0)

    def test_outside_returns_none(self, tile):
        assert tile.elevation_at(GeoCoordinate(1.1, 0.1)) is None
        assert tile.elevation_at(GeoCoordinate(0.5, -0.1)) is None

    def test_nan_corner_returns_none(self, tile):
        assert tile.elevation_at(GeoCoordinate(0.6, 0.4)) is None

    def test_nan_corner_without_weight_is_ignored(self, tile):
        # middle row and column sit beside the nodata corner but never weight it
        assert tile.elevation_at(GeoCoordinate(0.75, 0.375)) == pytest.approx(45.0)
        assert tile.elevation_at(GeoCoordinate(0.625, 0.25)) == pytest.approx(55.0)
        assert tile.elevation_at(GeoCoordinate(0.75, 0.5)) == pytest.approx(50.0)

    def test_last_column_extends_flat(self, tile):
        # beyond the last sample column but still inside the tile
        value = tile.elevation_at(GeoCoordinate(1.0, 0.6))
        assert value == pytest.approx(20.0)

    def test_samples_read_only(self, tile):
        with pytest.raises(ValueError):
            tile.samples[0, 0] = 1.0

    def test_shape_properties(self, tile):
        assert (tile.height, tile.width) == (3, 3)
        assert tile.nbytes == 9 * 4

    def test_contains(self, tile):
        assert tile.contains(GeoCoordinate(0.5, 0.5))
        assert not tile.contains(GeoCoordinate(2.0, 0.5))

    def test_tiny_tile_returns_none(self):
        tiny = ElevationTile(
            tile=TileId(0, 0, 0),
            samples=np.ones((1, 1), dtype=np.float32),
            origin=GeoCoordinate(1.0, 0.0),
            cell_size_lat=1.0,
            cell_size_lon=1.0,
        )
        assert tiny.elevation_at(GeoCoordinate(0.5, 0.5)) is None

