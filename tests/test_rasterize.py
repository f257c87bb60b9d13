import base64
import logging

import numpy as np
import pytest

from filetgrid.motifs import create_placed_motif
from filetgrid.rasterize import (
    decode_motif_image,
    footprint_size,
    rasterize_motif,
    sample_motif,
    stamp_footprint,
)


class TestDecode:
    def test_bytes(self, black_png):
        result = decode_motif_image(black_png, generation=3)
        assert result.ok
        assert result.image.mode == 'RGBA'
        assert result.generation == 3

    def test_data_url(self, black_png):
        url = 'data:image/png;base64,' + base64.b64encode(black_png).decode()
        assert decode_motif_image(url).ok

    def test_file_path(self, tmp_path, black_png):
        path = tmp_path / 'motif.png'
        path.write_bytes(black_png)
        assert decode_motif_image(str(path)).ok

    def test_garbage(self):
        result = decode_motif_image(b'not an image')
        assert not result.ok
        assert result.error.startswith('Failed to load image')

    def test_missing_file(self, tmp_path):
        assert not decode_motif_image(str(tmp_path / 'nope.png')).ok

    def test_no_source(self):
        assert not decode_motif_image(None).ok


class TestFootprint:
    @pytest.mark.parametrize('size, expected', [
        (1.0, 25),
        (1.2, 30),
        (0.5, 13),
        (0.1, 5),
        (10, 100),
    ])
    def test_footprint_size(self, size, expected):
        assert footprint_size(size) == expected


class TestSample:
    def test_black_fills_everything(self, black_image):
        ink = sample_motif(black_image, 1.0, 128)
        assert ink.shape == (25, 25)
        assert ink.all()

    def test_threshold_zero_fills_nothing(self, black_image):
        assert not sample_motif(black_image, 1.0, 0).any()

    def test_white_never_fills(self, white_png):
        image = decode_motif_image(white_png).image
        assert not sample_motif(image, 1.0, 255).any()

    def test_transparent_never_fills(self, transparent_png):
        image = decode_motif_image(transparent_png).image
        assert not sample_motif(image, 1.0, 255).any()

    def test_flip_horizontal(self, left_half_black_png):
        image = decode_motif_image(left_half_black_png).image
        ink = sample_motif(image, 1.0, 128)
        assert ink[:, 0].all() and not ink[:, -1].any()

        flipped = sample_motif(image, 1.0, 128, flip_horizontal=True)
        assert flipped[:, -1].all() and not flipped[:, 0].any()

    def test_flip_vertical_keeps_columns(self, left_half_black_png):
        image = decode_motif_image(left_half_black_png).image
        ink = sample_motif(image, 1.0, 128)
        assert np.array_equal(sample_motif(image, 1.0, 128, flip_vertical=True), ink)


class TestStamp:
    def test_clipped_at_corner(self):
        grid = np.zeros((10, 10), dtype=bool)
        landed = stamp_footprint(grid, np.ones((5, 5), dtype=bool), 0, 0)
        assert landed == 9
        assert grid[:3, :3].all()
        assert np.count_nonzero(grid) == 9

    def test_fully_outside(self):
        grid = np.zeros((10, 10), dtype=bool)
        assert stamp_footprint(grid, np.ones((5, 5), dtype=bool), 100, 100) == 0
        assert not grid.any()

    def test_never_clears(self):
        grid = np.zeros((10, 10), dtype=bool)
        grid[5, 5] = True
        stamp_footprint(grid, np.zeros((5, 5), dtype=bool), 5, 5)
        assert grid[5, 5]


class TestRasterizeMotif:
    def test_rasterize(self, black_png):
        grid = np.zeros((40, 40), dtype=bool)
        motif = create_placed_motif('square', 50, 50, 'Square', image_data=black_png)
        assert rasterize_motif(grid, motif, 20, 20) == 625
        assert grid[8:33, 8:33].all()

    def test_union_of_overlapping_motifs(self, black_png):
        grid = np.zeros((40, 40), dtype=bool)
        motif = create_placed_motif('square', 50, 50, 'Square', image_data=black_png, size=0.2)
        rasterize_motif(grid, motif, 10, 10)
        rasterize_motif(grid, motif, 12, 10)
        assert np.count_nonzero(grid) == 5 * 7

    def test_decode_failure_contributes_nothing(self, caplog):
        grid = np.zeros((10, 10), dtype=bool)
        motif = create_placed_motif('broken', 50, 50, 'Broken', image_data=b'garbage')
        with caplog.at_level(logging.WARNING):
            assert rasterize_motif(grid, motif, 5, 5) == 0
        assert not grid.any()
        assert 'Broken' in caplog.text

    def test_library_motif_without_image(self):
        grid = np.zeros((10, 10), dtype=bool)
        motif = create_placed_motif('heart', 50, 50, 'Heart')
        assert rasterize_motif(grid, motif, 5, 5) == 0
