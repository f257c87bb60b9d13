import io

import numpy as np
import pytest
from PIL import Image

from filetgrid.compositor import generate
from filetgrid.manual_fill import ManualFillOverlay
from filetgrid.render import (
    chart_png_bytes,
    render_chart,
    render_preview,
    render_text_motif,
)


@pytest.fixture
def ring():
    return generate('front', [], 10, 8, 'border-1', ManualFillOverlay(), 'tett')


class TestChart:
    def test_size_includes_margins(self, ring):
        image = render_chart(ring.grid)
        assert image.size == (10 * 10 + 10 + 35, 8 * 10 + 10 + 25)
        assert image.mode == 'RGB'

    def test_filled_and_open_cells(self, ring):
        image = render_chart(ring.grid)
        assert image.getpixel((10 + 5, 10 + 5)) == (0, 0, 0)
        assert image.getpixel((10 + 45, 10 + 45)) == (255, 255, 255)

    def test_black_open_inverts_drawing(self, ring):
        image = render_chart(ring.grid, 'black_open')
        assert image.getpixel((10 + 5, 10 + 5)) == (255, 255, 255)
        assert image.getpixel((10 + 45, 10 + 45)) == (0, 0, 0)

    def test_png_bytes(self, ring):
        png = chart_png_bytes(ring)
        assert png.startswith(b'\x89PNG')
        assert Image.open(io.BytesIO(png)).size == (145, 115)


class TestPreview:
    def test_manual_fill_colour(self):
        overlay = ManualFillOverlay().set(1, 1, 'front', 'red')
        pattern = generate('front', [], 10, 8, 'none', overlay, 'tett')
        preview = render_preview(pattern, overlay)
        assert preview.size == (120, 96)
        assert preview.getpixel((18, 18)) == (0x6D, 0x19, 0x0D)
        assert preview.getpixel((60, 60)) == (255, 255, 255)

    def test_without_overlay_is_black_and_white(self, ring):
        preview = render_preview(ring, cell_size=4)
        assert preview.getpixel((1, 1)) == (0, 0, 0)


class TestTextMotif:
    def test_renders_dark_letters(self):
        image = render_text_motif('AB')
        assert image.mode == 'RGBA'
        gray = np.asarray(image.convert('L'))
        assert (gray < 128).any()
        assert gray[0, 0] == 255

    def test_empty(self):
        with pytest.raises(ValueError):
            render_text_motif('   ')

    def test_too_long(self):
        with pytest.raises(ValueError):
            render_text_motif('x' * 51)
