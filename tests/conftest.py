import io

import numpy as np
import pytest
from PIL import Image


def png_bytes(pixels: np.ndarray) -> bytes:
    """Encode an RGBA uint8 array (height, width, 4) as PNG."""
    buffer = io.BytesIO()
    Image.fromarray(pixels.astype(np.uint8), 'RGBA').save(buffer, format='PNG')
    return buffer.getvalue()


def solid_rgba(width: int, height: int, rgba) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = rgba
    return pixels


@pytest.fixture
def black_png() -> bytes:
    return png_bytes(solid_rgba(20, 20, (0, 0, 0, 255)))


@pytest.fixture
def white_png() -> bytes:
    return png_bytes(solid_rgba(20, 20, (255, 255, 255, 255)))


@pytest.fixture
def transparent_png() -> bytes:
    return png_bytes(solid_rgba(20, 20, (0, 0, 0, 0)))


@pytest.fixture
def left_half_black_png() -> bytes:
    pixels = solid_rgba(50, 50, (255, 255, 255, 255))
    pixels[:, :25] = (0, 0, 0, 255)
    return png_bytes(pixels)


@pytest.fixture
def black_image(black_png) -> Image.Image:
    return Image.open(io.BytesIO(black_png)).convert('RGBA')
