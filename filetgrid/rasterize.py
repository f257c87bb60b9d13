"""
Image Rasterizer for filet crochet motifs

Stage 1 of the pattern pipeline:
- Decode the motif image (raw bytes, file path or data: URL)
- Resample to a square footprint (size × 25 cells, clamped 5-100)
- Bake horizontal/vertical flips into the sampled pixels
- Threshold luminance: dark, opaque pixels become filled squares
- OR the footprint into the shared grid, centred on the motif position

A motif that fails to decode contributes nothing; the rest of the
pattern is still generated.
"""

import asyncio
import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .grid import round_half_up
from .motifs import ImageSource, PlacedMotif

logger = logging.getLogger(__name__)


# Footprint in grid cells for a size=1.0 motif
BASE_FOOTPRINT = 25
MIN_FOOTPRINT = 5
MAX_FOOTPRINT = 100

# Pixels with alpha below this are transparent and never filled
ALPHA_CUTOFF = 128

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


@dataclass(frozen=True)
class DecodeResult:
    """
    Tagged result of decoding a motif image.

    Either `image` is set (ok) or `error` explains the failure. The
    generation tag lets a caller drop results that arrive after a newer
    regeneration pass has started.
    """
    image: Optional[Image.Image] = None
    error: Optional[str] = None
    generation: int = 0

    @property
    def ok(self) -> bool:
        return self.image is not None


def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if source.startswith('data:'):
        header, _, payload = source.partition(',')
        if ';base64' not in header:
            raise ValueError('Only base64 data URLs are supported')
        return base64.b64decode(payload, validate=True)
    with open(source, 'rb') as f:
        return f.read()


def decode_motif_image(source: Optional[ImageSource], generation: int = 0) -> DecodeResult:
    """
    Decode a motif image into an RGBA Pillow image.

    Never raises: any failure is returned as an error result.
    """
    if source is None:
        return DecodeResult(error='Motif has no image data', generation=generation)
    try:
        raw = _read_source(source)
        image = Image.open(io.BytesIO(raw))
        image.load()
        return DecodeResult(image=image.convert('RGBA'), generation=generation)
    except (OSError, ValueError, binascii.Error, UnidentifiedImageError) as e:
        return DecodeResult(error=f'Failed to load image: {e}', generation=generation)


async def decode_motif_image_async(
    source: Optional[ImageSource],
    generation: int = 0,
) -> DecodeResult:
    """Decode in a worker thread so the event loop keeps handling edits."""
    return await asyncio.to_thread(decode_motif_image, source, generation)


def footprint_size(size: float) -> int:
    """Side length, in cells, of the square a motif is sampled into."""
    return max(MIN_FOOTPRINT, min(MAX_FOOTPRINT, round_half_up(size * BASE_FOOTPRINT)))


def sample_motif(
    image: Image.Image,
    size: float,
    threshold: float,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
) -> np.ndarray:
    """
    Sample a motif image into a boolean ink mask.

    Returns:
        bool array of shape (footprint, footprint); True = filled square
    """
    base_size = footprint_size(size)

    sampled = image.convert('RGBA').resize(
        (base_size, base_size), Image.Resampling.BILINEAR
    )
    if flip_horizontal:
        sampled = sampled.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if flip_vertical:
        sampled = sampled.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

    pixels = np.asarray(sampled, dtype=np.float64)
    opaque = pixels[:, :, 3] >= ALPHA_CUTOFF
    luminance = pixels[:, :, :3] @ LUMA_WEIGHTS

    return opaque & (luminance < threshold)


def stamp_footprint(
    grid: np.ndarray,
    ink: np.ndarray,
    grid_x: int,
    grid_y: int,
) -> int:
    """
    OR an ink mask into the grid, centred on (grid_x, grid_y).

    Cells that land outside the grid are discarded. Filled cells are
    never cleared.

    Returns:
        Number of ink pixels that landed on the grid
    """
    height, width = grid.shape
    ink_h, ink_w = ink.shape

    left = grid_x - ink_w // 2
    top = grid_y - ink_h // 2

    x0, x1 = max(0, left), min(width, left + ink_w)
    y0, y1 = max(0, top), min(height, top + ink_h)
    if x0 >= x1 or y0 >= y1:
        return 0

    visible = ink[y0 - top:y1 - top, x0 - left:x1 - left]
    grid[y0:y1, x0:x1] |= visible
    return int(np.count_nonzero(visible))


def rasterize_motif(
    grid: np.ndarray,
    motif: PlacedMotif,
    grid_x: int,
    grid_y: int,
    decoded: Optional[DecodeResult] = None,
) -> int:
    """
    Rasterize one placed motif into the shared grid buffer.

    Args:
        grid: Boolean grid, modified in place
        motif: The placed motif (size, threshold, flips, image)
        grid_x, grid_y: Footprint centre in grid cells
        decoded: Pre-decoded image; decoded here when omitted

    Returns:
        Number of ink cells contributed inside the grid (0 on failure)
    """
    if decoded is None:
        decoded = decode_motif_image(motif.image_data)

    if not decoded.ok:
        if motif.image_data is None:
            logger.debug(f"Motif {motif.name!r} ({motif.id}) has no image, skipping")
        else:
            logger.warning(f"Motif {motif.name!r} ({motif.id}): {decoded.error}")
        return 0

    ink = sample_motif(
        decoded.image,
        motif.size,
        motif.threshold,
        motif.flip_horizontal,
        motif.flip_vertical,
    )
    contributed = stamp_footprint(grid, ink, grid_x, grid_y)

    logger.debug(
        f"Rasterized {motif.name!r}: {ink.shape[1]}x{ink.shape[0]} px "
        f"at ({grid_x}, {grid_y}), threshold {motif.threshold}, {contributed} cells"
    )
    return contributed
