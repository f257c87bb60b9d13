"""
Pattern Compositor for filet crochet charts

Stage 3 of the pattern pipeline: merges every layer into one chart and
derives the stitch and yarn figures.

Layer order (later layers win where they disagree):
1. Empty grid
2. Rasterized motifs of the side (OR)
3. Border pattern (OR)
4. Manual fill overrides (unconditional)

The same `effective_grid` is used for the live view and for export, so
both always show identical charts.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .borders import BorderPattern, border_mask, parse_border_pattern
from .grid import GridSpec, Side, percent_to_cell
from .manual_fill import ManualFillOverlay, apply_overlay
from .motifs import PlacedMotif
from .rasterize import DecodeResult, decode_motif_image, decode_motif_image_async, rasterize_motif
from .yarn import GridType, YarnRequired, calculate_yarn_required, skeins_for

logger = logging.getLogger(__name__)


class StitchInterpretation(Enum):
    """Whether a filled cell is read as a solid stitch or an open mesh square."""
    BLACK_FILLED = 'black_filled'
    BLACK_OPEN = 'black_open'


@dataclass(frozen=True)
class GridMotif:
    """A motif together with the grid cell its footprint is centred on."""
    motif: PlacedMotif
    grid_x: int
    grid_y: int


@dataclass(frozen=True, eq=False)
class Pattern:
    """
    One generated chart with its stitch and yarn figures.

    Regenerated wholesale on every change; `grid` is a read-only array
    owned by this pattern.
    """
    side: Side
    grid_dimensions: str
    total_squares: int
    filled_squares: int
    open_squares: int
    foundation_stitches: int
    filled_stitches: int
    total_stitches: int
    yarn_grams: float
    skeins_needed: int
    grid: np.ndarray                          # bool, shape (height, width)
    grid_motifs: Tuple[GridMotif, ...]
    border_pattern: BorderPattern
    grid_type: GridType
    generation: int = 0

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]


def locate_motifs(motifs: Sequence[PlacedMotif], spec: GridSpec) -> Tuple[GridMotif, ...]:
    """Resolve percentage positions to grid cell centres."""
    located = []
    for motif in motifs:
        grid_x, grid_y = percent_to_cell(motif.x, motif.y, spec)
        located.append(GridMotif(motif=motif, grid_x=grid_x, grid_y=grid_y))
    return tuple(located)


def rasterize_motifs(
    grid_motifs: Sequence[GridMotif],
    spec: GridSpec,
    decoded: Optional[Dict[str, DecodeResult]] = None,
    generation: int = 0,
) -> np.ndarray:
    """
    OR every motif footprint into a fresh grid.

    Pre-decoded images tagged with an older generation are stale and are
    decoded again.
    """
    grid = spec.empty_grid()
    decoded = decoded or {}

    for located in grid_motifs:
        result = decoded.get(located.motif.id)
        if result is not None and result.generation < generation:
            logger.debug(
                f"Discarding stale decode of {located.motif.id} "
                f"(generation {result.generation} < {generation})"
            )
            result = None
        if result is None:
            result = decode_motif_image(located.motif.image_data, generation)
        rasterize_motif(grid, located.motif, located.grid_x, located.grid_y, result)

    return grid


def effective_grid(
    motif_grid: np.ndarray,
    border_pattern: Union[str, BorderPattern],
    overlay: ManualFillOverlay,
    side: Union[str, Side],
) -> np.ndarray:
    """
    The canonical fill state of every cell: (motif OR border), then
    manual overrides.

    Returns a new array; `motif_grid` is left untouched.
    """
    height, width = motif_grid.shape
    grid = motif_grid | border_mask(width, height, border_pattern, side)
    apply_overlay(grid, overlay, side)
    return grid


def count_stitches(grid: np.ndarray) -> Dict[str, int]:
    """
    Square and stitch counts for a filet grid.

    Foundation: (width + 1) × (height + 1) chains for the grid framework;
    each filled square adds one stitch.
    """
    height, width = grid.shape
    total_squares = width * height
    filled_squares = int(np.count_nonzero(grid))
    foundation_stitches = (width + 1) * (height + 1)

    return {
        'total_squares': total_squares,
        'filled_squares': filled_squares,
        'open_squares': total_squares - filled_squares,
        'foundation_stitches': foundation_stitches,
        'filled_stitches': filled_squares,
        'total_stitches': foundation_stitches + filled_squares,
    }


def generate(
    side: Union[str, Side],
    motifs: Sequence[PlacedMotif],
    grid_width: int,
    grid_height: int,
    border_pattern: Union[str, BorderPattern],
    manual_fills: ManualFillOverlay,
    grid_type: Union[str, GridType],
    decoded: Optional[Dict[str, DecodeResult]] = None,
    generation: int = 0,
) -> Pattern:
    """
    Generate the chart for one side.

    Args:
        side: 'front' or 'back'
        motifs: Placed motifs of this side
        grid_width, grid_height: Grid size in cells
        border_pattern: Border pattern id
        manual_fills: Manual overrides (both sides; only `side` is used)
        grid_type: 'tett' or 'åpent', selects the yarn consumption rate
        decoded: Optional motif id -> pre-decoded image
        generation: Pass number, used to tag the result

    Returns:
        Immutable Pattern snapshot
    """
    side = Side(side)
    border_pattern = parse_border_pattern(border_pattern)
    grid_type = GridType(grid_type)
    spec = GridSpec(grid_width, grid_height)

    logger.info(
        f"Generating {side.value} pattern #{generation}: {spec.describe()}, "
        f"{len(motifs)} motifs, border {border_pattern.value}"
    )

    grid_motifs = locate_motifs(motifs, spec)
    motif_grid = rasterize_motifs(grid_motifs, spec, decoded, generation)
    grid = effective_grid(motif_grid, border_pattern, manual_fills, side)
    grid.setflags(write=False)

    counts = count_stitches(grid)
    width_cm, height_cm = spec.size_cm
    yarn = calculate_yarn_required(width_cm, height_cm, grid_type)

    logger.info(
        f"  {counts['filled_squares']} filled / {counts['open_squares']} open squares, "
        f"{counts['total_stitches']} stitches, {yarn.grams:.1f}g ({yarn.skeins_needed} skeins)"
    )

    return Pattern(
        side=side,
        grid_dimensions=spec.describe(),
        yarn_grams=yarn.grams,
        skeins_needed=yarn.skeins_needed,
        grid=grid,
        grid_motifs=grid_motifs,
        border_pattern=border_pattern,
        grid_type=grid_type,
        generation=generation,
        **counts,
    )


async def decode_all(
    motifs: Sequence[PlacedMotif],
    generation: int = 0,
) -> Dict[str, DecodeResult]:
    """Decode every motif image concurrently."""
    with_images = [m for m in motifs if m.image_data is not None]
    results = await asyncio.gather(
        *(decode_motif_image_async(m.image_data, generation) for m in with_images)
    )
    return {m.id: r for m, r in zip(with_images, results)}


async def generate_async(
    side: Union[str, Side],
    motifs: Sequence[PlacedMotif],
    grid_width: int,
    grid_height: int,
    border_pattern: Union[str, BorderPattern],
    manual_fills: ManualFillOverlay,
    grid_type: Union[str, GridType],
    generation: int = 0,
) -> Pattern:
    """Like `generate`, but decodes motif images off the event loop first."""
    decoded = await decode_all(motifs, generation)
    return generate(
        side, motifs, grid_width, grid_height, border_pattern,
        manual_fills, grid_type, decoded=decoded, generation=generation,
    )


def display_grid(
    pattern: Pattern,
    interpretation: Union[str, StitchInterpretation],
) -> np.ndarray:
    """
    The grid as it should be drawn: inverted for 'black_open'.

    Stitch counts are never affected by the interpretation.
    """
    if StitchInterpretation(interpretation) is StitchInterpretation.BLACK_OPEN:
        return ~pattern.grid
    return pattern.grid.copy()


def combined_yarn(*patterns: Optional[Pattern]) -> YarnRequired:
    """Total yarn for several sides; skeins are rounded up on the total."""
    grams = sum(p.yarn_grams for p in patterns if p is not None)
    return YarnRequired(grams=grams, skeins_needed=skeins_for(grams))


def pattern_summary(pattern: Pattern) -> dict:
    """Get a JSON-friendly summary of a pattern."""
    return {
        'side': pattern.side.value,
        'generation': pattern.generation,
        'grid_dimensions': pattern.grid_dimensions,
        'width': pattern.width,
        'height': pattern.height,
        'total_squares': pattern.total_squares,
        'filled_squares': pattern.filled_squares,
        'open_squares': pattern.open_squares,
        'foundation_stitches': pattern.foundation_stitches,
        'filled_stitches': pattern.filled_stitches,
        'total_stitches': pattern.total_stitches,
        'yarn_grams': round(pattern.yarn_grams, 2),
        'skeins_needed': pattern.skeins_needed,
        'border_pattern': pattern.border_pattern.value,
        'grid_type': pattern.grid_type.value,
        'motifs': [
            {
                'id': gm.motif.id,
                'name': gm.motif.name,
                'grid_x': gm.grid_x,
                'grid_y': gm.grid_y,
            }
            for gm in pattern.grid_motifs
        ],
    }
