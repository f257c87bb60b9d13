"""
Border Pattern Generator for filet crochet charts

Stage 2 of the pattern pipeline. Each border pattern is a pure predicate
on (col, row) for a given grid size and side; the result is OR-ed with
the motif fill and is recomputed on every pass, never cached.

Available patterns:
- none                no border
- border-1            outermost ring
- border-2            outermost two rings
- corner-triangles    triangular wedge in each corner
- checkerboard-edges  checkerboard in a 3-cell band
- snake-pattern       corner blocks + 8-cell snake repeat in a 3-cell band
- stepped-border      outer ring + ring at offset 2
- checkerboard-2row   checkerboard in a 2-cell band
"""

from enum import Enum
from typing import List, Union

import numpy as np

from .grid import Side


class BorderPattern(Enum):
    NONE = 'none'
    SIMPLE = 'border-1'
    DOUBLE = 'border-2'
    CORNER_TRIANGLES = 'corner-triangles'
    CHECKERBOARD = 'checkerboard-edges'
    SNAKE = 'snake-pattern'
    STEPPED = 'stepped-border'
    CHECKERBOARD_2ROW = 'checkerboard-2row'


DEFAULT_BORDER_PATTERN = BorderPattern.SIMPLE

BORDER_PATTERN_DEFINITIONS = {
    BorderPattern.NONE: {
        'name': 'None',
        'rows': 0,
        'description': 'No border',
    },
    BorderPattern.SIMPLE: {
        'name': 'Simple border',
        'rows': 1,
        'description': 'Single row border',
    },
    BorderPattern.DOUBLE: {
        'name': 'Double border',
        'rows': 2,
        'description': 'Two row border',
    },
    BorderPattern.CORNER_TRIANGLES: {
        'name': 'Corner triangles',
        'rows': 1,
        'description': 'Triangles in corners',
    },
    BorderPattern.CHECKERBOARD: {
        'name': 'Checkerboard',
        'rows': 1,
        'description': 'Checkerboard pattern',
    },
    BorderPattern.SNAKE: {
        'name': 'Snake pattern',
        'rows': 2,
        'description': 'Snake/zigzag pattern',
    },
    BorderPattern.STEPPED: {
        'name': 'Stepped border',
        'rows': 2,
        'description': 'Stepped/stair pattern',
    },
    BorderPattern.CHECKERBOARD_2ROW: {
        'name': 'Checkerboard 2-row',
        'rows': 2,
        'description': 'Two-row checkerboard',
    },
}

# Corner wedge reaches cells with Manhattan distance < this
CORNER_TRIANGLE_REACH = 5

# Snake repeat: 3 filled, 1 single, 3 filled, 1 single
SNAKE_BAND = 3
SNAKE_REPEAT = 8


def parse_border_pattern(pattern: Union[str, BorderPattern]) -> BorderPattern:
    if isinstance(pattern, BorderPattern):
        return pattern
    return BorderPattern(pattern)


def is_valid_border_pattern(pattern) -> bool:
    try:
        parse_border_pattern(pattern)
    except ValueError:
        return False
    return True


def get_border_pattern_rows(pattern: Union[str, BorderPattern]) -> int:
    return BORDER_PATTERN_DEFINITIONS[parse_border_pattern(pattern)]['rows']


def get_border_pattern_name(pattern: Union[str, BorderPattern]) -> str:
    if not is_valid_border_pattern(pattern):
        return 'Unknown'
    return BORDER_PATTERN_DEFINITIONS[parse_border_pattern(pattern)]['name']


def available_border_patterns() -> List[BorderPattern]:
    return list(BorderPattern)


def _checkerboard(col: int, row: int, width: int, height: int, band: int) -> bool:
    in_band = (
        row < band or row >= height - band or
        col < band or col >= width - band
    )
    return in_band and (row + col) % 2 == 0


def _snake_cell(col: int, row: int, width: int, height: int) -> bool:
    # 3x3 corner blocks minus their centre cell
    top = row < SNAKE_BAND
    bottom = row >= height - SNAKE_BAND
    left = col < SNAKE_BAND
    right = col >= width - SNAKE_BAND

    if (top and left) and not (row == 1 and col == 1):
        return True
    if (top and right) and not (row == 1 and col == width - 2):
        return True
    if (bottom and left) and not (row == height - 2 and col == 1):
        return True
    if (bottom and right) and not (row == height - 2 and col == width - 2):
        return True

    # Top/bottom bands, repeating along the columns
    if (top or bottom) and SNAKE_BAND <= col < width - SNAKE_BAND:
        pos = (col - SNAKE_BAND) % SNAKE_REPEAT
        local_row = row if top else row - (height - SNAKE_BAND)
        if local_row in (0, 2):
            return pos < 3 or 4 <= pos < 7
        if local_row == 1:
            return pos == 3 or pos == 7

    # Left/right bands, repeating along the rows
    if (left or right) and SNAKE_BAND <= row < height - SNAKE_BAND:
        pos = (row - SNAKE_BAND) % SNAKE_REPEAT
        local_col = col if left else col - (width - SNAKE_BAND)
        if local_col in (0, 2):
            return pos < 3 or 4 <= pos < 7
        if local_col == 1:
            return pos == 3 or pos == 7

    return False


def is_edge_cell(
    col: int,
    row: int,
    grid_width: int,
    grid_height: int,
    pattern: Union[str, BorderPattern],
    side: Union[str, Side] = Side.FRONT,
) -> bool:
    """
    Whether a cell belongs to the selected border pattern.

    Pure function of its arguments. `side` only matters for
    checkerboard-edges on odd widths, where the back side is inverted so
    the left/right edges line up when the piece is sewn together.
    """
    pattern = parse_border_pattern(pattern)
    side = Side(side)
    last_row = grid_height - 1
    last_col = grid_width - 1

    if pattern is BorderPattern.NONE:
        return False

    if pattern is BorderPattern.SIMPLE:
        return row == 0 or row == last_row or col == 0 or col == last_col

    if pattern is BorderPattern.DOUBLE:
        return (
            row < 2 or row >= grid_height - 2 or
            col < 2 or col >= grid_width - 2
        )

    if pattern is BorderPattern.CORNER_TRIANGLES:
        from_top_left = row + col
        from_top_right = row + (last_col - col)
        from_bottom_left = (last_row - row) + col
        from_bottom_right = (last_row - row) + (last_col - col)
        return min(
            from_top_left, from_top_right, from_bottom_left, from_bottom_right
        ) < CORNER_TRIANGLE_REACH

    if pattern is BorderPattern.CHECKERBOARD:
        in_band = (
            row < 3 or row >= grid_height - 3 or
            col < 3 or col >= grid_width - 3
        )
        if not in_band:
            return False
        fill = (row + col) % 2 == 0
        if grid_width % 2 == 1 and side is Side.BACK:
            fill = not fill
        return fill

    if pattern is BorderPattern.SNAKE:
        return _snake_cell(col, row, grid_width, grid_height)

    if pattern is BorderPattern.STEPPED:
        outer = row == 0 or row == last_row or col == 0 or col == last_col
        third = (
            row == 2 or row == grid_height - 3 or
            col == 2 or col == grid_width - 3
        )
        return outer or third

    if pattern is BorderPattern.CHECKERBOARD_2ROW:
        return _checkerboard(col, row, grid_width, grid_height, band=2)

    return False


def _snake_mask(rows: np.ndarray, cols: np.ndarray, width: int, height: int) -> np.ndarray:
    top = rows < SNAKE_BAND
    bottom = rows >= height - SNAKE_BAND
    left = cols < SNAKE_BAND
    right = cols >= width - SNAKE_BAND

    corners = (
        (top & left & ~((rows == 1) & (cols == 1))) |
        (top & right & ~((rows == 1) & (cols == width - 2))) |
        (bottom & left & ~((rows == height - 2) & (cols == 1))) |
        (bottom & right & ~((rows == height - 2) & (cols == width - 2)))
    )

    def repeat(pos: np.ndarray, local: np.ndarray) -> np.ndarray:
        outer = (pos < 3) | ((pos >= 4) & (pos < 7))
        middle = (pos == 3) | (pos == 7)
        return np.where(local == 1, middle, outer)

    # Top/bottom bands take precedence over left/right where they meet
    horizontal = (top | bottom) & (cols >= SNAKE_BAND) & (cols < width - SNAKE_BAND)
    vertical = (
        (left | right) & (rows >= SNAKE_BAND) & (rows < height - SNAKE_BAND) & ~horizontal
    )
    local_row = np.where(top, rows, rows - (height - SNAKE_BAND))
    local_col = np.where(left, cols, cols - (width - SNAKE_BAND))

    return (
        corners |
        (horizontal & repeat((cols - SNAKE_BAND) % SNAKE_REPEAT, local_row)) |
        (vertical & repeat((rows - SNAKE_BAND) % SNAKE_REPEAT, local_col))
    )


def border_mask(
    grid_width: int,
    grid_height: int,
    pattern: Union[str, BorderPattern],
    side: Union[str, Side] = Side.FRONT,
) -> np.ndarray:
    """
    Evaluate the border pattern for every cell at once.

    Gives the same cells as calling `is_edge_cell` per cell.

    Returns:
        bool array of shape (grid_height, grid_width)
    """
    pattern = parse_border_pattern(pattern)
    side = Side(side)
    rows, cols = np.indices((grid_height, grid_width))
    last_row = grid_height - 1
    last_col = grid_width - 1

    def band(depth: int) -> np.ndarray:
        return (
            (rows < depth) | (rows >= grid_height - depth) |
            (cols < depth) | (cols >= grid_width - depth)
        )

    outer_ring = (rows == 0) | (rows == last_row) | (cols == 0) | (cols == last_col)
    even = (rows + cols) % 2 == 0

    if pattern is BorderPattern.SIMPLE:
        return outer_ring

    if pattern is BorderPattern.DOUBLE:
        return band(2)

    if pattern is BorderPattern.CORNER_TRIANGLES:
        nearest = np.minimum.reduce([
            rows + cols,
            rows + (last_col - cols),
            (last_row - rows) + cols,
            (last_row - rows) + (last_col - cols),
        ])
        return nearest < CORNER_TRIANGLE_REACH

    if pattern is BorderPattern.CHECKERBOARD:
        if grid_width % 2 == 1 and side is Side.BACK:
            even = ~even
        return band(3) & even

    if pattern is BorderPattern.SNAKE:
        return _snake_mask(rows, cols, grid_width, grid_height)

    if pattern is BorderPattern.STEPPED:
        third = (
            (rows == 2) | (rows == grid_height - 3) |
            (cols == 2) | (cols == grid_width - 3)
        )
        return outer_ring | third

    if pattern is BorderPattern.CHECKERBOARD_2ROW:
        return band(2) & even

    return np.zeros((grid_height, grid_width), dtype=bool)
