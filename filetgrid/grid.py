"""
Grid Model for filet crochet charts

The addressable cell matrix shared by every other stage:
- Front/back sides
- Centimetre <-> cell conversion (fixed 1.0cm × 0.9cm cell)
- Dimension validation against caller-supplied bounds
- Canonical (row, col) cell keys
- Percentage motif positions -> grid cell centres

Cell fill is never stored here; it is derived on every generation pass.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from .config import GRID_CELL_SIZE, GRID_DEFAULTS


WIDTH_CM_PER_CELL = GRID_CELL_SIZE['width_cm_per_cell']
HEIGHT_CM_PER_CELL = GRID_CELL_SIZE['height_cm_per_cell']

CellKey = Tuple[int, int]  # (row, col)


class Side(Enum):
    """The two independently designed faces of the piece."""
    FRONT = 'front'
    BACK = 'back'

    def other(self) -> 'Side':
        return Side.BACK if self is Side.FRONT else Side.FRONT


class GridDimensionError(ValueError):
    """Raised when grid dimensions fall outside the accepted range."""


def round_half_up(value: float) -> int:
    """Round .5 upwards, the way the chart positions were always rounded."""
    return int(math.floor(value + 0.5))


def cell_count_from_cm(width_cm: float, height_cm: float) -> Tuple[int, int]:
    """Convert physical dimensions to a number of cells (width, height)."""
    return (
        round_half_up(width_cm / WIDTH_CM_PER_CELL),
        round_half_up(height_cm / HEIGHT_CM_PER_CELL),
    )


def dimensions_cm(width_cells: int, height_cells: int) -> Tuple[float, float]:
    """Physical size in cm of a grid with the given cell counts."""
    return (
        width_cells * WIDTH_CM_PER_CELL,
        height_cells * HEIGHT_CM_PER_CELL,
    )


def validate_grid_dimensions(
    width: float,
    height: float,
    min_width: float = GRID_DEFAULTS['min_width'],
    max_width: float = GRID_DEFAULTS['max_width'],
    min_height: float = GRID_DEFAULTS['min_height'],
    max_height: float = GRID_DEFAULTS['max_height'],
) -> Tuple[bool, Optional[str]]:
    """
    Validate grid dimensions (in cm) against the accepted bounds.

    Returns:
        (is_valid, error_message) - message is None when valid
    """
    if width < min_width or width > max_width:
        return False, f"Width must be between {min_width} and {max_width} cm"
    if height < min_height or height > max_height:
        return False, f"Height must be between {min_height} and {max_height} cm"
    return True, None


@dataclass(frozen=True)
class GridSpec:
    """Cell dimensions of one side of the chart."""
    width: int
    height: int

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise GridDimensionError(
                f"Grid must have at least one cell, got {self.width}x{self.height}"
            )

    @classmethod
    def from_cm(
        cls,
        width_cm: float,
        height_cm: float,
        min_width: float = GRID_DEFAULTS['min_width'],
        max_width: float = GRID_DEFAULTS['max_width'],
        min_height: float = GRID_DEFAULTS['min_height'],
        max_height: float = GRID_DEFAULTS['max_height'],
    ) -> 'GridSpec':
        is_valid, error = validate_grid_dimensions(
            width_cm, height_cm, min_width, max_width, min_height, max_height
        )
        if not is_valid:
            raise GridDimensionError(error)
        width, height = cell_count_from_cm(width_cm, height_cm)
        return cls(width, height)

    @property
    def total_squares(self) -> int:
        return self.width * self.height

    @property
    def size_cm(self) -> Tuple[float, float]:
        return dimensions_cm(self.width, self.height)

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def empty_grid(self) -> np.ndarray:
        """All-open boolean grid, shape (height, width)."""
        return np.zeros((self.height, self.width), dtype=bool)

    def describe(self) -> str:
        """Human readable size, e.g. '30 × 39 (30.0 × 35.1 cm)'."""
        width_cm, height_cm = self.size_cm
        return f"{self.width} × {self.height} ({width_cm:.1f} × {height_cm:.1f} cm)"


def cell_key(row: int, col: int) -> CellKey:
    return (int(row), int(col))


def parse_cell_key(key: Union[str, CellKey]) -> CellKey:
    """
    Parse a cell key into (row, col).

    Accepts the canonical tuple or the "row,col" string used in JSON
    payloads.
    """
    if isinstance(key, tuple):
        row, col = key
        return cell_key(row, col)
    parts = str(key).split(',')
    if len(parts) != 2:
        raise ValueError(f"Invalid cell key {key!r}, expected 'row,col'")
    return cell_key(int(parts[0]), int(parts[1]))


def format_cell_key(key: CellKey) -> str:
    return f"{key[0]},{key[1]}"


def percent_to_cell(x_pct: float, y_pct: float, spec: GridSpec) -> Tuple[int, int]:
    """
    Convert a percentage-of-grid position to a grid cell centre.

    Positions outside 0-100 give centres outside the grid; that is how a
    motif is placed partially off the chart.

    Returns:
        (grid_x, grid_y) i.e. (column, row)
    """
    return (
        round_half_up(x_pct / 100 * spec.width),
        round_half_up(y_pct / 100 * spec.height),
    )
