"""
Manual Fill Overlay

Per-side, per-cell colour overrides painted by the user. A painted cell
wins over anything motifs or the border produce:
- red / green / blue  -> the square is filled
- white               -> the square is forced open (explicit erase)
- no entry            -> no override

The overlay is an immutable value; every edit returns a new overlay and
shares the untouched side with the old one.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

import numpy as np

from .grid import CellKey, Side, cell_key


class FillColor(Enum):
    WHITE = 'white'
    RED = 'red'
    GREEN = 'green'
    BLUE = 'blue'


class ToolMode(Enum):
    FILL = 'fill'
    CLEAR = 'clear'


DEFAULT_FILL_COLOR = FillColor.RED

# Yarn colours used when previewing manual fills
FILL_COLOR_HEX = {
    FillColor.WHITE: '#FFFBF5',
    FillColor.RED: '#6D190D',
    FillColor.GREEN: '#939C59',
    FillColor.BLUE: '#A0AFC1',
}

_EMPTY: Mapping[CellKey, FillColor] = MappingProxyType({})


def _frozen(cells: Dict[CellKey, FillColor]) -> Mapping[CellKey, FillColor]:
    return MappingProxyType(cells)


@dataclass(frozen=True)
class ManualFillOverlay:
    """Colour overrides for both sides, keyed by (row, col)."""
    front: Mapping[CellKey, FillColor] = field(default_factory=lambda: _EMPTY)
    back: Mapping[CellKey, FillColor] = field(default_factory=lambda: _EMPTY)

    def cells(self, side: Union[str, Side]) -> Mapping[CellKey, FillColor]:
        return self.front if Side(side) is Side.FRONT else self.back

    def _with_side(self, side: Side, cells: Dict[CellKey, FillColor]) -> 'ManualFillOverlay':
        if side is Side.FRONT:
            return ManualFillOverlay(front=_frozen(cells), back=self.back)
        return ManualFillOverlay(front=self.front, back=_frozen(cells))

    def get(self, row: int, col: int, side: Union[str, Side]) -> Optional[FillColor]:
        return self.cells(side).get(cell_key(row, col))

    def is_filled(self, row: int, col: int, side: Union[str, Side]) -> bool:
        """True when the cell carries a non-white override."""
        color = self.get(row, col, side)
        return color is not None and color is not FillColor.WHITE

    def set(
        self,
        row: int,
        col: int,
        side: Union[str, Side],
        color: Union[str, FillColor],
    ) -> 'ManualFillOverlay':
        side = Side(side)
        cells = dict(self.cells(side))
        cells[cell_key(row, col)] = FillColor(color)
        return self._with_side(side, cells)

    def clear(self, row: int, col: int, side: Union[str, Side]) -> 'ManualFillOverlay':
        """Remove the override entirely (back to motif/border fill)."""
        side = Side(side)
        key = cell_key(row, col)
        if key not in self.cells(side):
            return self
        cells = dict(self.cells(side))
        del cells[key]
        return self._with_side(side, cells)

    def paint(
        self,
        row: int,
        col: int,
        side: Union[str, Side],
        tool: Union[str, ToolMode] = ToolMode.FILL,
        color: Union[str, FillColor] = DEFAULT_FILL_COLOR,
    ) -> 'ManualFillOverlay':
        """
        Apply one click of the paint tool.

        Fill tool: sets the colour; the same colour again removes the
        override. Clear tool: forces the cell white; white again removes
        the override.
        """
        target = FillColor.WHITE if ToolMode(tool) is ToolMode.CLEAR else FillColor(color)
        if self.get(row, col, side) is target:
            return self.clear(row, col, side)
        return self.set(row, col, side, target)

    def clear_side(self, side: Union[str, Side]) -> 'ManualFillOverlay':
        return self._with_side(Side(side), {})

    def clear_all(self) -> 'ManualFillOverlay':
        return ManualFillOverlay()

    def copy_side(self, source: Union[str, Side], target: Union[str, Side]) -> 'ManualFillOverlay':
        """Replace the target side's overrides with a copy of the source side's."""
        return self._with_side(Side(target), dict(self.cells(source)))

    def recolor(
        self,
        old: Union[str, FillColor],
        new: Union[str, FillColor],
    ) -> 'ManualFillOverlay':
        """
        Re-tint every non-white cell of colour `old` on both sides.

        White cells are erase markers and are never re-tinted.
        """
        old, new = FillColor(old), FillColor(new)
        if old is FillColor.WHITE or old is new:
            return self

        def retint(cells: Mapping[CellKey, FillColor]) -> Dict[CellKey, FillColor]:
            return {key: (new if color is old else color) for key, color in cells.items()}

        return ManualFillOverlay(
            front=_frozen(retint(self.front)),
            back=_frozen(retint(self.back)),
        )

    def has_fills(self) -> bool:
        return bool(self.front) or bool(self.back)

    def count(self, side: Union[str, Side]) -> int:
        return len(self.cells(side))

    def items(self, side: Union[str, Side]) -> Iterator[Tuple[CellKey, FillColor]]:
        return iter(sorted(self.cells(side).items()))


def apply_overlay(
    grid: np.ndarray,
    overlay: ManualFillOverlay,
    side: Union[str, Side],
) -> int:
    """
    Apply manual overrides to a grid in place.

    Every in-bounds entry sets its cell to (colour != white); entries
    outside the grid are ignored.

    Returns:
        Number of cells overridden
    """
    height, width = grid.shape
    applied = 0
    for (row, col), color in overlay.cells(side).items():
        if 0 <= row < height and 0 <= col < width:
            grid[row, col] = color is not FillColor.WHITE
            applied += 1
    return applied
