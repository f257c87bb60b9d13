import numpy as np
import pytest

from filetgrid.grid import Side
from filetgrid.manual_fill import FillColor, ManualFillOverlay, ToolMode, apply_overlay


class TestPaint:
    def test_fill_then_same_colour_removes(self):
        overlay = ManualFillOverlay().paint(2, 3, Side.FRONT, ToolMode.FILL, FillColor.RED)
        assert overlay.get(2, 3, 'front') is FillColor.RED
        overlay = overlay.paint(2, 3, Side.FRONT, ToolMode.FILL, FillColor.RED)
        assert overlay.get(2, 3, 'front') is None

    def test_fill_other_colour_replaces(self):
        overlay = ManualFillOverlay().paint(2, 3, 'front', 'fill', 'red')
        overlay = overlay.paint(2, 3, 'front', 'fill', 'blue')
        assert overlay.get(2, 3, 'front') is FillColor.BLUE

    def test_clear_tool_toggles_white(self):
        overlay = ManualFillOverlay().paint(1, 1, 'back', ToolMode.CLEAR)
        assert overlay.get(1, 1, 'back') is FillColor.WHITE
        assert overlay.paint(1, 1, 'back', ToolMode.CLEAR).get(1, 1, 'back') is None

    def test_sides_are_independent(self):
        overlay = ManualFillOverlay().set(0, 0, 'front', 'green')
        assert overlay.get(0, 0, 'back') is None
        assert overlay.count('front') == 1

    def test_overlay_is_immutable(self):
        empty = ManualFillOverlay()
        empty.set(0, 0, 'front', 'red')
        assert not empty.has_fills()
        with pytest.raises(TypeError):
            empty.front[(0, 0)] = FillColor.RED

    def test_unknown_colour(self):
        with pytest.raises(ValueError):
            ManualFillOverlay().set(0, 0, 'front', 'purple')


class TestBulk:
    def test_copy_side(self):
        overlay = ManualFillOverlay().set(0, 0, 'front', 'red').set(5, 5, 'back', 'blue')
        copied = overlay.copy_side('front', 'back')
        assert dict(copied.back) == {(0, 0): FillColor.RED}
        assert copied.front == overlay.front

    def test_recolor_skips_white(self):
        overlay = (
            ManualFillOverlay()
            .set(0, 0, 'front', 'red')
            .set(0, 1, 'front', 'white')
            .set(0, 2, 'back', 'red')
            .set(0, 3, 'back', 'green')
        )
        recolored = overlay.recolor('red', 'blue')
        assert recolored.get(0, 0, 'front') is FillColor.BLUE
        assert recolored.get(0, 1, 'front') is FillColor.WHITE
        assert recolored.get(0, 2, 'back') is FillColor.BLUE
        assert recolored.get(0, 3, 'back') is FillColor.GREEN

    def test_clear(self):
        overlay = ManualFillOverlay().set(0, 0, 'front', 'red').set(1, 1, 'back', 'red')
        assert not overlay.clear_side('front').front
        assert overlay.clear_side('front').back
        assert not overlay.clear_all().has_fills()

    def test_items_sorted(self):
        overlay = ManualFillOverlay().set(3, 0, 'front', 'red').set(1, 5, 'front', 'blue')
        assert [key for key, _ in overlay.items('front')] == [(1, 5), (3, 0)]


class TestApply:
    def test_overrides_win(self):
        grid = np.ones((4, 4), dtype=bool)
        grid[2, 2] = False
        overlay = ManualFillOverlay().set(0, 0, 'front', 'white').set(2, 2, 'front', 'green')
        assert apply_overlay(grid, overlay, 'front') == 2
        assert not grid[0, 0]
        assert grid[2, 2]

    def test_white_is_idempotent(self):
        overlay = ManualFillOverlay().set(1, 1, 'front', 'white')
        grid = np.zeros((3, 3), dtype=bool)
        apply_overlay(grid, overlay, 'front')
        apply_overlay(grid, overlay, 'front')
        assert not grid[1, 1]

    def test_out_of_bounds_ignored(self):
        overlay = ManualFillOverlay().set(10, 10, 'front', 'red')
        grid = np.zeros((3, 3), dtype=bool)
        assert apply_overlay(grid, overlay, 'front') == 0
        assert not grid.any()
