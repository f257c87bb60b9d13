"""
Design session

Holds the source state of one design (motifs per side, manual fills,
border, dimensions) and exposes the user actions that edit it. Every
mutating action records an undo snapshot first, then marks the patterns
stale.

Regeneration is full, never incremental:
- `regenerate()` runs a synchronous pass
- `regenerate_async()` decodes motif images off the event loop
- with `auto_regenerate=True`, edits are debounced (300ms by default) and
  only the latest edit in the window triggers a pass

Each pass gets a generation number. A pass that finishes after a newer one
has already been applied is discarded.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple, Union

from .borders import DEFAULT_BORDER_PATTERN, BorderPattern, parse_border_pattern
from .compositor import (
    Pattern,
    StitchInterpretation,
    combined_yarn,
    generate,
    generate_async,
)
from .config import GRID_DEFAULTS, MOTIF_SIZING, Settings, load_settings
from .grid import GridSpec, Side
from .history import History, HistorySnapshot
from .manual_fill import DEFAULT_FILL_COLOR, FillColor, ManualFillOverlay, ToolMode
from .motifs import (
    ImageSource,
    PlacedMotif,
    create_placed_motif,
    duplicate_motif,
    find_motif,
    move_motif,
    remove_motif,
    replace_motif,
    resize_motif,
    set_threshold,
    toggle_flip,
)
from .render import chart_png_bytes, image_to_png_bytes, render_text_motif
from .yarn import GridType, YarnRequired

logger = logging.getLogger(__name__)


# Images dropped on the grid are kept clear of the edges
DROP_POSITION_LIMITS = (10.0, 90.0)
DUPLICATE_OFFSET = 5.0
DUPLICATE_MAX_POSITION = 90.0


class Debouncer:
    """
    Run an async callback once edits have settled.

    `trigger()` cancels a pending (still waiting) run and starts a new
    wait. A run whose callback has already started is left to finish.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay_ms: int):
        self.callback = callback
        self.delay = delay_ms / 1000
        self._task: Optional[asyncio.Task] = None
        self._waiting = False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self):
        """Must be called from a running event loop."""
        if self._task is not None and self._waiting:
            self._task.cancel()
        self._waiting = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        await asyncio.sleep(self.delay)
        self._waiting = False
        await self.callback()

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._waiting = False

    async def flush(self):
        """Wait for the pending run, if any, to complete."""
        while self.pending:
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                if task is self._task:
                    raise


@dataclass(frozen=True, eq=False)
class ExportBundle:
    """Everything the document layout step needs for one design."""
    front: Pattern
    back: Pattern
    stitch_interpretation: StitchInterpretation
    border_pattern: BorderPattern
    yarn: YarnRequired
    front_chart_png: bytes
    back_chart_png: bytes


class DesignSession:
    """Mutable design state for a single user, with undo and regeneration."""

    def __init__(
        self,
        width_cm: float = GRID_DEFAULTS['default_width'],
        height_cm: float = GRID_DEFAULTS['default_height'],
        border_pattern: Union[str, BorderPattern] = DEFAULT_BORDER_PATTERN,
        grid_type: Union[str, GridType] = GridType.TETT,
        interpretation: Union[str, StitchInterpretation] = StitchInterpretation.BLACK_FILLED,
        settings: Optional[Settings] = None,
        auto_regenerate: bool = False,
    ):
        self.settings = settings or load_settings()
        self.spec = GridSpec.from_cm(width_cm, height_cm)
        self.width_cm = width_cm
        self.height_cm = height_cm
        self.border_pattern = parse_border_pattern(border_pattern)
        self.grid_type = GridType(grid_type)
        self.interpretation = StitchInterpretation(interpretation)
        self.current_side = Side.FRONT

        self.fill_color = DEFAULT_FILL_COLOR
        self.tool_mode = ToolMode.FILL
        self.manual_fills = ManualFillOverlay()
        self._motifs: Dict[Side, Tuple[PlacedMotif, ...]] = {Side.FRONT: (), Side.BACK: ()}

        self.history = History(self.settings.history_limit)
        self.patterns: Dict[Side, Optional[Pattern]] = {Side.FRONT: None, Side.BACK: None}
        self._generation = 0
        self._stale: Dict[Side, bool] = {Side.FRONT: True, Side.BACK: True}

        self.auto_regenerate = auto_regenerate
        self.debouncer = Debouncer(self.regenerate_async, self.settings.debounce_ms)

    # ─── State access ───────────────────────────────────────────────

    def motifs(self, side: Union[str, Side, None] = None) -> Tuple[PlacedMotif, ...]:
        return self._motifs[self._side(side)]

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_stale(self) -> bool:
        return any(self._stale.values())

    def stale_sides(self) -> Tuple[Side, ...]:
        """Sides whose latest pattern no longer matches the design."""
        return tuple(
            side for side in Side
            if self._stale[side] or self.patterns[side] is None
        )

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            front_motifs=self._motifs[Side.FRONT],
            back_motifs=self._motifs[Side.BACK],
            manual_fills=self.manual_fills,
        )

    def load_design(
        self,
        front_motifs: Iterable[PlacedMotif] = (),
        back_motifs: Iterable[PlacedMotif] = (),
        manual_fills: Optional[ManualFillOverlay] = None,
    ):
        """Replace the whole design (e.g. from a payload); history starts empty."""
        self._restore(HistorySnapshot.of(
            list(front_motifs), list(back_motifs), manual_fills or ManualFillOverlay()
        ))
        self.history.clear()
        self._changed()

    def _side(self, side: Union[str, Side, None]) -> Side:
        return self.current_side if side is None else Side(side)

    def _capture(self):
        self.history.capture(self.snapshot())

    def _restore(self, snapshot: HistorySnapshot):
        self._motifs = {
            Side.FRONT: snapshot.front_motifs,
            Side.BACK: snapshot.back_motifs,
        }
        self.manual_fills = snapshot.manual_fills

    def _changed(self):
        for side in Side:
            self._stale[side] = True
        if self.auto_regenerate:
            self.debouncer.trigger()

    # ─── Motif actions ──────────────────────────────────────────────

    def place_motif(
        self,
        motif_id: str,
        x: float,
        y: float,
        name: str,
        side: Union[str, Side, None] = None,
        image_data: Optional[ImageSource] = None,
        is_custom: Optional[bool] = None,
        size: float = MOTIF_SIZING['default_size'],
        threshold: int = 128,
    ) -> PlacedMotif:
        side = self._side(side)
        if is_custom is None:
            is_custom = image_data is not None
        self._capture()
        motif = create_placed_motif(
            motif_id, x, y, name,
            is_custom=is_custom, image_data=image_data, size=size, threshold=threshold,
        )
        self._motifs[side] = self._motifs[side] + (motif,)
        logger.info(f"Placed {name!r} on {side.value} at ({motif.x:.0f}%, {motif.y:.0f}%)")
        self._changed()
        return motif

    def place_image(
        self,
        image_data: ImageSource,
        name: str,
        x: float = 50.0,
        y: float = 50.0,
        side: Union[str, Side, None] = None,
    ) -> PlacedMotif:
        """Place an uploaded/dropped image as a custom motif and make its side active."""
        side = self._side(side)
        self.current_side = side
        low, high = DROP_POSITION_LIMITS
        return self.place_motif(
            motif_id=f"dropped-{name}",
            x=max(low, min(high, x)),
            y=max(low, min(high, y)),
            name=name,
            side=side,
            image_data=image_data,
            is_custom=True,
            size=MOTIF_SIZING['dropped_size'],
        )

    def place_text(
        self,
        text: str,
        x: float = 50.0,
        y: float = 50.0,
        side: Union[str, Side, None] = None,
    ) -> PlacedMotif:
        image = render_text_motif(text)
        return self.place_motif(
            motif_id=f"text-{text.strip()}",
            x=x,
            y=y,
            name=f"Text: {text.strip()}",
            side=side,
            image_data=image_to_png_bytes(image),
            is_custom=True,
        )

    def _edit_motif(
        self,
        motif_id: str,
        side: Union[str, Side, None],
        edit: Callable[[PlacedMotif], PlacedMotif],
    ) -> PlacedMotif:
        side = self._side(side)
        motif = find_motif(self._motifs[side], motif_id)
        if motif is None:
            raise KeyError(f"No motif {motif_id!r} on {side.value} side")
        updated = edit(motif)
        self._capture()
        self._motifs[side] = tuple(replace_motif(self._motifs[side], updated))
        self._changed()
        return updated

    def move_motif(self, motif_id: str, x: float, y: float, side=None) -> PlacedMotif:
        return self._edit_motif(motif_id, side, lambda m: move_motif(m, x, y))

    def resize_motif(self, motif_id: str, size: float, side=None) -> PlacedMotif:
        return self._edit_motif(motif_id, side, lambda m: resize_motif(m, size))

    def set_motif_threshold(self, motif_id: str, threshold: float, side=None) -> PlacedMotif:
        return self._edit_motif(motif_id, side, lambda m: set_threshold(m, threshold))

    def flip_motif(self, motif_id: str, direction: str, side=None) -> PlacedMotif:
        return self._edit_motif(motif_id, side, lambda m: toggle_flip(m, direction))

    def duplicate_motif(self, motif_id: str, side: Union[str, Side, None] = None) -> PlacedMotif:
        side = self._side(side)
        motif = find_motif(self._motifs[side], motif_id)
        if motif is None:
            raise KeyError(f"No motif {motif_id!r} on {side.value} side")
        self._capture()
        copy = duplicate_motif(motif, DUPLICATE_OFFSET, DUPLICATE_OFFSET)
        copy = move_motif(
            copy, min(DUPLICATE_MAX_POSITION, copy.x), min(DUPLICATE_MAX_POSITION, copy.y)
        )
        self._motifs[side] = self._motifs[side] + (copy,)
        self._changed()
        return copy

    def remove_motif(self, motif_id: str, side: Union[str, Side, None] = None) -> bool:
        side = self._side(side)
        if find_motif(self._motifs[side], motif_id) is None:
            return False
        self._capture()
        self._motifs[side] = tuple(remove_motif(self._motifs[side], motif_id))
        self._changed()
        return True

    # ─── Manual fill actions ────────────────────────────────────────

    def paint_cell(
        self,
        row: int,
        col: int,
        side: Union[str, Side, None] = None,
        tool: Union[str, ToolMode, None] = None,
        color: Union[str, FillColor, None] = None,
    ) -> Optional[FillColor]:
        """
        One click of the paint tool on a cell.

        Returns:
            The cell's override after the click (None = no override)
        """
        side = self._side(side)
        if not self.spec.contains(row, col):
            logger.warning(f"Ignoring paint outside the grid at ({row}, {col})")
            return self.manual_fills.get(row, col, side)
        painted = self.manual_fills.paint(
            row, col, side,
            tool=self.tool_mode if tool is None else tool,
            color=self.fill_color if color is None else color,
        )
        self._capture()
        self.manual_fills = painted
        self._changed()
        return self.manual_fills.get(row, col, side)

    def clear_manual_fills(self, side: Union[str, Side, None] = None, all_sides: bool = False):
        self._capture()
        if all_sides:
            self.manual_fills = self.manual_fills.clear_all()
        else:
            self.manual_fills = self.manual_fills.clear_side(self._side(side))
        self._changed()

    def set_fill_color(self, color: Union[str, FillColor]):
        """Switch the paint colour, re-tinting cells painted with the old one."""
        color = FillColor(color)
        self.manual_fills = self.manual_fills.recolor(self.fill_color, color)
        self.fill_color = color
        self._changed()

    def set_tool_mode(self, tool: Union[str, ToolMode]):
        self.tool_mode = ToolMode(tool)

    def copy_front_to_back(self):
        """Copy front motifs (under new ids) and manual fills to the back side."""
        self._capture()
        self._motifs[Side.BACK] = tuple(
            duplicate_motif(m, 0, 0) for m in self._motifs[Side.FRONT]
        )
        self.manual_fills = self.manual_fills.copy_side(Side.FRONT, Side.BACK)
        self.current_side = Side.BACK
        self._changed()

    def clear_all(self):
        self._capture()
        self._motifs = {Side.FRONT: (), Side.BACK: ()}
        self.manual_fills = self.manual_fills.clear_all()
        self._changed()

    # ─── Grid settings ──────────────────────────────────────────────

    def set_dimensions_cm(self, width_cm: float, height_cm: float) -> GridSpec:
        """
        Resize the grid.

        Raises:
            GridDimensionError: outside the accepted range; state unchanged
        """
        self.spec = GridSpec.from_cm(width_cm, height_cm)
        self.width_cm = width_cm
        self.height_cm = height_cm
        logger.info(f"Grid resized to {self.spec.describe()}")
        self._changed()
        return self.spec

    def set_border_pattern(self, pattern: Union[str, BorderPattern]):
        self.border_pattern = parse_border_pattern(pattern)
        self._changed()

    def set_grid_type(self, grid_type: Union[str, GridType]):
        self.grid_type = GridType(grid_type)
        self._changed()

    def toggle_stitch_interpretation(self) -> StitchInterpretation:
        if self.interpretation is StitchInterpretation.BLACK_FILLED:
            self.interpretation = StitchInterpretation.BLACK_OPEN
        else:
            self.interpretation = StitchInterpretation.BLACK_FILLED
        return self.interpretation

    def set_current_side(self, side: Union[str, Side]):
        self.current_side = Side(side)

    # ─── History ────────────────────────────────────────────────────

    def undo(self) -> bool:
        restored = self.history.undo(self.snapshot())
        if restored is None:
            return False
        self._restore(restored)
        self._changed()
        return True

    def redo(self) -> bool:
        restored = self.history.redo(self.snapshot())
        if restored is None:
            return False
        self._restore(restored)
        self._changed()
        return True

    # ─── Regeneration ───────────────────────────────────────────────

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def apply_pattern(self, pattern: Pattern) -> bool:
        """Store a generated pattern unless a newer one for its side is already applied."""
        current = self.patterns[pattern.side]
        if current is not None and current.generation > pattern.generation:
            logger.debug(
                f"Discarding stale {pattern.side.value} pattern #{pattern.generation} "
                f"(have #{current.generation})"
            )
            return False
        self.patterns[pattern.side] = pattern
        return True

    def _sides(self, sides: Optional[Iterable[Union[str, Side]]]) -> Tuple[Side, ...]:
        if sides is None:
            return (Side.FRONT, Side.BACK)
        return tuple(Side(s) for s in sides)

    def regenerate(self, sides: Optional[Iterable[Union[str, Side]]] = None) -> Dict[Side, Pattern]:
        """Run a synchronous generation pass."""
        generation = self._next_generation()
        for side in self._sides(sides):
            self._stale[side] = False
            self.apply_pattern(generate(
                side, self._motifs[side], self.spec.width, self.spec.height,
                self.border_pattern, self.manual_fills, self.grid_type,
                generation=generation,
            ))
        return dict(self.patterns)

    async def regenerate_async(self, sides: Optional[Iterable[Union[str, Side]]] = None) -> Dict[Side, Pattern]:
        """
        Run a generation pass with image decoding off the event loop.

        Inputs are captured up front; edits made while images decode are
        picked up by the next pass.
        """
        generation = self._next_generation()
        spec = self.spec
        inputs = [
            (side, self._motifs[side]) for side in self._sides(sides)
        ]
        for side, _ in inputs:
            self._stale[side] = False
        manual_fills = self.manual_fills
        border_pattern = self.border_pattern
        grid_type = self.grid_type

        for side, motifs in inputs:
            pattern = await generate_async(
                side, motifs, spec.width, spec.height,
                border_pattern, manual_fills, grid_type,
                generation=generation,
            )
            self.apply_pattern(pattern)
        return dict(self.patterns)

    def export_bundle(self) -> ExportBundle:
        """Build the export for both sides, regenerating any stale side first."""
        stale = self.stale_sides()
        if stale:
            self.regenerate(stale)
        front = self.patterns[Side.FRONT]
        back = self.patterns[Side.BACK]
        return ExportBundle(
            front=front,
            back=back,
            stitch_interpretation=self.interpretation,
            border_pattern=self.border_pattern,
            yarn=combined_yarn(front, back),
            front_chart_png=chart_png_bytes(front, self.interpretation),
            back_chart_png=chart_png_bytes(back, self.interpretation),
        )
