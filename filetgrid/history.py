"""
Undo/redo history for the design state.

A snapshot holds both sides' motif lists and the manual fill overlay.
All of these are immutable values, so a snapshot is just a set of
references (no copying) and restoring one gives back exactly the same
motifs, ids included.

Snapshots are captured *before* each mutating action; undo returns the
most recent one and keeps the state it replaces for redo.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import HISTORY
from .manual_fill import ManualFillOverlay
from .motifs import PlacedMotif

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    front_motifs: Tuple[PlacedMotif, ...] = ()
    back_motifs: Tuple[PlacedMotif, ...] = ()
    manual_fills: ManualFillOverlay = field(default_factory=ManualFillOverlay)

    @classmethod
    def of(
        cls,
        front_motifs: Sequence[PlacedMotif],
        back_motifs: Sequence[PlacedMotif],
        manual_fills: ManualFillOverlay,
    ) -> 'HistorySnapshot':
        return cls(tuple(front_motifs), tuple(back_motifs), manual_fills)


class History:
    """
    Bounded linear history of design snapshots.

    `cursor` is the number of snapshots available to undo; at 0 undo is
    a no-op. Capturing after an undo drops the redo entries.
    """

    def __init__(self, limit: int = HISTORY['max_states']):
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        self._past: List[HistorySnapshot] = []
        self._future: List[HistorySnapshot] = []

    def __len__(self) -> int:
        return len(self._past)

    @property
    def cursor(self) -> int:
        return len(self._past)

    @property
    def snapshots(self) -> Tuple[HistorySnapshot, ...]:
        return tuple(self._past)

    def can_undo(self) -> bool:
        return bool(self._past)

    def can_redo(self) -> bool:
        return bool(self._future)

    def capture(self, snapshot: HistorySnapshot):
        """Record the state as it is before a mutating action."""
        self._past.append(snapshot)
        if len(self._past) > self.limit:
            del self._past[:len(self._past) - self.limit]
        self._future.clear()

    def undo(self, current: HistorySnapshot) -> Optional[HistorySnapshot]:
        """
        Step back one action.

        Args:
            current: The live state, kept so the step can be redone

        Returns:
            The snapshot to restore, or None when there is nothing to undo
        """
        if not self._past:
            return None
        self._future.append(current)
        restored = self._past.pop()
        logger.debug(f"Undo: {len(self._past)} left, {len(self._future)} to redo")
        return restored

    def redo(self, current: HistorySnapshot) -> Optional[HistorySnapshot]:
        if not self._future:
            return None
        self._past.append(current)
        restored = self._future.pop()
        logger.debug(f"Redo: {len(self._past)} to undo, {len(self._future)} left")
        return restored

    def clear(self):
        self._past.clear()
        self._future.clear()
