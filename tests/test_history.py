import pytest

from filetgrid.history import History, HistorySnapshot
from filetgrid.manual_fill import ManualFillOverlay
from filetgrid.motifs import create_placed_motif


def snapshot(*names):
    motifs = [create_placed_motif(n, 50, 50, n) for n in names]
    return HistorySnapshot.of(motifs, [], ManualFillOverlay())


class TestHistory:
    def test_undo_empty(self):
        history = History()
        assert history.undo(snapshot()) is None
        assert not history.can_undo()

    def test_undo_returns_captured_state(self):
        history = History()
        empty = snapshot()
        with_a = snapshot('a')
        with_ab = HistorySnapshot.of(
            with_a.front_motifs + snapshot('b').front_motifs, [], ManualFillOverlay()
        )

        history.capture(empty)
        history.capture(with_a)
        assert history.undo(with_ab) is with_a
        assert history.undo(with_a) is empty
        assert history.undo(empty) is None

    def test_redo(self):
        history = History()
        before, after = snapshot(), snapshot('a')
        history.capture(before)
        assert history.undo(after) is before
        assert history.can_redo()
        assert history.redo(before) is after
        assert not history.can_redo()

    def test_capture_drops_redo(self):
        history = History()
        history.capture(snapshot())
        history.undo(snapshot('a'))
        history.capture(snapshot('b'))
        assert not history.can_redo()

    def test_bounded(self):
        history = History(limit=50)
        states = [snapshot() for _ in range(51)]
        for state in states:
            history.capture(state)
        assert len(history) == 50
        assert history.snapshots[0] is states[1]

    def test_clear(self):
        history = History()
        history.capture(snapshot())
        history.clear()
        assert history.cursor == 0

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            History(limit=0)
