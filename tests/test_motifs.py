import pytest

from filetgrid.motifs import (
    PlacedMotif,
    create_placed_motif,
    duplicate_motif,
    filter_by_custom,
    find_motif,
    motif_from_payload,
    motif_to_payload,
    move_motif,
    remove_motif,
    replace_motif,
    resize_motif,
    set_threshold,
    toggle_flip,
)


@pytest.fixture
def rose():
    return create_placed_motif('rose', 50, 50, 'Rose')


class TestCreate:
    def test_defaults(self, rose):
        assert rose.size == 1.0
        assert rose.threshold == 128
        assert not rose.flip_horizontal and not rose.flip_vertical
        assert not rose.is_custom

    def test_unique_ids(self):
        a = create_placed_motif('rose', 50, 50, 'Rose')
        b = create_placed_motif('rose', 50, 50, 'Rose')
        assert a.id != b.id
        assert a.motif_id == b.motif_id

    def test_position_clamped(self):
        motif = create_placed_motif('rose', -80, 200, 'Rose')
        assert (motif.x, motif.y) == (-50, 150)


class TestEdits:
    def test_resize_clamps(self, rose):
        assert resize_motif(rose, 5).size == 1.2
        assert resize_motif(rose, 0).size == 0.1
        assert resize_motif(rose, 0.75).size == 0.75

    def test_threshold_clamps(self, rose):
        assert set_threshold(rose, 300).threshold == 255
        assert set_threshold(rose, -5).threshold == 0
        assert set_threshold(rose, 99.6).threshold == 100

    def test_edits_keep_identity(self, rose):
        moved = move_motif(rose, 10, 20)
        assert moved.id == rose.id
        assert (moved.x, moved.y) == (10, 20)
        assert (rose.x, rose.y) == (50, 50)

    def test_toggle_flip(self, rose):
        flipped = toggle_flip(rose, 'horizontal')
        assert flipped.flip_horizontal
        assert not toggle_flip(flipped, 'horizontal').flip_horizontal
        assert toggle_flip(rose, 'vertical').flip_vertical

    def test_toggle_flip_unknown(self, rose):
        with pytest.raises(ValueError):
            toggle_flip(rose, 'diagonal')

    def test_duplicate(self, rose):
        copy = duplicate_motif(rose)
        assert copy.id != rose.id
        assert (copy.x, copy.y) == (70, 70)
        assert copy.motif_id == rose.motif_id


class TestLists:
    def test_find_replace_remove(self, rose):
        tulip = create_placed_motif('tulip', 20, 20, 'Tulip', is_custom=True)
        motifs = [rose, tulip]
        assert find_motif(motifs, tulip.id) is tulip
        assert find_motif(motifs, 'missing') is None

        moved = move_motif(rose, 0, 0)
        assert replace_motif(motifs, moved) == [moved, tulip]
        assert remove_motif(motifs, rose.id) == [tulip]
        assert filter_by_custom(motifs, True) == [tulip]


class TestConstruction:
    def test_direct_construction_clamps(self):
        motif = PlacedMotif(id='m1', motif_id='rose', x=50, y=50, name='Rose',
                            size=3.0, threshold=300)
        assert motif.size == 1.2
        assert motif.threshold == 255

    def test_threshold_rounds_half_up(self, rose):
        assert set_threshold(rose, 128.5).threshold == 129
        assert set_threshold(rose, 127.5).threshold == 128


class TestPayload:
    def test_from_payload(self):
        motif = motif_from_payload({
            'id': 'abc',
            'motifId': 'heart',
            'x': 25,
            'y': 75,
            'name': 'Heart',
            'size': 0.5,
            'threshold': 90,
            'flipVertical': True,
            'imageData': 'heart.png',
        })
        assert motif.id == 'abc'
        assert motif.motif_id == 'heart'
        assert motif.size == 0.5
        assert motif.flip_vertical
        assert motif.is_custom

    def test_to_payload_omits_image(self, rose):
        payload = motif_to_payload(rose)
        assert payload['motifId'] == 'rose'
        assert 'imageData' not in payload
