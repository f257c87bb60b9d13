"""
Placed motifs

A motif is a small image placed on one side of the chart at a
percentage-of-grid position. Placed motifs are frozen values: every edit
(move, resize, flip, threshold) returns a new motif with the same id, so
snapshots taken for undo can share them safely.
"""

import uuid
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Union

from .config import MOTIF_SIZING, MOTIF_THRESHOLD, POSITION_LIMITS
from .grid import round_half_up


ImageSource = Union[bytes, str]  # Raw encoded bytes, file path or data: URL


@dataclass(frozen=True)
class PlacedMotif:
    """
    A motif instance on the grid.

    Identity is `id`; several instances of the same `motif_id` may
    coexist on a side.
    """
    id: str
    motif_id: str
    x: float                                # % of grid width
    y: float                                # % of grid height
    name: str
    size: float = MOTIF_SIZING['default_size']
    threshold: int = MOTIF_THRESHOLD['default']
    flip_horizontal: bool = False
    flip_vertical: bool = False
    is_custom: bool = False
    image_data: Optional[ImageSource] = None

    def __post_init__(self):
        object.__setattr__(self, 'size', clamp_motif_size(self.size))
        object.__setattr__(self, 'threshold', clamp_threshold(self.threshold))


def new_motif_id() -> str:
    return uuid.uuid4().hex[:9]


def clamp_motif_size(size: float) -> float:
    return max(MOTIF_SIZING['min_size'], min(size, MOTIF_SIZING['max_size']))


def clamp_threshold(threshold: float) -> int:
    return max(MOTIF_THRESHOLD['min'], min(MOTIF_THRESHOLD['max'], round_half_up(threshold)))


def clamp_position(value: float) -> float:
    return max(POSITION_LIMITS['min'], min(POSITION_LIMITS['max'], value))


def create_placed_motif(
    motif_id: str,
    x: float,
    y: float,
    name: str,
    is_custom: bool = False,
    image_data: Optional[ImageSource] = None,
    size: float = MOTIF_SIZING['default_size'],
    threshold: int = MOTIF_THRESHOLD['default'],
) -> PlacedMotif:
    """Create a new motif instance with a fresh unique id."""
    return PlacedMotif(
        id=new_motif_id(),
        motif_id=motif_id,
        x=clamp_position(x),
        y=clamp_position(y),
        name=name,
        size=clamp_motif_size(size),
        threshold=clamp_threshold(threshold),
        is_custom=is_custom,
        image_data=image_data,
    )


def resize_motif(motif: PlacedMotif, size: float) -> PlacedMotif:
    return replace(motif, size=clamp_motif_size(size))


def set_threshold(motif: PlacedMotif, threshold: float) -> PlacedMotif:
    return replace(motif, threshold=clamp_threshold(threshold))


def toggle_flip(motif: PlacedMotif, direction: str) -> PlacedMotif:
    """Toggle a flip flag; direction is 'horizontal' or 'vertical'."""
    if direction == 'horizontal':
        return replace(motif, flip_horizontal=not motif.flip_horizontal)
    if direction == 'vertical':
        return replace(motif, flip_vertical=not motif.flip_vertical)
    raise ValueError(f"Unknown flip direction {direction!r}")


def move_motif(motif: PlacedMotif, x: float, y: float) -> PlacedMotif:
    return replace(motif, x=clamp_position(x), y=clamp_position(y))


def duplicate_motif(
    motif: PlacedMotif,
    offset_x: float = 20,
    offset_y: float = 20,
) -> PlacedMotif:
    """Copy a motif under a new id, shifted by the given offset (%)."""
    return replace(
        motif,
        id=new_motif_id(),
        x=clamp_position(motif.x + offset_x),
        y=clamp_position(motif.y + offset_y),
    )


def find_motif(motifs: Sequence[PlacedMotif], motif_id: str) -> Optional[PlacedMotif]:
    for motif in motifs:
        if motif.id == motif_id:
            return motif
    return None


def remove_motif(motifs: Sequence[PlacedMotif], motif_id: str) -> List[PlacedMotif]:
    return [m for m in motifs if m.id != motif_id]


def replace_motif(motifs: Sequence[PlacedMotif], updated: PlacedMotif) -> List[PlacedMotif]:
    """Swap in an edited motif, keeping list order."""
    return [updated if m.id == updated.id else m for m in motifs]


def filter_by_custom(motifs: Sequence[PlacedMotif], is_custom: bool) -> List[PlacedMotif]:
    return [m for m in motifs if m.is_custom == is_custom]


def motif_from_payload(data: dict) -> PlacedMotif:
    """
    Build a motif from a JSON payload entry.

    Expected keys (camelCase, as sent by the design front end):
    {
        "id": "...", "motifId": "...", "x": 50, "y": 50, "name": "Rose",
        "size": 1.0, "threshold": 128, "flipHorizontal": false,
        "flipVertical": false, "isCustom": true, "imageData": "data:..."
    }
    """
    motif_id = data.get('motifId') or data.get('id') or 'custom'
    return PlacedMotif(
        id=str(data.get('id') or new_motif_id()),
        motif_id=str(motif_id),
        x=clamp_position(float(data.get('x', 50))),
        y=clamp_position(float(data.get('y', 50))),
        name=str(data.get('name', motif_id)),
        size=clamp_motif_size(float(data.get('size', MOTIF_SIZING['default_size']))),
        threshold=clamp_threshold(float(data.get('threshold', MOTIF_THRESHOLD['default']))),
        flip_horizontal=bool(data.get('flipHorizontal', False)),
        flip_vertical=bool(data.get('flipVertical', False)),
        is_custom=bool(data.get('isCustom', data.get('imageData') is not None)),
        image_data=data.get('imageData'),
    )


def motif_to_payload(motif: PlacedMotif) -> dict:
    """JSON-friendly view of a motif (image data omitted)."""
    return {
        'id': motif.id,
        'motifId': motif.motif_id,
        'x': motif.x,
        'y': motif.y,
        'name': motif.name,
        'size': motif.size,
        'threshold': motif.threshold,
        'flipHorizontal': motif.flip_horizontal,
        'flipVertical': motif.flip_vertical,
        'isCustom': motif.is_custom,
    }
