# Filet crochet pattern engine
# Turns placed motif images, a border pattern and manual fills into
# stitch charts with stitch counts and yarn estimates.

from .borders import BorderPattern, is_edge_cell
from .compositor import Pattern, StitchInterpretation, generate, generate_async
from .grid import GridDimensionError, GridSpec, Side
from .manual_fill import FillColor, ManualFillOverlay, ToolMode
from .motifs import PlacedMotif, create_placed_motif
from .session import DesignSession, ExportBundle
from .yarn import GridType, calculate_yarn_required

__all__ = [
    'BorderPattern',
    'is_edge_cell',
    'Pattern',
    'StitchInterpretation',
    'generate',
    'generate_async',
    'GridDimensionError',
    'GridSpec',
    'Side',
    'FillColor',
    'ManualFillOverlay',
    'ToolMode',
    'PlacedMotif',
    'create_placed_motif',
    'DesignSession',
    'ExportBundle',
    'GridType',
    'calculate_yarn_required',
]
