"""
Configuration for the filet crochet pattern engine.

Holds the fixed constants of the filet grid (cell aspect ratio, accepted
dimension ranges, yarn consumption rates) and the few runtime knobs that
can be overridden through the environment:

  - FILETGRID_DEBOUNCE_MS    regeneration debounce window (default 300)
  - FILETGRID_HISTORY_LIMIT  number of undo snapshots kept (default 50)
  - FILETGRID_LOG_LEVEL      log level for the command-line entry point
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# Filet grid geometry: 10 squares = 10cm wide, 9cm high
GRID_CELL_SIZE = {
    'width_cm_per_cell': 1.0,
    'height_cm_per_cell': 0.9,
}

# Grid dimension defaults and accepted ranges (in cm)
GRID_DEFAULTS = {
    'default_width': 30,
    'default_height': 35,
    'min_width': 8,
    'max_width': 200,
    'min_height': 7.2,
    'max_height': 180,
}

# Empirical consumption rates from finished bags (g/cm²)
YARN_CALCULATION = {
    'consumption_rate_tett': 0.209,
    'consumption_rate_apent': 0.194,
    'skein_weight': 50,
}

MOTIF_SIZING = {
    'min_size': 0.1,
    'max_size': 1.2,
    'default_size': 1.0,
    'size_step': 0.05,
    'dropped_size': 0.7,     # Size given to images dropped on the grid
}

MOTIF_THRESHOLD = {
    'min': 0,
    'max': 255,
    'default': 128,
}

# Percentage coordinates a motif may be dragged to (partially off-grid)
POSITION_LIMITS = {
    'min': -50.0,
    'max': 150.0,
}

HISTORY = {
    'max_states': 50,
}

DEBOUNCE = {
    'regenerate_ms': 300,
}

# Export chart rendering
CANVAS = {
    'cell_size': 10,
    'cell_gap': 0.5,
    'margin_left': 10,
    'margin_right': 35,
    'margin_top': 10,
    'margin_bottom': 25,
    'numbering_step': 10,
}

TEXT_MOTIF = {
    'max_length': 50,
    'font_size': 56,
    'padding': 12,
    'letter_spacing': 0.15,  # Fraction of font size
}


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""
    debounce_ms: int = DEBOUNCE['regenerate_ms']
    history_limit: int = HISTORY['max_states']
    log_level: str = 'INFO'


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default
    if value < minimum:
        logger.warning(f"Ignoring {name}={value}: must be >= {minimum}, using {default}")
        return default
    return value


def load_settings() -> Settings:
    """
    Read settings from environment variables.

    Bad values never abort startup; they are logged and replaced with
    the defaults.
    """
    level = os.environ.get('FILETGRID_LOG_LEVEL', 'INFO').upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning(f"Unknown FILETGRID_LOG_LEVEL {level!r}, using INFO")
        level = 'INFO'

    return Settings(
        debounce_ms=_env_int('FILETGRID_DEBOUNCE_MS', DEBOUNCE['regenerate_ms'], 0),
        history_limit=_env_int('FILETGRID_HISTORY_LIMIT', HISTORY['max_states'], 1),
        log_level=level,
    )
