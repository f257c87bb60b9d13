"""
Command-line entry point: generate filet crochet charts from a JSON design.

Usage:
  filetgrid design.json --chart-dir out/
  cat design.json | filetgrid

Expected payload:
{
    "widthCm": 30,
    "heightCm": 35,
    "borderPattern": "border-1",
    "gridType": "tett",
    "stitchInterpretation": "black_filled",
    "motifs": {
        "front": [{"name": "Rose", "x": 50, "y": 50, "imageData": "rose.png"}],
        "back": []
    },
    "manualFills": {
        "front": {"0,0": "red", "3,4": "white"},
        "back": {}
    }
}

Environment variables:
  - FILETGRID_LOG_LEVEL      (default INFO)
  - FILETGRID_HISTORY_LIMIT
  - FILETGRID_DEBOUNCE_MS
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .compositor import pattern_summary
from .config import GRID_DEFAULTS, load_settings
from .grid import Side, format_cell_key, parse_cell_key
from .manual_fill import FillColor, ManualFillOverlay
from .motifs import motif_from_payload
from .session import DesignSession
from .yarn import format_skeins, format_yarn_grams

logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """Raised when the design payload is malformed."""


def _number(payload: dict, key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"'{key}' must be a number, got {value!r}")
    return float(value)


def _motif_entry(entry, side: Side):
    if not isinstance(entry, dict):
        raise PayloadError(f"motifs.{side.value} entries must be objects, got {entry!r}")
    try:
        return motif_from_payload(entry)
    except TypeError as e:
        raise PayloadError(f"Invalid motif in motifs.{side.value}: {e}") from e


def build_session(payload: dict, settings=None) -> DesignSession:
    """
    Build a design session from a JSON payload.

    Motifs keep the ids given in the payload; fills are keyed "row,col".

    Raises:
        PayloadError: for a malformed payload
        GridDimensionError: for dimensions outside the accepted range
        ValueError: for unknown border / grid type / colour ids
    """
    if not isinstance(payload, dict):
        raise PayloadError('Design payload must be a JSON object')

    session = DesignSession(
        width_cm=_number(payload, 'widthCm', GRID_DEFAULTS['default_width']),
        height_cm=_number(payload, 'heightCm', GRID_DEFAULTS['default_height']),
        border_pattern=payload.get('borderPattern', 'border-1'),
        grid_type=payload.get('gridType', 'tett'),
        interpretation=payload.get('stitchInterpretation', 'black_filled'),
        settings=settings,
    )

    motifs = payload.get('motifs') or {}
    fills = payload.get('manualFills') or {}
    if not isinstance(motifs, dict) or not isinstance(fills, dict):
        raise PayloadError("'motifs' and 'manualFills' must map side -> entries")

    placed = {}
    overlay = ManualFillOverlay()
    for side in Side:
        entries = motifs.get(side.value) or []
        if not isinstance(entries, list):
            raise PayloadError(f"motifs.{side.value} must be a list")
        placed[side] = [_motif_entry(entry, side) for entry in entries]

        side_fills = fills.get(side.value) or {}
        if not isinstance(side_fills, dict):
            raise PayloadError(f"manualFills.{side.value} must map 'row,col' -> colour")
        for key, color in side_fills.items():
            row, col = parse_cell_key(key)
            overlay = overlay.set(row, col, side, FillColor(color))

    session.load_design(placed[Side.FRONT], placed[Side.BACK], overlay)
    return session


def run(payload: dict, chart_dir: Optional[str] = None) -> dict:
    """
    Generate both sides of a design.

    Returns:
    {
        "success": true,
        "front": {...pattern summary...},
        "back": {...},
        "yarn": {"grams": 439.11, "skeins": 9, "label": "9 × 50g"},
        "charts": {"front": "out/front.png", "back": "out/back.png"}
    }
    """
    session = build_session(payload)
    bundle = session.export_bundle()

    result = {
        'success': True,
        'stitchInterpretation': bundle.stitch_interpretation.value,
        'front': pattern_summary(bundle.front),
        'back': pattern_summary(bundle.back),
        'manualFills': {
            side.value: {
                format_cell_key(key): color.value
                for key, color in session.manual_fills.items(side)
            }
            for side in Side
        },
        'yarn': {
            'grams': round(bundle.yarn.grams, 2),
            'skeins': bundle.yarn.skeins_needed,
            'label': f"{format_yarn_grams(bundle.yarn.grams)} "
                     f"({format_skeins(bundle.yarn.skeins_needed)})",
        },
    }

    if chart_dir:
        os.makedirs(chart_dir, exist_ok=True)
        charts = {}
        for side, png in (('front', bundle.front_chart_png), ('back', bundle.back_chart_png)):
            path = os.path.join(chart_dir, f'{side}.png')
            with open(path, 'wb') as f:
                f.write(png)
            charts[side] = path
            logger.info(f"Wrote {side} chart to {path}")
        result['charts'] = charts

    return result


def _read_payload(source: str) -> dict:
    if source == '-':
        text = sys.stdin.read()
    else:
        with open(source, encoding='utf-8') as f:
            text = f.read()
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadError(f'Invalid JSON payload: {e}') from e


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='filetgrid',
        description='Generate filet crochet charts from a JSON design.',
    )
    parser.add_argument('payload', nargs='?', default='-', help="JSON design file ('-' for stdin)")
    parser.add_argument('--chart-dir', help='Write front.png and back.png charts here')
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        payload = _read_payload(args.payload)
        result = run(payload, args.chart_dir)
        exit_code = 0
    except ValueError as e:
        logger.error(f"Invalid design: {e}")
        result = {'success': False, 'error': str(e)}
        exit_code = 2
    except OSError as e:
        logger.exception('Failed to read or write files')
        result = {'success': False, 'error': str(e)}
        exit_code = 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
