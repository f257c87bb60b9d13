"""
Chart rendering with Pillow

- Export chart: black/white grid with counting numbers every 10 squares,
  handed to the document layout step as PNG
- Colour preview: the live view, manual fills shown in their yarn colour
- Text motifs: render a short text as an image that can be placed and
  rasterized like any other motif
"""

import io
import logging
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .compositor import Pattern, StitchInterpretation, display_grid
from .config import CANVAS, TEXT_MOTIF
from .manual_fill import FILL_COLOR_HEX, FillColor, ManualFillOverlay

logger = logging.getLogger(__name__)


CHART_FONT_SIZE = 9
FONT_CANDIDATES = ('DejaVuSans-Bold.ttf', 'Arial Bold.ttf', 'arialbd.ttf')


def _load_font(size: int) -> ImageFont.ImageFont:
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug(f"No TrueType font found, using Pillow default at {size}px")
    return ImageFont.load_default(size=size)


def render_chart(
    grid: np.ndarray,
    interpretation: Union[str, StitchInterpretation] = StitchInterpretation.BLACK_FILLED,
    cell_size: int = CANVAS['cell_size'],
) -> Image.Image:
    """
    Render a chart for export.

    Filled squares are drawn black with a small gap so they are easy to
    count; every square gets a thin outline. Column numbers run along the
    bottom from right to left and row numbers up the right side from the
    bottom, the order the piece is worked in.

    Args:
        grid: Effective grid, bool array (height, width)
        interpretation: 'black_open' inverts the drawing, not the grid
        cell_size: Pixels per square

    Returns:
        RGB Pillow image
    """
    height, width = grid.shape
    if StitchInterpretation(interpretation) is StitchInterpretation.BLACK_OPEN:
        grid = ~grid

    margin_left = CANVAS['margin_left']
    margin_top = CANVAS['margin_top']
    margin_right = CANVAS['margin_right']
    margin_bottom = CANVAS['margin_bottom']
    gap = CANVAS['cell_gap']

    image = Image.new(
        'RGB',
        (width * cell_size + margin_left + margin_right,
         height * cell_size + margin_top + margin_bottom),
        'white',
    )
    draw = ImageDraw.Draw(image)

    for row in range(height):
        for col in range(width):
            x = margin_left + col * cell_size
            y = margin_top + row * cell_size
            if grid[row, col]:
                draw.rectangle(
                    (x + gap, y + gap, x + cell_size - gap, y + cell_size - gap),
                    fill='black',
                )
            draw.rectangle((x, y, x + cell_size, y + cell_size), outline='black', width=1)

    font = _load_font(CHART_FONT_SIZE)
    step = CANVAS['numbering_step']

    for col in range(0, width + 1, step):
        x = margin_left + (width - col) * cell_size
        y = margin_top + height * cell_size + margin_bottom / 2
        draw.text((x, y), str(col), fill='black', font=font, anchor='mm')

    for row in range(0, height + 1, step):
        x = margin_left + width * cell_size + 8
        y = margin_top + (height - row) * cell_size
        draw.text((x, y), str(row), fill='black', font=font, anchor='lm')

    return image


def image_to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def chart_png_bytes(
    pattern: Pattern,
    interpretation: Union[str, StitchInterpretation] = StitchInterpretation.BLACK_FILLED,
    cell_size: int = CANVAS['cell_size'],
) -> bytes:
    """Export chart of a generated pattern as PNG bytes."""
    return image_to_png_bytes(render_chart(pattern.grid, interpretation, cell_size))


def _hex_to_rgb(hex_color: str):
    hex_color = hex_color.lstrip('#')
    return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))


def render_preview(
    pattern: Pattern,
    overlay: Optional[ManualFillOverlay] = None,
    interpretation: Union[str, StitchInterpretation] = StitchInterpretation.BLACK_FILLED,
    cell_size: int = 12,
) -> Image.Image:
    """
    Render the live colour view of one side.

    Cells follow the stitch interpretation, except manually painted
    cells, which always show their own colour.
    """
    shown = display_grid(pattern, interpretation)
    rgb = np.full((pattern.height, pattern.width, 3), 255, dtype=np.uint8)
    rgb[shown] = (0, 0, 0)

    if overlay is not None:
        for (row, col), color in overlay.items(pattern.side):
            if 0 <= row < pattern.height and 0 <= col < pattern.width:
                rgb[row, col] = _hex_to_rgb(FILL_COLOR_HEX[FillColor(color)])

    preview = Image.fromarray(rgb)
    return preview.resize(
        (pattern.width * cell_size, pattern.height * cell_size), Image.Resampling.NEAREST
    )


def render_text_motif(
    text: str,
    font_size: int = TEXT_MOTIF['font_size'],
) -> Image.Image:
    """
    Render text as a motif image: bold black letters on white, with
    letter spacing so the letters stay apart once rasterized.

    Raises:
        ValueError: for empty text or text over the length limit
    """
    text = text.strip()
    if not text:
        raise ValueError('Text motif cannot be empty')
    if len(text) > TEXT_MOTIF['max_length']:
        raise ValueError(f"Text motif is limited to {TEXT_MOTIF['max_length']} characters")

    font = _load_font(font_size)
    padding = TEXT_MOTIF['padding']
    spacing = font_size * TEXT_MOTIF['letter_spacing']

    probe = ImageDraw.Draw(Image.new('RGBA', (1, 1)))
    advances = [probe.textlength(ch, font=font) for ch in text]
    text_width = sum(advances) + spacing * (len(text) - 1)

    image = Image.new(
        'RGBA',
        (int(round(text_width)) + padding * 2, font_size + padding * 2),
        'white',
    )
    draw = ImageDraw.Draw(image)

    x = float(padding)
    for ch, advance in zip(text, advances):
        draw.text((x, padding), ch, fill='black', font=font, stroke_width=1, stroke_fill='black')
        x += advance + spacing

    return image
