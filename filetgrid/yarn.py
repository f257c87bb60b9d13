"""
Yarn calculation for filet crochet pieces.

Area-based formula using consumption rates measured on finished bags.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .config import YARN_CALCULATION


class GridType(Enum):
    """Dense (tett) or open (åpent) filet grid."""
    TETT = 'tett'
    APENT = 'åpent'


SKEIN_WEIGHT = YARN_CALCULATION['skein_weight']


@dataclass(frozen=True)
class YarnRequired:
    grams: float
    skeins_needed: int


def consumption_rate(grid_type: Union[str, GridType]) -> float:
    """Grams of yarn per cm² for the given grid type."""
    if GridType(grid_type) is GridType.TETT:
        return YARN_CALCULATION['consumption_rate_tett']
    return YARN_CALCULATION['consumption_rate_apent']


def calculate_yarn_required(
    width_cm: float,
    height_cm: float,
    grid_type: Union[str, GridType],
) -> YarnRequired:
    """
    Calculate yarn required for a piece of the given size.

    Example:
        calculate_yarn_required(30, 35, 'tett')
        -> YarnRequired(grams=219.45, skeins_needed=5)
    """
    area = width_cm * height_cm
    grams = area * consumption_rate(grid_type)
    return YarnRequired(grams=grams, skeins_needed=skeins_for(grams))


def skeins_for(grams: float) -> int:
    return math.ceil(grams / SKEIN_WEIGHT)


def format_yarn_grams(grams: float) -> str:
    """e.g. '218.55g'"""
    return f"{grams:.2f}g"


def format_skeins(skeins: int, weight: int = SKEIN_WEIGHT) -> str:
    """e.g. '5 × 50g'"""
    return f"{skeins} × {weight}g"
