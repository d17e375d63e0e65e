"""
Core backdrop generation functionality.
"""

from .geometry import Vector2, Viewport, format_number
from .catmull_rom import CatmullRom
from .strategies import (
    SegmentStrategy, DIAGONAL, FIXED_SPACING, SPLINE_DIAGONAL, SPLINE_FIXED_SPACING,
    check_can_advance, generate_next_segment, get_strategy, list_strategies,
)
from .backdrop import BackdropContext, BackdropElement, ElementOptions, ScrollingBackdrop, SegmentRecord
from .polygon import GrowingPolygon
from .layers import diagonal_mountains, diagonal_hills, random_mountains, random_hills, create_layer_from_preset

__all__ = ['Vector2', 'Viewport', 'format_number', 'CatmullRom',
           'SegmentStrategy', 'DIAGONAL', 'FIXED_SPACING', 'SPLINE_DIAGONAL', 'SPLINE_FIXED_SPACING',
           'check_can_advance', 'generate_next_segment', 'get_strategy', 'list_strategies',
           'BackdropContext', 'BackdropElement', 'ElementOptions', 'ScrollingBackdrop', 'SegmentRecord',
           'GrowingPolygon',
           'diagonal_mountains', 'diagonal_hills', 'random_mountains', 'random_hills', 'create_layer_from_preset']
