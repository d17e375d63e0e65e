"""
Drawable sinks for generated backdrops.
"""

from .svg import SvgPath, SvgPolygon, SvgSurface

__all__ = ['SvgPath', 'SvgPolygon', 'SvgSurface']
