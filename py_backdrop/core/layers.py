"""
Named terrain layers.

Mountains are drawn with straight segments, hills with spline curves.
Diagonal layers keep every slope at 45 degrees; random layers space their
points evenly and let the slope vary.
"""

from typing import Any, Mapping, Optional, Union

from ..config.backdrop_presets import LayerPreset, get_preset
from .backdrop import BackdropContext, BackdropElement, ElementOptions
from .drawables import RenderSurface
from .strategies import (
    DIAGONAL,
    FIXED_SPACING,
    SPLINE_DIAGONAL,
    SPLINE_FIXED_SPACING,
    get_strategy,
)

Options = Optional[Union[ElementOptions, Mapping[str, Any]]]


def diagonal_mountains(
    context: BackdropContext, surface: RenderSurface, element_id: str, options: Options = None
) -> BackdropElement:
    return BackdropElement(context, surface, element_id, DIAGONAL, options)


def diagonal_hills(
    context: BackdropContext, surface: RenderSurface, element_id: str, options: Options = None
) -> BackdropElement:
    return BackdropElement(context, surface, element_id, SPLINE_DIAGONAL, options)


def random_mountains(
    context: BackdropContext, surface: RenderSurface, element_id: str, options: Options = None
) -> BackdropElement:
    return BackdropElement(context, surface, element_id, FIXED_SPACING, options)


def random_hills(
    context: BackdropContext, surface: RenderSurface, element_id: str, options: Options = None
) -> BackdropElement:
    return BackdropElement(context, surface, element_id, SPLINE_FIXED_SPACING, options)


def create_layer_from_preset(
    context: BackdropContext,
    surface: RenderSurface,
    element_id: str,
    preset: Union[str, LayerPreset],
) -> BackdropElement:
    """
    Create a backdrop element configured by a layer preset.

    The preset's speed is not applied; pass ``preset.speed`` to ``play`` when
    starting the backdrop.

    Args:
        context: Backdrop context
        surface: Surface holding the drawable
        element_id: Id of the path drawable
        preset: Preset instance or name of a built-in preset

    Returns:
        The new element
    """
    if isinstance(preset, str):
        preset = get_preset(preset)
    options = ElementOptions(
        elevation_min=preset.elevation_min,
        elevation_max=preset.elevation_max,
        elevation_base=preset.elevation_base,
        point_distance=preset.point_distance,
    )
    return BackdropElement(context, surface, element_id, get_strategy(preset.strategy), options)
