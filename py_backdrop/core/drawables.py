"""
Interfaces between the generators and whatever draws their output.

Generators never render anything themselves: they hand a finished geometry
description to a drawable and read the visible region from the surface the
drawable lives on.
"""

from typing import Any, Protocol, Sequence, runtime_checkable

from .geometry import Vector2, Viewport


@runtime_checkable
class PathDrawable(Protocol):
    """Sink that takes a whole path description (``M ... Z``) per update."""

    def set_path_data(self, d: str) -> None:
        ...


@runtime_checkable
class PolygonDrawable(Protocol):
    """Sink that takes an ordered list of polygon vertices per update."""

    def set_points(self, points: Sequence[Vector2]) -> None:
        ...


class RenderSurface(Protocol):
    """A scrollable canvas holding drawables by id."""

    viewport: Viewport

    def get_element(self, element_id: str) -> Any:
        """Return the drawable registered under ``element_id`` or raise ``KeyError``."""
        ...
