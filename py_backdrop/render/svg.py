"""
SVG sinks for backdrop geometry.

``SvgSurface`` plays the part of an ``<svg>`` root: it owns the viewBox the
backdrop scrolls and a set of drawables addressed by id. ``to_svg`` writes
the current state out as a standalone document.
"""

from typing import Dict, List, Optional, Sequence, Union
from xml.sax.saxutils import quoteattr

from ..core.geometry import Vector2, Viewport, format_number

DEFAULT_FILL = "#445566"


class SvgPath:
    """A ``<path>`` drawable; geometry is set as a ``d`` attribute."""

    def __init__(self, element_id: str, fill: str = DEFAULT_FILL):
        self.id = element_id
        self.fill = fill
        self.d = ""
        self.updates = 0

    def set_path_data(self, d: str) -> None:
        self.d = d
        self.updates += 1

    def to_svg(self) -> str:
        return f"<path id={quoteattr(self.id)} fill={quoteattr(self.fill)} d={quoteattr(self.d)}/>"


class SvgPolygon:
    """A ``<polygon>`` drawable; geometry is set as a list of vertices."""

    def __init__(self, element_id: str, fill: str = DEFAULT_FILL):
        self.id = element_id
        self.fill = fill
        self.points: List[Vector2] = []
        self.updates = 0

    def set_points(self, points: Sequence[Vector2]) -> None:
        self.points = [point.copy() for point in points]
        self.updates += 1

    @property
    def points_attribute(self) -> str:
        return " ".join(str(point) for point in self.points)

    def to_svg(self) -> str:
        return (
            f"<polygon id={quoteattr(self.id)} fill={quoteattr(self.fill)} "
            f"points={quoteattr(self.points_attribute)}/>"
        )


Drawable = Union[SvgPath, SvgPolygon]


class SvgSurface:
    """Root of an SVG scene: a viewBox plus drawables in paint order."""

    def __init__(self, viewport: Viewport, background: Optional[str] = None):
        self.viewport = viewport
        self.background = background
        self._elements: Dict[str, Drawable] = {}

    def __repr__(self) -> str:
        return f"SvgSurface(viewport={self.viewport!r}, elements={list(self._elements)})"

    def add_path(self, element_id: str, fill: str = DEFAULT_FILL) -> SvgPath:
        return self._add(SvgPath(element_id, fill))

    def add_polygon(self, element_id: str, fill: str = DEFAULT_FILL) -> SvgPolygon:
        return self._add(SvgPolygon(element_id, fill))

    def _add(self, element):
        if element.id in self._elements:
            raise ValueError(f"Duplicate element id '{element.id}'")
        self._elements[element.id] = element
        return element

    def get_element(self, element_id: str) -> Drawable:
        if element_id not in self._elements:
            raise KeyError(f"No element with id '{element_id}'")
        return self._elements[element_id]

    @property
    def elements(self) -> List[Drawable]:
        return list(self._elements.values())

    def to_svg(self, width: Optional[str] = "100%", height: Optional[str] = "100%") -> str:
        """Serialise the scene at the current scroll position."""
        attributes = [
            'xmlns="http://www.w3.org/2000/svg"',
            f"viewBox={quoteattr(self.viewport.view_box())}",
            'preserveAspectRatio="xMinYMax slice"',
        ]
        if width is not None:
            attributes.append(f"width={quoteattr(width)}")
        if height is not None:
            attributes.append(f"height={quoteattr(height)}")

        lines = [f"<svg {' '.join(attributes)}>"]
        if self.background:
            v = self.viewport
            lines.append(
                f'  <rect x="{format_number(v.left)}" y="{format_number(v.top)}" '
                f'width="{format_number(v.width)}" height="{format_number(v.height)}" '
                f"fill={quoteattr(self.background)}/>"
            )
        lines.extend(f"  {element.to_svg()}" for element in self._elements.values())
        lines.append("</svg>")
        return "\n".join(lines)
