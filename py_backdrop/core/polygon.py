"""
Growth-only polygon terrain.

The simplest way to draw scrolling mountains: one polygon whose vertex list
only ever grows to the right. Its first vertex is the lower-right corner and
is moved to the rightmost generated x on every update so the shape stays
closed. Nothing is pruned, so memory grows with distance scrolled; prefer
``BackdropElement`` and use this only as a fallback where a sink can take
point lists but not path descriptions.
"""

from typing import List, Optional

import structlog

from .backdrop import BackdropContext
from .drawables import PolygonDrawable, RenderSurface
from .geometry import Vector2
from .scheduling import IdleDeadline

logger = structlog.get_logger()


class GrowingPolygon:
    """Diagonal mountains drawn as an ever-growing polygon."""

    def __init__(
        self,
        context: BackdropContext,
        surface: RenderSurface,
        element_id: str,
        elevation_max: Optional[float] = None,
        elevation_min: Optional[float] = None,
    ):
        """
        Args:
            context: Context owning the schedulers and surface registry
            surface: Surface holding the polygon drawable
            element_id: Id of the polygon drawable
            elevation_max: Highest point; defaults to the viewport top
            elevation_min: Lowest point; defaults to the viewport bottom
        """
        drawable = surface.get_element(element_id)
        if not isinstance(drawable, PolygonDrawable):
            raise TypeError(f"Element {element_id} is not a polygon drawable!")

        self.id = element_id
        self.drawable = drawable
        self.rng = context.rng
        self.backdrop = context.backdrop_for(surface)

        region = self.backdrop.render_region
        self.elevation_max = region.top if elevation_max is None else elevation_max
        self.elevation_min = region.bottom if elevation_min is None else elevation_min
        if self.elevation_max == self.elevation_min:
            raise ValueError(
                f"Polygon terrain needs elevation_min and elevation_max to differ, both are {self.elevation_min}"
            )
        self.render_min = region.left
        self.render_max = region.left
        self.last_elevation: Optional[float] = None

        # lower-right and lower-left corners
        self.points: List[Vector2] = [
            Vector2(self.render_max, region.bottom),
            Vector2(self.render_min, region.bottom),
        ]
        self._pending_update: Optional[int] = None
        self.backdrop.register(self)
        self.update()

    def random_elevation(self) -> float:
        return float(self.rng.random()) * (self.elevation_max - self.elevation_min) + self.elevation_min

    def queue_update(self, timeout: Optional[float] = None) -> bool:
        if self._pending_update is not None:
            return False
        self._pending_update = self.backdrop.idle_scheduler.request_idle_callback(
            self.update, timeout=timeout
        )
        return True

    def update(self, deadline: Optional[IdleDeadline] = None) -> None:
        """Grow past the viewport's right edge and re-anchor the closing corner."""
        if deadline is not None:
            self._pending_update = None

        target = self.backdrop.viewport.right
        while self.render_max < target:
            elevation = self.random_elevation()
            if self.last_elevation is not None:
                advance = abs(elevation - self.last_elevation)
                if advance == 0:
                    logger.warning("Polygon terrain did not advance", element=self.id, x=self.render_max)
                self.render_max += advance
            self.last_elevation = elevation
            self.points.append(Vector2(self.render_max, elevation))

        self.points[0] = self.points[0].with_x(self.render_max)
        self.drawable.set_points(self.points)
