"""
Centripetal Catmull-Rom splines expressed as cubic Bezier segments.

The conversion follows equation (2) of Yuksel, Schaefer and Keyser,
"Parameterization and Applications of Catmull-Rom Curves":
http://www.cemyuksel.com/research/catmullrom_param/catmullrom.pdf
"""

from typing import Optional, Sequence, Tuple

from .geometry import Vector2

CENTRIPETAL_ALPHA = 0.5


class CatmullRom:
    """
    Sliding-window Catmull-Rom generator.

    The algorithm needs four points per segment, so three are held between
    calls: ``previous_point``, ``cursor`` and ``next_endpoint``. Each call to
    ``add_point`` emits the Bezier for the cursor -> next_endpoint segment and
    shifts the window by one, which means the emitted curve always lags one
    point behind the newest point fed in.

    Example:
        >>> spline = CatmullRom(Vector2(1, 1), Vector2(2, 2), Vector2(1, 0))
        >>> b1, b2, end = spline.add_point(Vector2(3, 2))
        >>> str(end)
        '2,2'
        >>> str(spline.cursor), str(spline.next_endpoint)
        ('2,2', '3,2')
    """

    def __init__(
        self,
        origin_cursor: Vector2,
        first_endpoint: Vector2,
        previous_point: Optional[Vector2] = None,
    ):
        """
        Args:
            origin_cursor: Point the spline starts drawing from
            first_endpoint: End of the first segment that will be emitted
            previous_point: Point before the origin; defaults to the origin
                itself, i.e. a zero-length lead-in
        """
        self.previous_point = (previous_point if previous_point is not None else origin_cursor).copy()
        self.cursor = origin_cursor.copy()
        self.next_endpoint = first_endpoint.copy()

    @classmethod
    def from_options(
        cls,
        cursor: Vector2,
        next_endpoint: Optional[Vector2] = None,
        previous_point: Optional[Vector2] = None,
    ) -> "CatmullRom":
        """Build a spline where only the cursor is known; the endpoint is nudged off it."""
        if next_endpoint is None:
            next_endpoint = cursor.plus(Vector2(0.1, 0.1))
        return cls(cursor, next_endpoint, previous_point)

    @staticmethod
    def to_cubic(
        points: Sequence[Vector2], alpha: float = CENTRIPETAL_ALPHA
    ) -> Tuple[Vector2, Vector2, Vector2, Vector2]:
        """
        Convert four Catmull-Rom control points into the cubic Bezier from p1 to p2.

        A zero distance between neighbours (coincident points) takes the limit
        of the formula as that distance shrinks: the adjacent control point
        collapses onto its endpoint.

        Returns:
            (p1, b1, b2, p2)
        """
        p0, p1, p2, p3 = points
        d1 = p0.distance_to(p1) ** alpha
        d2 = p1.distance_to(p2) ** alpha
        d3 = p2.distance_to(p3) ** alpha
        d1s, d2s, d3s = d1 * d1, d2 * d2, d3 * d3

        if d1 == 0:
            b1 = p1.copy()
        else:
            # b1 = (d1s*p2 - d2s*p0 + (2*d1s + 3*d1*d2 + d2s)*p1) / (3*d1*(d1+d2))
            b1 = (
                p2.scale(d1s)
                .minus(p0.scale(d2s))
                .plus(p1.scale(2 * d1s + 3 * d1 * d2 + d2s))
                .divide(3 * d1 * (d1 + d2))
            )

        if d3 == 0:
            b2 = p2.copy()
        else:
            # b2 = (d3s*p1 - d2s*p3 + (2*d3s + 3*d3*d2 + d2s)*p2) / (3*d3*(d3+d2))
            b2 = (
                p1.scale(d3s)
                .minus(p3.scale(d2s))
                .plus(p2.scale(2 * d3s + 3 * d3 * d2 + d2s))
                .divide(3 * d3 * (d3 + d2))
            )

        return p1, b1, b2, p2

    def add_point(self, new_point: Vector2) -> Tuple[Vector2, Vector2, Vector2]:
        """
        Append a point and return the Bezier for the segment following the cursor.

        Args:
            new_point: Next raw point. It becomes the endpoint returned by the
                *following* call.

        Returns:
            (control_1, control_2, endpoint)
        """
        _, b1, b2, endpoint = self.to_cubic(
            (self.previous_point, self.cursor, self.next_endpoint, new_point)
        )

        self.previous_point = self.cursor
        self.cursor = self.next_endpoint
        self.next_endpoint = new_point.copy()

        return b1, b2, endpoint.copy()

    def __repr__(self) -> str:
        return (
            f"CatmullRom(previous={self.previous_point!r}, cursor={self.cursor!r}, "
            f"next_endpoint={self.next_endpoint!r})"
        )
