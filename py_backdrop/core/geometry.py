"""
Geometry primitives for backdrop generation.

Provides:
    - Vector2: 2D point value type used for cursors, endpoints and control points
    - Viewport: the visible rectangle of the infinite horizontal canvas
    - format_number: number formatting for geometry description strings

Elevations follow screen coordinates: y grows downwards, so a "higher"
point has a more negative y.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

Number = Union[int, float]


def format_number(value: Number) -> str:
    """
    Format a number the way a browser writes it into an attribute.

    Integral values lose their decimal part (``10`` rather than ``10.0``),
    everything else uses the shortest round-trip representation.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Vector2:
    """
    A 2D point.

    Arithmetic returns new instances. The only in-place mutation is
    ``update_from``, used to reuse one cursor object across a generation step.
    """

    __slots__ = ("x", "y")

    def __init__(self, x: Number, y: Number):
        self.x = float(x)
        self.y = float(y)

    @classmethod
    def zero(cls) -> "Vector2":
        return cls(0.0, 0.0)

    @classmethod
    def invalid(cls) -> "Vector2":
        """Sentinel for uninitialised state. Test it with ``is_invalid``, never ``==``."""
        return cls(math.nan, math.nan)

    @classmethod
    def from_point(cls, point_like) -> "Vector2":
        """Copy anything exposing ``x`` and ``y`` attributes."""
        return cls(point_like.x, point_like.y)

    @classmethod
    def of(cls, values: Iterable[Number]) -> "Vector2":
        x, y = values
        return cls(x, y)

    @classmethod
    def parse(cls, ordered_pair: str) -> "Vector2":
        """Parse an ``"x,y"`` string."""
        x, y = ordered_pair.split(",")
        return cls(float(x), float(y))

    @property
    def squared_magnitude(self) -> float:
        return self.x * self.x + self.y * self.y

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.squared_magnitude)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @property
    def is_invalid(self) -> bool:
        return math.isnan(self.x) and math.isnan(self.y)

    def update_from(self, other) -> None:
        """Copy another point's coordinates into this one in place."""
        self.x = float(other.x)
        self.y = float(other.y)

    def copy(self) -> "Vector2":
        return Vector2(self.x, self.y)

    def plus(self, other) -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def minus(self, other) -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def scale(self, k: Number) -> "Vector2":
        return Vector2(self.x * k, self.y * k)

    def divide(self, k: Number) -> "Vector2":
        return Vector2(self.x / k, self.y / k)

    def squared_distance_to(self, other) -> float:
        return self.minus(other).squared_magnitude

    def distance_to(self, other) -> float:
        return self.minus(other).magnitude

    def equals(self, other) -> bool:
        """Exact comparison. NaN coordinates never compare equal."""
        return self.x == other.x and self.y == other.y

    def approx_equals(self, other, epsilon: float = 1e-6) -> bool:
        return abs(self.x - other.x) <= epsilon and abs(self.y - other.y) <= epsilon

    def with_x(self, x: Number) -> "Vector2":
        return Vector2(x, self.y)

    def with_y(self, y: Number) -> "Vector2":
        return Vector2(self.x, y)

    def __add__(self, other) -> "Vector2":
        return self.plus(other)

    def __sub__(self, other) -> "Vector2":
        return self.minus(other)

    def __mul__(self, k: Number) -> "Vector2":
        return self.scale(k)

    __rmul__ = __mul__

    def __truediv__(self, k: Number) -> "Vector2":
        return self.divide(k)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector2):
            return NotImplemented
        return self.equals(other)

    # mutable through update_from
    __hash__ = None

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __str__(self) -> str:
        return f"{format_number(self.x)},{format_number(self.y)}"

    def __repr__(self) -> str:
        return f"Vector2({self.x!r}, {self.y!r})"


@dataclass
class Viewport:
    """
    Visible region of the canvas.

    Owned by the rendering surface; the scroll coordinator only ever moves ``x``.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def snapshot(self) -> "Viewport":
        """Copy of the current rectangle, unaffected by later scrolling."""
        return Viewport(self.x, self.y, self.width, self.height)

    def view_box(self) -> str:
        return " ".join(format_number(v) for v in (self.x, self.y, self.width, self.height))
