"""
Segment generation strategies.

A strategy is plain data: a name, a step function that picks the next raw
terrain point from the current frontier, and whether the result should be
smoothed through a Catmull-Rom spline. ``generate_next_segment`` is the one
function that turns a strategy into a path command.

Available strategies:
    - diagonal: random elevation, x advances by the elevation change so every
      slope is exactly 45 degrees (jagged mountains)
    - fixed-spacing: random elevation, x advances by ``point_distance``
    - spline-diagonal / spline-fixed-spacing: the same points, drawn as
      cubic curves (rolling hills)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List

from .catmull_rom import CatmullRom
from .geometry import Vector2

if TYPE_CHECKING:
    from .backdrop import BackdropElement

StepFunction = Callable[["BackdropElement", Vector2], Vector2]


@dataclass(frozen=True)
class SegmentStrategy:
    """Policy deciding where the terrain goes next."""

    name: str
    step: StepFunction
    smooth: bool = False


def diagonal_step(element: "BackdropElement", frontier: Vector2) -> Vector2:
    """Pick a random elevation and move right by as much as the elevation changed."""
    elevation = element.random_elevation()
    return Vector2(frontier.x + abs(elevation - frontier.y), elevation)


def fixed_spacing_step(element: "BackdropElement", frontier: Vector2) -> Vector2:
    """Pick a random elevation a fixed distance to the right."""
    return Vector2(frontier.x + element.point_distance, element.random_elevation())


def check_can_advance(
    strategy: SegmentStrategy, elevation_min: float, elevation_max: float, point_distance: float
) -> None:
    """
    Reject settings under which a built-in step can never move right.

    Raises:
        ValueError: Fixed spacing with ``point_distance <= 0``, or diagonal
            steps over an empty elevation range
    """
    if strategy.step is fixed_spacing_step and not point_distance > 0:
        raise ValueError(
            f"Strategy '{strategy.name}' needs a positive point_distance, got {point_distance}"
        )
    if strategy.step is diagonal_step and elevation_min == elevation_max:
        raise ValueError(
            f"Strategy '{strategy.name}' needs elevation_min and elevation_max to differ, "
            f"both are {elevation_min}"
        )


def generate_next_segment(
    strategy: SegmentStrategy, element: "BackdropElement", cursor: Vector2
) -> str:
    """
    Produce the next path command and move ``cursor`` to its endpoint.

    Straight strategies draw a line to the new raw point. Smooth strategies
    feed the raw point into the element's spline and draw the curve it
    returns, which ends one point behind the raw frontier. The spline is
    created on first use when the element was not given one.

    Args:
        strategy: Strategy to apply
        element: Element providing elevation range, spacing and spline state
        cursor: Current end of the path; updated in place

    Returns:
        Path command string (``L x,y`` or ``C x1,y1 x2,y2 x,y``)
    """
    if not strategy.smooth:
        cursor.update_from(strategy.step(element, cursor))
        return f"L {cursor}"

    spline = element.spline
    if spline is None:
        spline = element.spline = CatmullRom(cursor, strategy.step(element, cursor))

    control_1, control_2, endpoint = spline.add_point(
        strategy.step(element, spline.next_endpoint)
    )
    cursor.update_from(endpoint)
    return f"C {control_1} {control_2} {endpoint}"


DIAGONAL = SegmentStrategy("diagonal", diagonal_step)
FIXED_SPACING = SegmentStrategy("fixed-spacing", fixed_spacing_step)
SPLINE_DIAGONAL = SegmentStrategy("spline-diagonal", diagonal_step, smooth=True)
SPLINE_FIXED_SPACING = SegmentStrategy("spline-fixed-spacing", fixed_spacing_step, smooth=True)

STRATEGIES: Dict[str, SegmentStrategy] = {
    strategy.name: strategy
    for strategy in (DIAGONAL, FIXED_SPACING, SPLINE_DIAGONAL, SPLINE_FIXED_SPACING)
}


def get_strategy(name: str) -> SegmentStrategy:
    """Look up a built-in strategy by name."""
    if name not in STRATEGIES:
        raise ValueError(f"Unknown strategy '{name}'. Available: {', '.join(list_strategies())}")
    return STRATEGIES[name]


def list_strategies() -> List[str]:
    return list(STRATEGIES)
