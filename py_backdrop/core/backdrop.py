"""
Scrolling backdrop engine.

A ``ScrollingBackdrop`` moves the viewport of one rendering surface to the
right at a fixed speed. Each ``BackdropElement`` on that surface keeps a
window of path segments covering the viewport: when the right edge outruns
the generated terrain, the element schedules a catch-up on the idle
scheduler that grows the path rightward, prunes segments that have scrolled
out on the left, and writes the resulting path to its drawable.

Catch-ups are cooperative. Growth yields after every segment so the work
can be spread over as many idle slots as it takes, and each element has at
most one catch-up pending at a time.
"""

import asyncio
import math
from collections import deque
from dataclasses import dataclass, fields
from typing import (
    Any,
    ClassVar,
    Deque,
    Dict,
    Generator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Protocol,
    Union,
)

import numpy as np
import structlog

from ..config import Settings, settings as default_settings
from ..utils.random import create_rng, get_rng
from .catmull_rom import CatmullRom
from .drawables import PathDrawable, RenderSurface
from .geometry import Vector2, Viewport, format_number
from .scheduling import (
    AsyncioFrameScheduler,
    AsyncioIdleScheduler,
    FrameScheduler,
    IdleDeadline,
    IdleScheduler,
    next_frame,
)
from .strategies import FIXED_SPACING, SegmentStrategy, check_can_advance, generate_next_segment

logger = structlog.get_logger()


class CatchUpTarget(Protocol):
    """Anything a backdrop can ask to catch up with its viewport."""

    @property
    def render_max(self) -> float:
        ...

    def queue_update(self, timeout: Optional[float] = None) -> bool:
        ...


class SegmentRecord(NamedTuple):
    """One path command and the point it leaves the cursor at."""

    command: str
    endpoint: Vector2


@dataclass
class ElementOptions:
    """
    Construction options for a backdrop element.

    Unset elevations default from the viewport: ``elevation_min`` and
    ``elevation_base`` to its bottom, ``elevation_max`` to its top. An unset
    ``cursor_start`` gets a random elevation at the viewport's left edge.
    """

    elevation_min: Optional[float] = None
    elevation_max: Optional[float] = None
    elevation_base: Optional[float] = None
    cursor_start: Optional[Vector2] = None
    point_distance: float = 1.0
    spline: Optional[CatmullRom] = None

    ALIASES: ClassVar[Dict[str, str]] = {
        "elevationMin": "elevation_min",
        "elevationMax": "elevation_max",
        "elevationBase": "elevation_base",
        "cursorStart": "cursor_start",
        "pointDistance": "point_distance",
    }

    def __post_init__(self):
        if self.cursor_start is not None and not isinstance(self.cursor_start, Vector2):
            self.cursor_start = Vector2.of(self.cursor_start)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ElementOptions":
        """Build options from snake_case or camelCase keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = cls.ALIASES.get(key, key)
            if name not in known:
                raise TypeError(f"Unknown backdrop element option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


class ScrollingBackdrop:
    """
    Scroll coordinator for one rendering surface.

    Owns the scroll speed, advances the surface's viewport every frame and
    asks lagging elements to catch up.
    """

    def __init__(
        self,
        surface: RenderSurface,
        frame_scheduler: FrameScheduler,
        idle_scheduler: IdleScheduler,
        settings: Optional[Settings] = None,
    ):
        self.surface = surface
        self.frame_scheduler = frame_scheduler
        self.idle_scheduler = idle_scheduler
        self.settings = settings or default_settings

        self.elements: List[CatchUpTarget] = []
        # viewport units per millisecond
        self.speed = 0.0

        self._playing = False
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def viewport(self) -> Viewport:
        """The live viewport; scrolling mutates it."""
        return self.surface.viewport

    @property
    def render_region(self) -> Viewport:
        """Snapshot of the visible region."""
        return self.viewport.snapshot()

    @property
    def is_playing(self) -> bool:
        return self._playing

    def register(self, element: CatchUpTarget) -> None:
        self.elements.append(element)

    def play(self, speed: float) -> None:
        """
        Start scrolling, or change the speed if already scrolling.

        Must be called from a running event loop.
        """
        if not speed > 0:
            raise ValueError(f"Scroll speed must be positive, got {speed}")
        self.speed = speed
        if not self._playing:
            self._playing = True
            self._loop_task = asyncio.get_running_loop().create_task(self._animation_loop())
            logger.info("Backdrop playback started", speed=speed)

    def stop(self) -> None:
        """Stop scrolling. The frame loop exits on its next wake-up."""
        self.speed = 0.0
        logger.info("Backdrop playback stopping")

    async def wait_stopped(self) -> None:
        """Wait for the frame loop to exit after ``stop``."""
        if self._loop_task is not None:
            await self._loop_task

    def advance(self, distance: float) -> None:
        """Scroll the viewport right and queue catch-ups for lagging elements."""
        viewport = self.viewport
        viewport.x += distance
        for element in self.elements:
            if viewport.right > element.render_max:
                element.queue_update()

    async def _animation_loop(self) -> None:
        try:
            last_frame = await next_frame(self.frame_scheduler)
            while self.speed:
                frame_time = await next_frame(self.frame_scheduler)
                self.advance((frame_time - last_frame) * self.speed)
                last_frame = frame_time
        finally:
            self._playing = False
            logger.info("Backdrop playback stopped", x=self.viewport.x)


class BackdropContext:
    """
    Shared state for every backdrop in an application.

    Holds the two schedulers, the random source and the registry that maps
    each rendering surface to its single ``ScrollingBackdrop``.
    """

    def __init__(
        self,
        frame_scheduler: Optional[FrameScheduler] = None,
        idle_scheduler: Optional[IdleScheduler] = None,
        seed: Optional[Union[int, str]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.frame_scheduler = frame_scheduler or AsyncioFrameScheduler(self.settings.frame_interval_ms)
        self.idle_scheduler = idle_scheduler or AsyncioIdleScheduler(
            budget_ms=self.settings.idle_budget_ms, delay_ms=self.settings.idle_delay_ms
        )

        if seed is None:
            seed = self.settings.seed
        self.rng: np.random.Generator = create_rng(seed) if seed is not None else get_rng()

        self._backdrops: Dict[int, ScrollingBackdrop] = {}

    @property
    def backdrops(self) -> List[ScrollingBackdrop]:
        return list(self._backdrops.values())

    def backdrop_for(self, surface: RenderSurface) -> ScrollingBackdrop:
        """Get the backdrop for a surface, creating it on first use."""
        # the backdrop keeps the surface alive, so its id stays unique
        backdrop = self._backdrops.get(id(surface))
        if backdrop is None:
            backdrop = ScrollingBackdrop(
                surface, self.frame_scheduler, self.idle_scheduler, settings=self.settings
            )
            self._backdrops[id(surface)] = backdrop
        return backdrop


class BackdropElement:
    """
    Procedurally drawn path kept in step with a scrolling viewport.

    The element stores its path as a deque of ``SegmentRecord`` whose
    endpoints never move left. ``cursor_start`` is where drawing begins:
    the endpoint of the last pruned segment, or the random starting point
    before anything has been pruned.
    """

    def __init__(
        self,
        context: BackdropContext,
        surface: RenderSurface,
        element_id: str,
        strategy: SegmentStrategy = FIXED_SPACING,
        options: Optional[Union[ElementOptions, Mapping[str, Any]]] = None,
    ):
        """
        Bind a generator to a path drawable and queue the initial fill.

        Args:
            context: Context owning the schedulers and surface registry
            surface: Surface holding the drawable
            element_id: Id of the path drawable on the surface
            strategy: How new segments are generated
            options: ``ElementOptions`` or a mapping of option keys

        Raises:
            KeyError: No drawable with that id exists on the surface
            TypeError: The drawable is not a path, or an option key is unknown
            ValueError: The strategy could never advance with these options, or
                ``cursor_start`` disagrees with a pre-seeded spline
        """
        drawable = surface.get_element(element_id)
        if not isinstance(drawable, PathDrawable):
            raise TypeError(f"Element {element_id} is not a path drawable!")

        if options is None:
            options = ElementOptions()
        elif not isinstance(options, ElementOptions):
            options = ElementOptions.from_mapping(options)

        self.id = element_id
        self.drawable = drawable
        self.strategy = strategy
        self.rng = context.rng
        self.backdrop = context.backdrop_for(surface)

        region = self.backdrop.render_region
        self.elevation_min = region.bottom if options.elevation_min is None else options.elevation_min
        self.elevation_max = region.top if options.elevation_max is None else options.elevation_max
        self.elevation_base = region.bottom if options.elevation_base is None else options.elevation_base
        self.point_distance = options.point_distance
        check_can_advance(strategy, self.elevation_min, self.elevation_max, self.point_distance)
        self.spline = options.spline

        if options.cursor_start is not None:
            if self.spline is not None and not options.cursor_start.equals(self.spline.cursor):
                raise ValueError(
                    f"cursor_start {options.cursor_start} does not match the spline cursor {self.spline.cursor}"
                )
            self.cursor_start = options.cursor_start.copy()
        elif self.spline is not None:
            # a pre-seeded spline already knows where the path is
            self.cursor_start = self.spline.cursor.copy()
        else:
            self.cursor_start = Vector2(region.left, self.random_elevation())

        self.segments: Deque[SegmentRecord] = deque()
        self.path_data: Optional[str] = None

        self._pending_update: Optional[int] = None
        self._catch_up: Optional[Generator[None, None, None]] = None

        self.backdrop.register(self)
        # first paint should not wait long
        self.queue_update(timeout=self.backdrop.settings.initial_update_timeout_ms)

    def __repr__(self) -> str:
        return (
            f"BackdropElement(id={self.id!r}, strategy={self.strategy.name!r}, "
            f"render_min={self.render_min}, render_max={self.render_max}, segments={len(self.segments)})"
        )

    @property
    def render_min(self) -> float:
        """Leftmost rendered x."""
        return self.cursor_start.x

    @property
    def render_max(self) -> float:
        """Rightmost rendered x."""
        if self.segments:
            return self.segments[-1].endpoint.x
        return self.render_min

    @property
    def path_start(self) -> str:
        return f"M {self.cursor_start}"

    @property
    def path_end(self) -> str:
        # drop to the base, run back to the left edge, close
        return f"V {format_number(self.elevation_base)} H {format_number(self.render_min)} Z"

    @property
    def update_pending(self) -> bool:
        return self._pending_update is not None

    def play(self, speed: float) -> None:
        """Shortcut for ``self.backdrop.play``."""
        self.backdrop.play(speed)

    def stop(self) -> None:
        """Shortcut for ``self.backdrop.stop``."""
        self.backdrop.stop()

    def random_elevation(self) -> float:
        """Uniform random elevation between ``elevation_min`` and ``elevation_max``."""
        return float(self.rng.random()) * (self.elevation_max - self.elevation_min) + self.elevation_min

    def queue_update(self, timeout: Optional[float] = None) -> bool:
        """
        Schedule a catch-up on the idle scheduler unless one is already pending.

        Returns:
            True if a new catch-up was scheduled
        """
        if self._pending_update is not None:
            return False
        self._pending_update = self.backdrop.idle_scheduler.request_idle_callback(
            self.update, timeout=timeout
        )
        logger.debug("Catch-up queued", element=self.id, render_max=self.render_max, timeout=timeout)
        return True

    def update(self, deadline: Optional[IdleDeadline] = None) -> bool:
        """
        Run the catch-up pass: grow past the right edge, prune, commit.

        Without a deadline the pass runs to completion. With one, growth
        stops once the deadline has no time left and the rest of the pass is
        requested as another idle callback; if this slot was forced by a
        timeout, the resume is requested with a minimal timeout too.

        Returns:
            True if the pass completed
        """
        if deadline is not None:
            # this call is the pending idle callback
            self._pending_update = None

        steps = self._catch_up if self._catch_up is not None else self._catch_up_steps()
        self._catch_up = None

        for _ in steps:
            if deadline is not None and deadline.time_remaining() <= 0:
                self._catch_up = steps
                timeout = self.backdrop.settings.resume_timeout_ms if deadline.did_timeout else None
                self._pending_update = self.backdrop.idle_scheduler.request_idle_callback(
                    self.update, timeout=timeout
                )
                logger.debug(
                    "Catch-up suspended", element=self.id, render_max=self.render_max, timeout=timeout
                )
                return False

        logger.debug(
            "Catch-up complete",
            element=self.id,
            render_min=self.render_min,
            render_max=self.render_max,
            segments=len(self.segments),
        )
        return True

    def _catch_up_steps(self) -> Generator[None, None, None]:
        viewport = self.backdrop.viewport
        while self.render_max < viewport.right:
            self.add_next_path_segment()
            yield
        self.prune(viewport.left)
        self.commit()

    def add_next_path_segment(self) -> SegmentRecord:
        """Append one segment generated by the strategy."""
        cursor = (self.segments[-1].endpoint if self.segments else self.cursor_start).copy()
        previous_x = cursor.x
        command = generate_next_segment(self.strategy, self, cursor)
        if not cursor.x > previous_x:
            logger.warning(
                "Segment strategy did not advance the cursor",
                element=self.id,
                strategy=self.strategy.name,
                previous_x=previous_x,
                x=cursor.x,
                command=command,
            )
        record = SegmentRecord(command, cursor)
        self.segments.append(record)
        return record

    def get_next_render_min(self) -> float:
        """The ``render_min`` that removing the first segment would leave. Needs a segment."""
        return self.segments[0].endpoint.x

    def remove_first_path_segment(self) -> SegmentRecord:
        record = self.segments.popleft()
        self.cursor_start = record.endpoint.copy()
        return record

    def prune(self, left: float) -> int:
        """
        Drop leading segments while doing so keeps ``render_min`` left of ``left``.

        Returns:
            Number of segments removed
        """
        epsilon = self.backdrop.settings.render_epsilon
        removed = 0
        while self.segments:
            next_render_min = self.get_next_render_min()
            if not next_render_min < left:
                break
            self.remove_first_path_segment()
            removed += 1
            difference = next_render_min - self.render_min
            if not math.isfinite(difference) or abs(difference) > epsilon:
                logger.warning(
                    "Pruning left an unexpected render_min",
                    element=self.id,
                    strategy=self.strategy.name,
                    expected=next_render_min,
                    render_min=self.render_min,
                )
        return removed

    def build_path_data(self) -> str:
        return " ".join([self.path_start, *(record.command for record in self.segments), self.path_end])

    def commit(self) -> str:
        """Write the current path to the drawable and return it."""
        self.path_data = self.build_path_data()
        self.drawable.set_path_data(self.path_data)
        return self.path_data
