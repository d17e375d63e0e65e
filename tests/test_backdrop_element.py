"""
Tests for the windowed path generator.
"""

import math

import pytest
from structlog.testing import capture_logs

from py_backdrop.core.backdrop import BackdropContext, BackdropElement, ElementOptions, SegmentRecord
from py_backdrop.core.catmull_rom import CatmullRom
from py_backdrop.core.geometry import Vector2, Viewport
from py_backdrop.core.scheduling import ManualFrameScheduler, ManualIdleScheduler
from py_backdrop.core.strategies import (
    DIAGONAL,
    FIXED_SPACING,
    SPLINE_DIAGONAL,
    SPLINE_FIXED_SPACING,
    SegmentStrategy,
)
from py_backdrop.render import SvgSurface

SCENARIO_OPTIONS = {"elevationMin": 0, "elevationMax": 10, "pointDistance": 10}


class TestBackdropElement:
    """Test grow, prune and commit."""

    @pytest.fixture
    def idle(self):
        return ManualIdleScheduler()

    @pytest.fixture
    def context(self, idle):
        return BackdropContext(ManualFrameScheduler(), idle, seed="element-tests")

    @pytest.fixture
    def surface(self):
        surface = SvgSurface(Viewport(x=0, y=0, width=100, height=10))
        surface.add_path("terrain")
        surface.add_polygon("outline")
        return surface

    @pytest.fixture
    def element(self, context, surface):
        return BackdropElement(context, surface, "terrain", FIXED_SPACING, SCENARIO_OPTIONS)

    def test_defaults_from_viewport(self, context, surface):
        element = BackdropElement(context, surface, "terrain")

        assert element.elevation_min == 10  # bottom
        assert element.elevation_max == 0  # top
        assert element.elevation_base == 10
        assert element.point_distance == 1
        assert element.cursor_start.x == 0
        assert 0 <= element.cursor_start.y <= 10
        assert element.strategy is FIXED_SPACING

    def test_options_override_defaults(self, context, surface):
        options = ElementOptions(
            elevation_min=-1, elevation_max=-9, elevation_base=3, cursor_start=Vector2(0, -4), point_distance=2.5
        )
        element = BackdropElement(context, surface, "terrain", DIAGONAL, options)

        assert element.elevation_min == -1
        assert element.elevation_max == -9
        assert element.elevation_base == 3
        assert element.cursor_start == Vector2(0, -4)
        assert element.point_distance == 2.5
        # the element keeps its own copy
        assert element.cursor_start is not options.cursor_start

    def test_camel_case_option_keys(self):
        options = ElementOptions.from_mapping({"elevationBase": 4, "cursorStart": (1, 2), "point_distance": 3})

        assert options.elevation_base == 4
        assert options.cursor_start == Vector2(1, 2)
        assert options.point_distance == 3

    def test_unknown_option_rejected(self, context, surface):
        with pytest.raises(TypeError, match="elevationStart"):
            BackdropElement(context, surface, "terrain", FIXED_SPACING, {"elevationStart": 5})

    def test_missing_drawable_fails_fast(self, context, surface):
        with pytest.raises(KeyError):
            BackdropElement(context, surface, "no-such-path")

    def test_wrong_drawable_kind_fails_fast(self, context, surface):
        with pytest.raises(TypeError, match="outline"):
            BackdropElement(context, surface, "outline")

        # nothing registered by the failed constructions
        assert context.backdrop_for(surface).elements == []

    @pytest.mark.parametrize("strategy", [FIXED_SPACING, SPLINE_FIXED_SPACING])
    @pytest.mark.parametrize("point_distance", [0, -10])
    def test_non_positive_point_distance_fails_fast(self, context, surface, idle, strategy, point_distance):
        with pytest.raises(ValueError, match="point_distance"):
            BackdropElement(context, surface, "terrain", strategy, {"pointDistance": point_distance})

        assert context.backdrop_for(surface).elements == []
        assert idle.pending_count == 0

    @pytest.mark.parametrize("strategy", [DIAGONAL, SPLINE_DIAGONAL])
    def test_flat_diagonal_range_fails_fast(self, context, surface, idle, strategy):
        with pytest.raises(ValueError, match="differ"):
            BackdropElement(context, surface, "terrain", strategy, {"elevationMin": 5, "elevationMax": 5})

        assert context.backdrop_for(surface).elements == []
        assert idle.pending_count == 0

    def test_flat_range_is_fine_with_fixed_spacing(self, context, surface, idle):
        element = BackdropElement(
            context, surface, "terrain", FIXED_SPACING, {"elevationMin": 5, "elevationMax": 5, "pointDistance": 10}
        )
        idle.run_until_idle()

        assert element.render_max >= 100
        assert element.build_path_data().startswith("M 0,5 L 10,5")

    def test_failed_construction_is_not_registered(self, context, surface):
        backdrop = context.backdrop_for(surface)
        spline = CatmullRom(Vector2(0, 3), Vector2(10, 6))

        with pytest.raises(ValueError):
            BackdropElement(
                context, surface, "terrain", SPLINE_FIXED_SPACING, {"spline": spline, "cursorStart": (0, 8)}
            )
        assert backdrop.elements == []

        # scrolling afterwards still works
        backdrop.advance(10)
        assert surface.viewport.x == 10

    def test_cursor_start_tuple_on_options(self, context, surface):
        options = ElementOptions(cursor_start=(0, 5))
        element = BackdropElement(context, surface, "terrain", FIXED_SPACING, options)

        assert options.cursor_start == Vector2(0, 5)
        assert element.cursor_start == Vector2(0, 5)
        assert element.backdrop.elements == [element]

    def test_construction_queues_initial_fill(self, element, idle, surface):
        assert element.update_pending
        assert idle.pending_timeouts() == [100.0]
        assert len(element.segments) == 0
        assert surface.get_element("terrain").updates == 0

    def test_render_bounds_when_empty(self, element):
        assert element.render_min == element.cursor_start.x
        assert element.render_max == element.render_min

    def test_initial_catch_up_scenario(self, element, idle, surface):
        idle.run_pending()

        endpoints = [record.endpoint.x for record in element.segments]
        assert len(endpoints) >= 10
        assert endpoints[:10] == [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert element.render_max >= 100
        assert not element.update_pending

        d = surface.get_element("terrain").d
        assert d.startswith("M 0,")
        assert d.startswith(f"M {element.cursor_start} L 10,")
        assert d.endswith("V 10 H 0 Z")
        assert d == element.path_data
        assert d.count(" L ") == len(element.segments)

    def test_prune_after_scroll_scenario(self, element, idle, surface):
        idle.run_pending()
        start = element.cursor_start.copy()

        surface.viewport.x = 50
        element.update()

        assert element.cursor_start.x == 40
        assert element.render_min == 40
        assert [r.endpoint.x for r in element.segments][0] == 50
        assert all(record.endpoint.x >= 50 for record in element.segments)
        assert element.render_max >= 150
        assert element.cursor_start != start
        assert element.path_data.startswith(f"M {element.cursor_start}")
        assert element.path_data.endswith("V 10 H 40 Z")

    def test_cursor_start_is_last_removed_endpoint(self, element, idle, surface):
        idle.run_pending()
        records = list(element.segments)

        surface.viewport.x = 35
        element.update()

        # 10, 20 and 30 scrolled out; 40 is still needed to draw from 35
        assert element.cursor_start == records[2].endpoint
        assert element.segments[0] is records[3]

    @pytest.mark.parametrize("strategy", [DIAGONAL, FIXED_SPACING, SPLINE_DIAGONAL, SPLINE_FIXED_SPACING])
    def test_coverage_and_bounded_buffer(self, context, surface, strategy):
        element = BackdropElement(context, surface, "terrain", strategy, {"elevationMin": 0, "elevationMax": 10, "pointDistance": 3})

        for x in [0, 17.5, 60, 61, 200, 1000.25]:
            surface.viewport.x = x
            element.update()
            viewport = surface.viewport

            assert element.render_max >= viewport.right
            assert element.render_min <= viewport.left
            assert element.segments
            # pruning is maximal: dropping one more segment would expose the left edge
            assert element.segments[0].endpoint.x >= viewport.left

    @pytest.mark.parametrize("strategy", [DIAGONAL, FIXED_SPACING, SPLINE_DIAGONAL, SPLINE_FIXED_SPACING])
    def test_endpoints_increase(self, context, surface, strategy):
        element = BackdropElement(context, surface, "terrain", strategy, SCENARIO_OPTIONS)
        surface.viewport.width = 500
        element.update()

        xs = [element.cursor_start.x] + [record.endpoint.x for record in element.segments]
        assert all(b > a for a, b in zip(xs, xs[1:]))

    def test_spline_segments_are_continuous(self, context, surface):
        element = BackdropElement(context, surface, "terrain", SPLINE_FIXED_SPACING, SCENARIO_OPTIONS)
        element.update()

        assert all(record.command.startswith("C ") for record in element.segments)
        assert element.spline.cursor == element.segments[-1].endpoint
        for record in element.segments:
            assert Vector2.parse(record.command.split(" ")[-1]) == record.endpoint
        assert "NaN" not in element.path_data

    def test_commit_is_idempotent(self, element, surface):
        element.update()
        drawable = surface.get_element("terrain")

        first = element.commit()
        second = element.commit()

        assert first == second
        assert drawable.d == first
        assert drawable.updates == 3

    def test_path_data_format(self, context, surface):
        options = {"cursorStart": (0, 5), "elevationBase": 12.5, "pointDistance": 50}
        flat = SegmentStrategy("flat", lambda element, frontier: Vector2(frontier.x + 50, 2))
        element = BackdropElement(context, surface, "terrain", flat, options)

        assert element.commit() == "M 0,5 V 12.5 H 0 Z"

        element.update()
        assert element.path_data == "M 0,5 L 50,2 L 100,2 V 12.5 H 0 Z"

    def test_random_elevation_range(self, element):
        samples = [element.random_elevation() for _ in range(500)]

        assert all(0 <= value <= 10 for value in samples)
        assert max(samples) - min(samples) > 5

    def test_same_seed_same_terrain(self):
        paths = []
        for _ in range(2):
            context = BackdropContext(ManualFrameScheduler(), ManualIdleScheduler(), seed="repeatable")
            fresh = SvgSurface(Viewport(0, 0, 100, 10))
            fresh.add_path("terrain")
            element = BackdropElement(context, fresh, "terrain", SPLINE_DIAGONAL, SCENARIO_OPTIONS)
            element.update()
            paths.append(element.path_data)

        assert paths[0] == paths[1]

    def test_segment_record_fields(self, element):
        element.update()
        record = element.segments[0]

        assert isinstance(record, SegmentRecord)
        command, endpoint = record
        assert command == f"L {endpoint}"


class TestCatchUpScheduling:
    """Test cooperative, budgeted catch-ups."""

    @pytest.fixture
    def idle(self):
        return ManualIdleScheduler()

    @pytest.fixture
    def surface(self):
        surface = SvgSurface(Viewport(x=0, y=0, width=100, height=10))
        surface.add_path("terrain")
        return surface

    @pytest.fixture
    def element(self, idle, surface):
        context = BackdropContext(ManualFrameScheduler(), idle, seed="scheduling-tests")
        return BackdropElement(context, surface, "terrain", FIXED_SPACING, SCENARIO_OPTIONS)

    def test_queue_update_is_deduplicated(self, element, idle):
        assert element.update_pending
        assert element.queue_update() is False
        assert element.queue_update(timeout=5) is False
        assert idle.pending_count == 1

    def test_scroll_notifications_coalesce(self, element, idle):
        backdrop = element.backdrop
        for _ in range(10):
            backdrop.advance(5)

        assert idle.pending_count == 1

        idle.run_pending()
        assert element.render_max >= 150
        assert idle.pending_count == 0

    def test_queue_after_completion(self, element, idle):
        idle.run_pending()
        assert element.queue_update() is True
        assert idle.pending_count == 1

    def test_budget_exhaustion_suspends_growth(self, element, idle, surface):
        drawable = surface.get_element("terrain")

        idle.run_pending(budget=3)

        assert len(element.segments) == 3
        assert element.update_pending
        assert idle.pending_timeouts() == [None]
        # nothing is drawn until the pass completes
        assert drawable.updates == 0

        rounds = idle.run_until_idle(budget=3)

        assert rounds == 3
        assert len(element.segments) == 10
        assert not element.update_pending
        assert drawable.updates == 1

    def test_timeout_resume_keeps_minimal_timeout(self, element, idle):
        idle.run_pending(budget=2, did_timeout=True)

        assert len(element.segments) == 2
        assert idle.pending_timeouts() == [1.0]

        idle.run_pending(budget=2, did_timeout=True)
        assert len(element.segments) == 4
        assert idle.pending_timeouts() == [1.0]

        # a genuine idle slot drops back to untimed resumes
        idle.run_pending(budget=2)
        assert idle.pending_timeouts() == [None]

    def test_resumed_pass_sees_viewport_movement(self, element, idle, surface):
        idle.run_pending(budget=4)
        surface.viewport.x = 30

        idle.run_until_idle()

        assert element.render_max >= 130
        assert element.render_min == 20

    def test_synchronous_update_finishes_suspended_pass(self, element, idle):
        idle.run_pending(budget=2)
        assert element.update_pending

        assert element.update() is True
        assert len(element.segments) == 10

        # the pending slot runs a cheap no-op pass and clears the guard
        idle.run_pending()
        assert len(element.segments) == 10
        assert not element.update_pending

    def test_failed_pass_clears_guard(self, idle, surface):
        def explode(element, frontier):
            raise RuntimeError("boom")

        context = BackdropContext(ManualFrameScheduler(), idle, seed="failure")
        element = BackdropElement(context, surface, "terrain", SegmentStrategy("broken", explode))

        with pytest.raises(RuntimeError, match="boom"):
            idle.run_pending()

        assert not element.update_pending
        assert element.queue_update() is True


class TestContractViolations:
    """Test that strategy bugs are logged, not raised."""

    @pytest.fixture
    def surface(self):
        surface = SvgSurface(Viewport(x=0, y=0, width=100, height=10))
        surface.add_path("terrain")
        return surface

    @pytest.fixture
    def context(self):
        return BackdropContext(ManualFrameScheduler(), ManualIdleScheduler(), seed="violations")

    def test_zero_advance_is_logged(self, context, surface):
        calls = []

        def stall_once(element, frontier):
            calls.append(frontier.x)
            advance = 0 if len(calls) == 1 else 50
            return Vector2(frontier.x + advance, 5)

        element = BackdropElement(context, surface, "terrain", SegmentStrategy("stall", stall_once))

        with capture_logs() as logs:
            assert element.update() is True

        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert len(warnings) == 1
        assert warnings[0]["event"] == "Segment strategy did not advance the cursor"
        assert warnings[0]["strategy"] == "stall"
        assert warnings[0]["element"] == "terrain"
        assert element.render_max >= 100

    def test_inconsistent_prune_lookahead_is_logged(self, context, surface):
        element = BackdropElement(context, surface, "terrain", FIXED_SPACING, SCENARIO_OPTIONS)
        element.update()
        surface.viewport.x = 25

        # a lookahead that disagrees with what removal actually does
        element.get_next_render_min = lambda: element.segments[0].endpoint.x - 1

        with capture_logs() as logs:
            removed = element.prune(surface.viewport.left)

        assert removed == 2
        warnings = [entry for entry in logs if entry["event"] == "Pruning left an unexpected render_min"]
        assert len(warnings) == 2
        assert warnings[0]["expected"] == 9
        assert warnings[0]["render_min"] == 10

    def test_consistent_prune_logs_nothing(self, context, surface):
        element = BackdropElement(context, surface, "terrain", FIXED_SPACING, SCENARIO_OPTIONS)
        element.update()
        surface.viewport.x = 55

        with capture_logs() as logs:
            element.update()

        assert [entry for entry in logs if entry["log_level"] == "warning"] == []
        assert element.render_min == 50

    def test_non_finite_geometry_is_logged(self, context, surface):
        calls = []

        def nan_once(element, frontier):
            calls.append(1)
            if len(calls) == 1:
                return Vector2(math.nan, 5)
            return Vector2(frontier.x + 50, 5)

        element = BackdropElement(
            context, surface, "terrain", SegmentStrategy("nan", nan_once), {"cursorStart": (0, 5)}
        )

        with capture_logs() as logs:
            element.update()

        assert any(entry["event"] == "Segment strategy did not advance the cursor" for entry in logs)
        assert "NaN" in element.path_data


class TestPreseededSpline:
    """Test elements built around an existing spline."""

    def test_cursor_start_follows_spline(self):
        context = BackdropContext(ManualFrameScheduler(), ManualIdleScheduler(), seed="spline")
        surface = SvgSurface(Viewport(0, 0, 100, 10))
        surface.add_path("terrain")
        spline = CatmullRom(Vector2(0, 3), Vector2(10, 6), Vector2(-10, 4))

        element = BackdropElement(context, surface, "terrain", SPLINE_FIXED_SPACING, {"spline": spline, "pointDistance": 10})
        element.update()

        assert element.cursor_start == Vector2(0, 3)
        assert element.segments[0].endpoint == Vector2(10, 6)
        assert element.spline is spline

    def test_matching_cursor_start_is_accepted(self):
        context = BackdropContext(ManualFrameScheduler(), ManualIdleScheduler(), seed="spline")
        surface = SvgSurface(Viewport(0, 0, 100, 10))
        surface.add_path("terrain")
        spline = CatmullRom(Vector2(0, 3), Vector2(10, 6))

        element = BackdropElement(
            context, surface, "terrain", SPLINE_FIXED_SPACING, {"spline": spline, "cursorStart": (0, 3)}
        )

        assert element.cursor_start == Vector2(0, 3)

    def test_cursor_start_off_the_spline_is_rejected(self):
        context = BackdropContext(ManualFrameScheduler(), ManualIdleScheduler(), seed="spline")
        surface = SvgSurface(Viewport(0, 0, 100, 10))
        surface.add_path("terrain")
        spline = CatmullRom(Vector2(0, 3), Vector2(10, 6))

        with pytest.raises(ValueError, match="spline cursor"):
            BackdropElement(
                context, surface, "terrain", SPLINE_FIXED_SPACING, {"spline": spline, "cursorStart": (0, 8)}
            )
