#!/usr/bin/env python3
"""
Demo script playing two backdrop layers in real time on asyncio.

Far mountains scroll at half the speed of the near hills. After a few
seconds the scene is stopped and the final frame is printed as SVG.
"""

import asyncio

from py_backdrop.config import get_preset, settings
from py_backdrop.core import BackdropContext, GrowingPolygon, Viewport, random_mountains, diagonal_hills
from py_backdrop.logging_config import configure_logging
from py_backdrop.render import SvgSurface


async def play_for(seconds: float) -> None:
    context = BackdropContext(seed="demo123")

    far = SvgSurface(Viewport(0, -100, 200, 100))
    far.add_path("far-mountains-shape", fill="#8899aa")
    near = SvgSurface(Viewport(0, -100, 200, 100))
    near.add_path("near-mountains-shape", fill="#556677")
    fallback = SvgSurface(Viewport(0, -100, 200, 100))
    fallback.add_polygon("fallback-shape", fill="#334455")

    far_mountains = random_mountains(context, far, "far-mountains-shape",
                                     {"elevationMax": -40, "pointDistance": 10})
    near_hills = diagonal_hills(context, near, "near-mountains-shape",
                                {"elevationMax": -20, "elevationMin": -5})
    polygon = GrowingPolygon(context, fallback, "fallback-shape", elevation_max=-30)

    print("Instantiated backdrops:", far_mountains, near_hills, sep="\n  ")

    far_mountains.play(get_preset("far-mountains").speed)
    near_hills.play(get_preset("near-hills").speed)
    polygon.backdrop.play(0.01)

    await asyncio.sleep(seconds)

    for backdrop in context.backdrops:
        backdrop.stop()
    for backdrop in context.backdrops:
        await backdrop.wait_stopped()

    print(f"\nNear hills after {seconds}s: {near_hills}")
    print(f"Polygon fallback holds {len(polygon.points)} points")
    print(near.to_svg())


def main():
    configure_logging(settings.log_level)
    print("Py-Backdrop Scrolling Demo")
    print("=" * 40)
    asyncio.run(play_for(3.0))


if __name__ == "__main__":
    main()
