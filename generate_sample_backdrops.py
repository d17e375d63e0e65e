#!/usr/bin/env python3
"""
Render scrolling backdrop snapshots to SVG files.

Each preset layer gets its own surface, as parallax layers scroll at
different speeds. The scene is driven headlessly: the viewport is advanced
by a fixed frame time and idle work is flushed between frames, so the
output only depends on the seed.

Usage:
    python generate_sample_backdrops.py [--seed SEED] [--frames N] [--out DIR]
"""

import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent))

from py_backdrop.config import get_preset, list_presets, settings
from py_backdrop.core import BackdropContext, Viewport, create_layer_from_preset
from py_backdrop.core.scheduling import ManualFrameScheduler, ManualIdleScheduler
from py_backdrop.logging_config import configure_logging
from py_backdrop.render import SvgSurface

FRAME_MS = 1000 / 60


def render_scene(layers, frames=600, snapshot_every=120, seed="default", out_dir="backdrops",
                 idle_budget=25):
    """Scroll each layer for ``frames`` frames and write periodic snapshots."""
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    idle = ManualIdleScheduler()
    context = BackdropContext(ManualFrameScheduler(), idle, seed=seed)

    scenes = []
    for name in layers:
        preset = get_preset(name)
        surface = SvgSurface(Viewport(0, -100, 200, 100), background="#dde6ee")
        surface.add_path(name)
        element = create_layer_from_preset(context, surface, name, preset)
        scenes.append((preset, surface, element))

    idle.run_until_idle()

    written = []
    for frame in range(frames + 1):
        if frame:
            for preset, surface, element in scenes:
                element.backdrop.advance(FRAME_MS * preset.speed)
            # a limited budget per frame, like a busy host
            idle.run_pending(idle_budget)

        if frame % snapshot_every == 0:
            for preset, surface, element in scenes:
                target = out_path / f"{preset.name}_{frame:05d}.svg"
                target.write_text(surface.to_svg())
                written.append(target)
            print(f"  frame {frame}: " + ", ".join(
                f"{preset.name} [{element.render_min:.1f}, {element.render_max:.1f}] "
                f"{len(element.segments)} segments"
                for preset, surface, element in scenes
            ))

    idle.run_until_idle()
    return written


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Render scrolling backdrop snapshots")
    parser.add_argument("--seed", default="default", help="Random seed")
    parser.add_argument("--frames", type=int, default=600, help="Number of frames to simulate")
    parser.add_argument("--every", type=int, default=120, help="Write a snapshot every N frames")
    parser.add_argument("--out", default="backdrops", help="Output directory")
    parser.add_argument("--layer", action="append", choices=list_presets(),
                        help="Preset layer to render (repeatable, default: far-mountains and near-hills)")
    args = parser.parse_args()

    configure_logging(settings.log_level, json=settings.log_json)

    layers = args.layer or ["far-mountains", "near-hills"]
    print(f"Rendering {', '.join(layers)} with seed '{args.seed}'...")
    written = render_scene(layers, frames=args.frames, snapshot_every=args.every,
                           seed=args.seed, out_dir=args.out)
    print(f"Wrote {len(written)} SVG files to {args.out}/")


if __name__ == "__main__":
    main()
