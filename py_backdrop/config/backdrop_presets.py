"""
Layer presets for scrolling backdrops.

Each preset describes one terrain layer: which strategy draws it, the
elevation band it stays in and how fast its backdrop scrolls. Elevations are
screen coordinates, so ``elevation_max`` (the peak) is more negative than
``elevation_min``.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class LayerPreset(BaseModel):
    """Parameters for one generated terrain layer."""

    name: str = Field(..., description="Preset name")
    strategy: str = Field(..., description="Segment strategy name")
    elevation_min: Optional[float] = Field(default=None, description="Lowest point; defaults to viewport bottom")
    elevation_max: Optional[float] = Field(default=None, description="Highest point; defaults to viewport top")
    elevation_base: Optional[float] = Field(default=None, description="Flat bottom edge; defaults to viewport bottom")
    point_distance: float = Field(default=1.0, gt=0, description="Horizontal spacing for fixed-spacing strategies")
    speed: float = Field(default=0.01, gt=0, description="Scroll speed in viewport units per millisecond")


PRESETS: Dict[str, LayerPreset] = {
    "far-mountains": LayerPreset(
        name="far-mountains",
        strategy="fixed-spacing",
        elevation_max=-40,
        point_distance=10,
        speed=0.01,
    ),
    "near-hills": LayerPreset(
        name="near-hills",
        strategy="spline-diagonal",
        elevation_max=-20,
        elevation_min=-5,
        speed=0.02,
    ),
    "near-mountains": LayerPreset(
        name="near-mountains",
        strategy="diagonal",
        elevation_max=-20,
        elevation_min=-5,
        speed=0.02,
    ),
    "rolling-hills": LayerPreset(
        name="rolling-hills",
        strategy="spline-fixed-spacing",
        elevation_max=-15,
        elevation_min=-3,
        point_distance=8,
        speed=0.015,
    ),
}


def get_preset(name: str) -> LayerPreset:
    """Get a layer preset by name."""
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(list_presets())}")
    return PRESETS[name]


def list_presets() -> List[str]:
    """List the available preset names."""
    return list(PRESETS)
