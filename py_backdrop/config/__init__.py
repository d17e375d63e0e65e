"""
Configuration for backdrop generation.
"""

from .backdrop_presets import PRESETS, LayerPreset, get_preset, list_presets
from .config import Settings, settings

__all__ = ['get_preset', 'list_presets', 'PRESETS', 'LayerPreset', 'Settings', 'settings']
