"""Lobe preview: render a model's reflection lobe and export it as PNG.

Components:
    lobe: Hemisphere disk projection of f(wi, wo) cos(theta)
    display: Tone mapping and gamma correction
    export: 8-bit PNG export via Pillow
"""

from .display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    tone_map_exposure,
    tone_map_reinhard,
)
from .export import image_to_uint8, save_lobe_png, save_png_from_array
from .lobe import disk_directions, render_lobe

__all__ = [
    "TONE_MAP_METHODS",
    "ToneMapMethod",
    "apply_gamma",
    "disk_directions",
    "image_to_uint8",
    "process_image_for_display",
    "render_lobe",
    "save_lobe_png",
    "save_png_from_array",
    "tone_map_exposure",
    "tone_map_reinhard",
]
