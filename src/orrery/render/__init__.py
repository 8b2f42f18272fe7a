"""Pygame front end for the orrery."""

from .camera import Camera
from .draw import (
    draw_body,
    draw_orbit_path,
    draw_sun,
    interpolate_paths,
    parse_color,
)
from .ui import build_text_panel, get_text_surface, load_font
from .viewer import Fade, OrreryViewer

__all__ = [
    "Camera",
    "Fade",
    "OrreryViewer",
    "build_text_panel",
    "draw_body",
    "draw_orbit_path",
    "draw_sun",
    "get_text_surface",
    "interpolate_paths",
    "load_font",
    "parse_color",
]
