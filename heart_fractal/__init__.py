"""Heart fractal renderer: escape-time evaluator, supersampled renderer, PNG output."""

from .iterators import (
    DEFAULT_CONFIG,
    HeartConfig,
    angle_term,
    escape_time,
    escape_time_array,
    heart_map,
    iterate_orbit,
    step,
)
from .render import (
    PixelBuffer,
    average_colors,
    colorize_iters,
    pixel_offset,
    render_image,
    render_pixel,
    render_row,
    supersample_points,
)
from .image_io import ImageSinkError, PngSink, write_png

__all__ = [
    "DEFAULT_CONFIG",
    "HeartConfig",
    "ImageSinkError",
    "PixelBuffer",
    "PngSink",
    "angle_term",
    "average_colors",
    "colorize_iters",
    "escape_time",
    "escape_time_array",
    "heart_map",
    "iterate_orbit",
    "pixel_offset",
    "render_image",
    "render_pixel",
    "render_row",
    "step",
    "supersample_points",
    "write_png",
]
