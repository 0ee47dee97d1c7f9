"""Public API for Mandelbrot fractal pattern rendering."""

from .escape import escape_field, evaluate
from .palette import colorize, colorize_field
from .raster import (
    BACKENDS,
    DriverState,
    RasterResult,
    RasterWriteError,
    RenderParameters,
    compute_raster,
    pixel_offset,
    plane_coordinates,
    run,
    write_png,
)

__all__ = [
    "BACKENDS",
    "DriverState",
    "RasterResult",
    "RasterWriteError",
    "RenderParameters",
    "colorize",
    "colorize_field",
    "compute_raster",
    "escape_field",
    "evaluate",
    "pixel_offset",
    "plane_coordinates",
    "run",
    "write_png",
]
