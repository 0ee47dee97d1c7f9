"""Pixel grid construction and PNG output for Mandelbrot renders."""

from __future__ import annotations

import enum
import math
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
import PIL.Image

from .escape import escape_field, evaluate
from .palette import colorize, colorize_field

CHANNELS = 3
BACKENDS = ("tensorflow", "python")


@dataclass(frozen=True)
class RenderParameters:
    """Image size, iteration budget and plane window of a single render.

    Defaults reproduce the classic full view of the set: an 800x800 image of
    ``[-2, 1] x [-1.5, 1.5]`` with a budget of 1000 iterations.
    """

    width: int = 800
    height: int = 800
    max_iterations: int = 1000
    min_real: float = -2.0
    max_real: float = 1.0
    min_imag: float = -1.5
    max_imag: float = 1.5

    def __post_init__(self) -> None:
        for name in ("width", "height", "max_iterations"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("min_real", "max_real", "min_imag", "max_imag"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")

    @property
    def buffer_size(self) -> int:
        return self.width * self.height * CHANNELS


@dataclass(frozen=True)
class RasterResult:
    """Escape counts and the RGB pixels computed from them."""

    pixels: np.ndarray
    iterations: np.ndarray
    params: RenderParameters

    @property
    def buffer(self) -> bytes:
        """Row-major RGB bytes, three per pixel."""
        return self.pixels.tobytes()


class DriverState(enum.Enum):
    COMPUTING = "computing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class RasterWriteError(OSError):
    """Raised when the pixel buffer cannot be written to disk."""


def pixel_offset(x: int, y: int, width: int) -> int:
    return (y * width + x) * CHANNELS


def plane_coordinates(params: RenderParameters) -> tuple[np.ndarray, np.ndarray]:
    """Return the real axis (one value per column) and imaginary axis (per row)."""

    xs = np.arange(params.width, dtype=np.float64)
    ys = np.arange(params.height, dtype=np.float64)
    real = params.min_real + (xs / params.width) * (params.max_real - params.min_real)
    imag = params.min_imag + (ys / params.height) * (params.max_imag - params.min_imag)
    return real, imag


def _compute_sequential(params: RenderParameters) -> tuple[np.ndarray, np.ndarray]:
    real, imag = plane_coordinates(params)
    buffer = bytearray(params.buffer_size)
    counts = np.zeros((params.height, params.width), dtype=np.int32)

    for y in range(params.height):
        c_imag = float(imag[y])
        for x in range(params.width):
            iterations = evaluate(float(real[x]), c_imag, params.max_iterations)
            counts[y, x] = iterations
            index = pixel_offset(x, y, params.width)
            buffer[index:index + CHANNELS] = bytes(colorize(iterations, params.max_iterations))

    pixels = np.frombuffer(bytes(buffer), dtype=np.uint8).reshape(params.height, params.width, CHANNELS)
    return pixels, counts


def _compute_vectorized(params: RenderParameters, device: Optional[str]) -> tuple[np.ndarray, np.ndarray]:
    real, imag = plane_coordinates(params)
    grid_real, grid_imag = np.meshgrid(real, imag)
    counts = escape_field(grid_real, grid_imag, params.max_iterations, device=device)
    pixels = np.ascontiguousarray(colorize_field(counts, params.max_iterations))
    return pixels, counts


def compute_raster(
    params: RenderParameters,
    *,
    backend: str = "tensorflow",
    device: Optional[str] = None,
) -> RasterResult:
    """Evaluate and colorize every pixel of ``params``.

    ``backend="python"`` walks the pixels one at a time; ``"tensorflow"``
    evaluates the whole grid at once. Both yield the same bytes.
    """

    if backend == "python":
        pixels, counts = _compute_sequential(params)
    elif backend == "tensorflow":
        pixels, counts = _compute_vectorized(params, device)
    else:
        raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")

    return RasterResult(pixels=pixels, iterations=counts, params=params)


def write_png(
    result: Union[RasterResult, bytes],
    output_path: Union[str, Path],
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Path:
    """Write a render as an 8-bit RGB PNG and return the path written.

    ``result`` is either a :class:`RasterResult` or a raw row-major RGB buffer;
    a raw buffer needs ``width`` and ``height``.
    """

    if isinstance(result, RasterResult):
        size = (result.params.width, result.params.height)
        buffer = result.buffer
    else:
        if width is None or height is None:
            raise TypeError("width and height are required when writing a raw buffer")
        size = (width, height)
        buffer = bytes(result)

    output_path = Path(output_path)
    try:
        image = PIL.Image.frombytes("RGB", size, buffer)
        image.save(str(output_path), format="PNG")
    except (OSError, ValueError) as exc:
        raise RasterWriteError(f"could not write {output_path}: {exc}") from exc
    return output_path


def _print_error(message: str) -> None:
    print(message, file=sys.stderr)


def run(
    params: RenderParameters,
    output_path: Union[str, Path],
    *,
    backend: str = "tensorflow",
    device: Optional[str] = None,
    report: Callable[[str], None] = print,
    report_error: Callable[[str], None] = _print_error,
    log: Optional[Callable[..., None]] = None,
    on_state: Optional[Callable[[DriverState], None]] = None,
) -> DriverState:
    """Compute the image for ``params`` and save it to ``output_path``.

    The driver moves through COMPUTING, WRITING and then DONE, or FAILED when
    the write fails; ``on_state`` sees each transition. Progress goes to
    ``report``. A failed write is reported through ``report_error`` and is
    not retried.
    """

    def enter(state: DriverState) -> DriverState:
        if on_state is not None:
            on_state(state)
        return state

    enter(DriverState.COMPUTING)
    report("Generating Mandelbrot...")
    result = compute_raster(params, backend=backend, device=device)
    report("Mandelbrot generation complete.")
    report("Image buffer size: %d" % len(result.buffer))

    enter(DriverState.WRITING)
    try:
        written = write_png(result, output_path)
    except RasterWriteError as exc:
        if log is not None:
            log(str(exc))
        report_error("Failed to save the image!")
        return enter(DriverState.FAILED)

    if log is not None:
        log("Wrote %s" % written)
    report("Image saved successfully!")
    return enter(DriverState.DONE)
