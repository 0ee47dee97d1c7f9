"""Polynomial color gradient for escape-time counts."""

from __future__ import annotations

import numpy as np

INSIDE_COLOR = (0, 0, 0)


def _clamp_channel(value: float) -> int:
    return max(0, min(int(value), 255))


def colorize(iterations: int, max_iterations: int) -> tuple[int, int, int]:
    """Map an escape count to an ``(r, g, b)`` triple.

    Points that never escaped are black. Escaped points follow a Bernstein-like
    gradient in ``t = iterations / max_iterations`` whose peaks exceed 255, so
    every channel is clamped.
    """

    if iterations == max_iterations:
        return INSIDE_COLOR

    t = iterations / max_iterations
    r = 9 * (1 - t) * t * t * t * 255 * 1.5
    g = 15 * (1 - t) * (1 - t) * t * t * 255 * 1.5
    b = 8.5 * (1 - t) * (1 - t) * (1 - t) * t * 255 * 1.5
    return _clamp_channel(r), _clamp_channel(g), _clamp_channel(b)


def colorize_field(iterations: np.ndarray, max_iterations: int) -> np.ndarray:
    """Vectorized :func:`colorize`; returns ``uint8`` with a trailing RGB axis."""

    iterations = np.asarray(iterations)
    t = iterations.astype(np.float64) / max_iterations
    # Same operation order as colorize so both round identically.
    channels = np.stack(
        (
            9 * (1 - t) * t * t * t * 255 * 1.5,
            15 * (1 - t) * (1 - t) * t * t * 255 * 1.5,
            8.5 * (1 - t) * (1 - t) * (1 - t) * t * 255 * 1.5,
        ),
        axis=-1,
    )
    rgb = np.clip(np.trunc(channels), 0, 255).astype(np.uint8)
    rgb[iterations == max_iterations] = INSIDE_COLOR
    return rgb
