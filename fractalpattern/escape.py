"""Escape-time evaluation of the Mandelbrot iteration ``z <- z**2 + c``."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

# |z| >= 2 is compared as |z|**2 >= 4 to avoid a square root per step.
ESCAPE_RADIUS_SQUARED = 4.0


def evaluate(real: float, imag: float, max_iterations: int) -> int:
    """Count the iterations before the orbit of ``c = real + imag*i`` escapes.

    The orbit starts at ``z = 0``. The result lies in ``[0, max_iterations]``;
    ``max_iterations`` means the orbit stayed bounded for the whole budget.
    """

    zr = 0.0
    zi = 0.0
    iterations = 0
    while zr * zr + zi * zi < ESCAPE_RADIUS_SQUARED and iterations < max_iterations:
        zr, zi = zr * zr - zi * zi + real, 2.0 * zr * zi + imag
        iterations += 1
    return iterations


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that has not escaped by one iteration."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    radius = tf.constant(ESCAPE_RADIUS_SQUARED, dtype=zr.dtype)
    new_active = tf.logical_and(active, zr * zr + zi * zi < radius)
    return zr, zi, ns, new_active


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the whole grid with a TensorFlow while loop and return the counts."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, dtype=tf.int32)
    active = tf.ones_like(ns, dtype=tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def escape_field(
    real: np.ndarray,
    imag: np.ndarray,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Vectorized :func:`evaluate` over arrays of plane coordinates.

    ``real`` and ``imag`` must share a shape; the returned ``int32`` array has
    that shape and matches :func:`evaluate` element by element.
    """

    real = np.asarray(real, dtype=np.float64)
    imag = np.asarray(imag, dtype=np.float64)
    if real.shape != imag.shape:
        raise ValueError(f"real and imag shapes differ: {real.shape} != {imag.shape}")
    if real.size == 0:
        return np.zeros(real.shape, dtype=np.int32)

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(real, dtype=tf.float64)
        ci = tf.convert_to_tensor(imag, dtype=tf.float64)
        ns = _escape_run(cr, ci, tf.constant(max_iterations, dtype=tf.int32))

    return ns.numpy()
