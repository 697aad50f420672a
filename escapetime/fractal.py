import math

import numpy as np
from numba import njit, prange

INTERIOR = -1.0  # sentinel for points that never escape


@njit
def evaluate(z, c, numerator, denominator):
    """
    Compute P(z) / Q(z) + c with Horner's rule.

    Returns an infinite value when Q(z) is exactly zero.
    """
    p = 0j
    for k in range(numerator.shape[0] - 1, -1, -1):
        p = p * z + numerator[k]
    q = 0j
    for k in range(denominator.shape[0] - 1, -1, -1):
        q = q * z + denominator[k]
    if q.real == 0.0 and q.imag == 0.0:
        return complex(math.inf, 0.0)
    return p / q + c


@njit
def escape_value(z, c, numerator, denominator, max_iterations, escape_radius, log_degree):
    """Iterate from `z` and return the smoothed escape count, or INTERIOR."""
    for n in range(1, max_iterations + 1):
        z = evaluate(z, c, numerator, denominator)
        if not (math.isfinite(z.real) and math.isfinite(z.imag)):
            return float(n)
        modulus = abs(z)
        if modulus > escape_radius:
            if escape_radius <= 1.0 or not math.isfinite(modulus):
                return float(n)
            smooth = n + 1.0 - math.log(math.log(modulus) / math.log(escape_radius)) / log_degree
            return max(smooth, 0.0)
    return INTERIOR


@njit
def partition_rows(height, n_chunks, chunk):
    """Rows [start, stop) owned by `chunk`; chunk sizes differ by at most one row."""
    base = height // n_chunks
    extra = height % n_chunks
    start = chunk * base + min(chunk, extra)
    stop = start + base + (1 if chunk < extra else 0)
    return start, stop


@njit(parallel=True)
def compute_fractal(points, julia, param, c_coef, numerator, denominator,
                    max_iterations=100, escape_radius=2.0, log_degree=math.log(2.0), n_chunks=1):
    """
    Compute smoothed escape values for a grid of plane points.

    Rows are split into `n_chunks` disjoint ranges processed in parallel; each
    chunk writes only its own rows.
    """
    height, width = points.shape
    escape_values = np.empty((height, width), dtype=np.float64)

    for chunk in prange(n_chunks):  # parallelized
        start, stop = partition_rows(height, n_chunks, chunk)
        for i in range(start, stop):
            for j in range(width):
                if julia:
                    z = points[i, j]
                    c = c_coef * param
                else:
                    z = param
                    c = c_coef * points[i, j]
                escape_values[i, j] = escape_value(
                    z, c, numerator, denominator, max_iterations, escape_radius, log_degree
                )

    return escape_values
