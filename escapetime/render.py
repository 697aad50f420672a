import logging
import math
from time import time

import numba

from escapetime.colors import colorize
from escapetime.datatypes import JULIA, DivergenceGrid
from escapetime.fractal import compute_fractal
from escapetime.parameters import preview_viewport, sample_plane

logger = logging.getLogger(__name__)


def default_workers():
    """Number of workers used when none is requested: numba's configured thread count."""
    return numba.config.NUMBA_NUM_THREADS


def resolve_workers(workers=None):
    if workers is None:
        return default_workers()
    if workers < 1:
        raise ValueError(f"Worker count must be at least 1, got {workers}")
    maximum = default_workers()
    if workers > maximum:
        logger.warning(f"Requested {workers} workers, but only {maximum} threads are available. Using {maximum}.")
        return maximum
    return workers


def compute_divergence(params, width=None, height=None, workers=None):
    """
    Run the escape-time iteration for every pixel.

    `width`/`height` default to the parameter set's image size; other sizes
    render the same region of the plane. The returned grid does not depend on
    the number of workers.
    """
    width = params.width if width is None else width
    height = params.height if height is None else height
    if width < 1 or height < 1:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    workers = resolve_workers(workers)
    function = params.function

    logger.info(f"Starting fractal computation at {width}x{height} with {workers} workers...")
    start_time = time()
    viewport = preview_viewport(params.viewport, params.width, params.height, width, height)
    sampled_points = sample_plane(viewport, width, height)
    sample_time = time()

    previous_threads = numba.get_num_threads()
    numba.set_num_threads(workers)
    try:
        escape_values = compute_fractal(
            sampled_points,
            function.mode == JULIA,
            function.param,
            function.c_coef,
            function.numerator_array(),
            function.denominator_array(),
            max_iterations=function.max_iter,
            escape_radius=function.escape_radius,
            log_degree=math.log(function.degree),
            n_chunks=workers,
        )
    finally:
        numba.set_num_threads(previous_threads)

    end_time = time()
    logger.info(
        f"Fractal computation completed in {end_time - start_time:.2f} seconds. "
        f"{sample_time - start_time:.2f} seconds for sampling."
    )
    return DivergenceGrid(escape_values, function.max_iter)


def render(params, width=None, height=None, workers=None):
    """Render `params` to an RGB pixel buffer of shape (height, width, 3)."""
    grid = compute_divergence(params, width, height, workers)
    pixels = colorize(grid, params.colormap)
    logger.info("Fractal colored.")
    return pixels
