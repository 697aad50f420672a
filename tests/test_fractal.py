import math
from dataclasses import replace

import numba
import numpy as np
import pytest

from escapetime.datatypes import IteratedFunction, ParameterSet, Viewport
from escapetime.fractal import INTERIOR, compute_fractal, escape_value, evaluate, partition_rows
from escapetime.parameters import sample_plane
from escapetime.render import compute_divergence, render, resolve_workers
from escapetime.settings import default_colormap

QUADRATIC = np.array([0, 0, 1], dtype=np.complex128)
ONE = np.array([1], dtype=np.complex128)


def test_evaluate_polynomial():
    assert evaluate(1 + 1j, 0.5 + 0j, QUADRATIC, ONE) == 0.5 + 2j


def test_evaluate_rational():
    inverse_den = np.array([0, 1], dtype=np.complex128)
    assert evaluate(2 + 0j, 0j, ONE, inverse_den) == pytest.approx(0.5)


def test_evaluate_zero_denominator_is_not_finite():
    inverse_den = np.array([0, 1], dtype=np.complex128)
    z = evaluate(0j, 0j, ONE, inverse_den)
    assert not (math.isfinite(z.real) and math.isfinite(z.imag))


def test_iterated_function_evaluate_applies_c_coef():
    function = IteratedFunction(numerator=(0, 0, 2), c_coef=3)
    assert function.evaluate(1j, 1) == pytest.approx(-2 + 3 + 0j)


def test_degree():
    assert IteratedFunction().degree == 2
    assert IteratedFunction(numerator=(1, 0, 0, 1)).degree == 3
    assert IteratedFunction(numerator=(0, 0, 1, 0)).degree == 2
    # deg P - deg Q = 1 falls back to 2
    assert IteratedFunction(numerator=(0, 0, 1), denominator=(1, 1)).degree == 2


def test_escape_value_interior_and_escape():
    log2 = math.log(2.0)
    assert escape_value(0j, 0j, QUADRATIC, ONE, 100, 2.0, log2) == INTERIOR
    # c = 2: z1 = 2, z2 = 6 escapes on the second step
    value = escape_value(0j, 2 + 0j, QUADRATIC, ONE, 100, 2.0, log2)
    expected = 3.0 - math.log(math.log(6.0) / math.log(2.0)) / log2
    assert value == pytest.approx(expected)
    assert 1.0 <= value <= 2.0


def test_escape_value_without_smoothing_for_small_radius():
    value = escape_value(0j, 3 + 0j, QUADRATIC, ONE, 10, 0.5, math.log(2.0))
    assert value == 1.0


@pytest.mark.parametrize("height, n_chunks", [(10, 1), (10, 3), (7, 7), (3, 8), (100, 6)])
def test_partition_rows_covers_each_row_once(height, n_chunks):
    covered = []
    sizes = []
    for chunk in range(n_chunks):
        start, stop = partition_rows(height, n_chunks, chunk)
        covered.extend(range(start, stop))
        sizes.append(stop - start)
    assert covered == list(range(height))
    assert max(sizes) - min(sizes) <= 1


def test_classic_mandelbrot_points(small_params):
    """c = 0 never escapes; c = 2 escapes within two iterations."""
    params = replace(
        small_params,
        function=IteratedFunction(max_iter=100, escape_radius=2.0),
        viewport=Viewport(center=0j, scale=0.5),
        width=12,
        height=10,
    )
    grid = compute_divergence(params)
    assert grid.values.shape == (10, 12)
    # pixel (6, 5) is c = 0, pixel (10, 5) is c = 2
    assert grid.values[5, 6] == INTERIOR
    assert grid.interior[5, 6]
    assert grid.values[5, 10] != INTERIOR
    assert 0.0 < grid.values[5, 10] <= 2.0


def test_julia_mode_seeds_z_with_pixel():
    params = ParameterSet(
        function=IteratedFunction(mode="julia", param=0j, max_iter=20),
        viewport=Viewport(center=0j, scale=0.5),
        colormap=default_colormap,
        width=8,
        height=8,
    )
    grid = compute_divergence(params)
    # z0 = 0 stays put; z0 = 1.5 (pixel 7, 4) escapes on the first step
    assert grid.values[4, 4] == INTERIOR
    assert grid.values[4, 7] != INTERIOR


def test_non_finite_step_is_divergence(small_params):
    params = replace(
        small_params,
        function=IteratedFunction(mode="julia", numerator=(1,), denominator=(0, 1), c_coef=0, max_iter=10),
        viewport=Viewport(center=0j, scale=0.25),
        width=8,
        height=8,
    )
    grid = compute_divergence(params)
    assert grid.values[4, 4] == 1.0
    assert np.all(np.isfinite(grid.values))


def test_grid_identical_for_any_chunk_count():
    points = sample_plane(Viewport(center=-0.5 + 0.1j, scale=0.1), 33, 21)
    results = [
        compute_fractal(points, False, 0j, 1 + 0j, QUADRATIC, ONE, 60, 2.0, math.log(2.0), n_chunks)
        for n_chunks in (1, 2, 5, 21, 40)
    ]
    for result in results[1:]:
        assert np.array_equal(result, results[0])


def test_render_identical_for_any_worker_count(small_params):
    baseline = render(small_params, workers=1)
    for workers in (2, numba.config.NUMBA_NUM_THREADS):
        assert np.array_equal(render(small_params, workers=workers), baseline)


def test_render_shape_and_preview_size(small_params):
    pixels = render(small_params)
    assert pixels.shape == (18, 24, 3)
    assert pixels.dtype == np.uint8
    preview = render(small_params, width=12, height=9)
    assert preview.shape == (9, 12, 3)


def test_render_leaves_thread_count_unchanged(small_params):
    before = numba.get_num_threads()
    render(small_params, workers=1)
    assert numba.get_num_threads() == before


def test_resolve_workers():
    assert resolve_workers(None) == numba.config.NUMBA_NUM_THREADS
    assert resolve_workers(1) == 1
    assert resolve_workers(10_000) == numba.config.NUMBA_NUM_THREADS
    with pytest.raises(ValueError):
        resolve_workers(0)


def test_compute_divergence_rejects_empty_size(small_params):
    with pytest.raises(ValueError):
        compute_divergence(small_params, width=0, height=10)
