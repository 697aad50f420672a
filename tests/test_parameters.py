import math

import numpy as np
import pytest

from escapetime.datatypes import Viewport
from escapetime.errors import ValidationError
from escapetime.parameters import (
    bounds,
    pan,
    pixel_to_complex,
    preview_viewport,
    recenter,
    resize,
    sample_plane,
    zoom,
)


@pytest.mark.parametrize("rotation", [0.0, 0.7, -2.0])
def test_center_pixel_maps_to_center(rotation):
    viewport = Viewport(center=-0.75 + 0.1j, scale=0.01, rotation=rotation)
    z = pixel_to_complex(400, 300, viewport, 800, 600)
    assert z.real == pytest.approx(-0.75, abs=1e-12)
    assert z.imag == pytest.approx(0.1, abs=1e-12)


def test_vertical_axis_points_up():
    viewport = Viewport(center=0j, scale=0.5)
    top = pixel_to_complex(2, 0, viewport, 4, 4)
    bottom = pixel_to_complex(2, 4, viewport, 4, 4)
    assert top == pytest.approx(1j)
    assert bottom == pytest.approx(-1j)


def test_horizontal_axis():
    viewport = Viewport(center=1 + 1j, scale=0.25)
    assert pixel_to_complex(0, 2, viewport, 4, 4) == pytest.approx(0.5 + 1j)


def test_rotation_quarter_turn():
    """Rotating by pi/2 turns the rightward image direction into +imaginary."""
    viewport = Viewport(center=0j, scale=1.0, rotation=math.pi / 2)
    z = pixel_to_complex(3, 2, viewport, 4, 4)
    assert z.real == pytest.approx(0.0, abs=1e-12)
    assert z.imag == pytest.approx(1.0)


@pytest.mark.parametrize("rotation", [0.0, 0.3])
def test_sample_plane_matches_pixel_mapping(rotation):
    viewport = Viewport(center=-0.5 + 0.25j, scale=0.03, rotation=rotation)
    width, height = 7, 5
    points = sample_plane(viewport, width, height)
    assert points.shape == (height, width)
    assert points.dtype == np.complex128
    for y in range(height):
        for x in range(width):
            expected = pixel_to_complex(x, y, viewport, width, height)
            np.testing.assert_allclose(points[y, x], expected, rtol=0, atol=1e-14)


def test_zoom():
    viewport = Viewport(center=0.1j, scale=0.02)
    zoomed = zoom(viewport, 2.0)
    assert zoomed.scale == pytest.approx(0.01)
    assert zoomed.center == viewport.center
    with pytest.raises(ValueError):
        zoom(viewport, 0)


def test_pan_moves_by_pixels():
    viewport = Viewport(center=0j, scale=0.1)
    moved = pan(viewport, 10, -5)
    assert moved.center == pytest.approx(1.0 + 0.5j)
    assert moved.scale == viewport.scale


def test_recenter():
    viewport = Viewport(center=0j, scale=0.5)
    assert recenter(viewport, 8, 4, 0.5, 0.5).center == pytest.approx(0j)
    assert recenter(viewport, 8, 4, 1.0, 0.0).center == pytest.approx(2 + 1j)


def test_resize_covers_old_region():
    viewport = Viewport(center=0j, scale=0.01)
    resized = resize(viewport, 800, 600, 400, 400)
    assert resized.scale * 400 >= 0.01 * 800
    assert resized.scale * 400 >= 0.01 * 600
    assert resized.center == viewport.center


def test_preview_keeps_horizontal_extent():
    viewport = Viewport(center=0j, scale=0.01)
    assert preview_viewport(viewport, 800, 600, 800, 600) is viewport
    preview = preview_viewport(viewport, 800, 600, 200, 150)
    assert preview.scale * 200 == pytest.approx(viewport.scale * 800)


@pytest.mark.parametrize("width, height, field", [(0, 150, "width"), (-4, 150, "width"), (200, 0, "height")])
def test_preview_rejects_empty_size(width, height, field):
    with pytest.raises(ValidationError) as excinfo:
        preview_viewport(Viewport(center=0j, scale=0.01), 800, 600, width, height)
    assert excinfo.value.field == field


def test_bounds():
    viewport = Viewport(center=0j, scale=1.0)
    top_left, top_right, bottom_right, bottom_left = bounds(viewport, 4, 2)
    assert top_left == pytest.approx(-2 + 1j)
    assert bottom_right == pytest.approx(2 - 1j)
