import math
from dataclasses import replace

import numpy as np

from escapetime.errors import ValidationError


def pixel_to_complex(x, y, viewport, width, height):
    """
    Map pixel (x, y) to the complex plane.

    The image center maps to the viewport center; y grows downward in the
    image while the imaginary axis grows upward. Rotation is applied about
    the center.
    """
    dx = (x - width / 2) * viewport.scale
    dy = -(y - height / 2) * viewport.scale
    if viewport.rotation:
        cos_t, sin_t = math.cos(viewport.rotation), math.sin(viewport.rotation)
        dx, dy = dx * cos_t - dy * sin_t, dx * sin_t + dy * cos_t
    return complex(viewport.center.real + dx, viewport.center.imag + dy)


def sample_plane(viewport, width, height):
    """
    Sample the plane at every pixel of a width x height image.

    Returns a (height, width) complex128 array computed with the same formula
    as `pixel_to_complex`.
    """
    s = (np.arange(width, dtype=np.float64) - width / 2) * viewport.scale
    t = -(np.arange(height, dtype=np.float64) - height / 2) * viewport.scale
    S, T = np.meshgrid(s, t)

    # Rotate, translate
    if viewport.rotation:
        cos_t, sin_t = math.cos(viewport.rotation), math.sin(viewport.rotation)
        S, T = S * cos_t - T * sin_t, S * sin_t + T * cos_t
    re = viewport.center.real + S
    im = viewport.center.imag + T

    points = np.empty((height, width), dtype=np.complex128)
    points.real = re
    points.imag = im
    return points


def zoom(viewport, factor):
    """Zoom in by `factor` (values below 1 zoom out) around the center."""
    if factor <= 0:
        raise ValueError(f"Zoom factor must be positive, got {factor}")
    return replace(viewport, scale=viewport.scale / factor)


def pan(viewport, dx, dy):
    """Move the view by (dx, dy) pixels; positive dy moves down the image."""
    return replace(viewport, center=pixel_to_complex(dx, dy, viewport, 0, 0))


def recenter(viewport, width, height, x_frac, y_frac):
    """Center the view on the point `x_frac` across and `y_frac` down the image."""
    return replace(viewport, center=pixel_to_complex(x_frac * width, y_frac * height, viewport, width, height))


def resize(viewport, width, height, new_width, new_height):
    """Keep the center and choose a scale that shows at least the old region."""
    scale = max(viewport.scale * width / new_width, viewport.scale * height / new_height)
    return replace(viewport, scale=scale)


def preview_viewport(viewport, width, height, target_width, target_height):
    """Viewport framing the same horizontal extent at another image size."""
    for name, size in (("width", target_width), ("height", target_height)):
        if size < 1:
            raise ValidationError(name, f"must be at least 1, got {size}")
    if (target_width, target_height) == (width, height):
        return viewport
    return replace(viewport, scale=viewport.scale * width / target_width)


def bounds(viewport, width, height):
    """Plane coordinates of the four image corners: top-left, top-right, bottom-right, bottom-left."""
    return [
        pixel_to_complex(x, y, viewport, width, height)
        for x, y in ((0, 0), (width, 0), (width, height), (0, height))
    ]
