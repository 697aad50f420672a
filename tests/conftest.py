import pytest

from escapetime.datatypes import ColorMap, ColorStop, IteratedFunction, ParameterSet, Viewport


@pytest.fixture
def small_params():
    """Classic Mandelbrot at a size that renders quickly."""
    return ParameterSet(
        function=IteratedFunction(max_iter=50, escape_radius=2.0),
        viewport=Viewport(center=-0.5 + 0j, scale=3.5 / 24),
        colormap=ColorMap(
            stops=(ColorStop(0.0, (0, 0, 64)), ColorStop(0.5, (255, 200, 0)), ColorStop(1.0, (255, 255, 255))),
            default_color=(0, 0, 0),
        ),
        width=24,
        height=18,
    )
