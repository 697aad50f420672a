import math
from dataclasses import dataclass
from numbers import Integral, Real

import numpy as np

from escapetime.errors import ValidationError
from escapetime.fractal import INTERIOR, evaluate

MANDELBROT = "mandelbrot"
JULIA = "julia"
MODES = (MANDELBROT, JULIA)

LINEAR = "linear"
STEP = "step"
INTERPOLATIONS = (LINEAR, STEP)


def _finite_float(value, name):
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(name, f"expected a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(name, f"must be finite, got {value!r}")
    return value


def _positive_float(value, name):
    value = _finite_float(value, name)
    if value <= 0:
        raise ValidationError(name, f"must be positive, got {value!r}")
    return value


def _positive_int(value, name):
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(name, f"expected an integer, got {value!r}")
    value = int(value)
    if value < 1:
        raise ValidationError(name, f"must be at least 1, got {value}")
    return value


def _finite_complex(value, name):
    if isinstance(value, bool) or not isinstance(value, (Real, complex)):
        raise ValidationError(name, f"expected a complex number, got {value!r}")
    value = complex(value)
    if not (math.isfinite(value.real) and math.isfinite(value.imag)):
        raise ValidationError(name, f"must be finite, got {value!r}")
    return value


def _coefficients(values, name):
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise ValidationError(name, f"expected a sequence of coefficients, got {values!r}")
    coefs = tuple(_finite_complex(v, f"{name}[{k}]") for k, v in enumerate(values))
    if not coefs:
        raise ValidationError(name, "at least one coefficient is required")
    if all(c == 0 for c in coefs):
        raise ValidationError(name, "coefficients must not all be zero")
    return coefs


def _rgb(value, name):
    try:
        channels = tuple(value)
    except TypeError:
        raise ValidationError(name, f"expected an RGB triple, got {value!r}") from None
    if len(channels) != 3:
        raise ValidationError(name, f"expected 3 channels, got {len(channels)}")
    for channel in channels:
        if isinstance(channel, bool) or not isinstance(channel, Integral) or not 0 <= channel <= 255:
            raise ValidationError(name, f"channels must be integers in [0, 255], got {value!r}")
    return tuple(int(c) for c in channels)


def _degree(coefs):
    """Index of the highest non-zero coefficient."""
    return max(k for k, c in enumerate(coefs) if c != 0)


@dataclass(frozen=True)
class Viewport:
    center: complex
    scale: float  # plane units per pixel
    rotation: float = 0.0  # radians

    def __post_init__(self):
        object.__setattr__(self, "center", _finite_complex(self.center, "center"))
        object.__setattr__(self, "scale", _positive_float(self.scale, "scale"))
        object.__setattr__(self, "rotation", _finite_float(self.rotation, "rotation"))


@dataclass(frozen=True)
class IteratedFunction:
    """
    The map z -> P(z) / Q(z) + c_coef * c.

    In "mandelbrot" mode c is the pixel coordinate and z starts at `param`;
    in "julia" mode c is `param` and z starts at the pixel coordinate.
    Coefficient k multiplies z**k.
    """

    mode: str = MANDELBROT
    numerator: tuple = (0j, 0j, 1 + 0j)
    denominator: tuple = (1 + 0j,)
    param: complex = 0j
    c_coef: complex = 1 + 0j
    max_iter: int = 100
    escape_radius: float = 2.0

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValidationError("mode", f"must be one of {', '.join(MODES)}, got {self.mode!r}")
        object.__setattr__(self, "numerator", _coefficients(self.numerator, "numerator"))
        object.__setattr__(self, "denominator", _coefficients(self.denominator, "denominator"))
        object.__setattr__(self, "param", _finite_complex(self.param, "param"))
        object.__setattr__(self, "c_coef", _finite_complex(self.c_coef, "c_coef"))
        object.__setattr__(self, "max_iter", _positive_int(self.max_iter, "max_iter"))
        object.__setattr__(self, "escape_radius", _positive_float(self.escape_radius, "escape_radius"))

    @property
    def degree(self):
        """Growth rate of |z| near infinity, used for smooth iteration counts."""
        degree = _degree(self.numerator) - _degree(self.denominator)
        return degree if degree >= 2 else 2

    def numerator_array(self):
        return np.array(self.numerator, dtype=np.complex128)

    def denominator_array(self):
        return np.array(self.denominator, dtype=np.complex128)

    def evaluate(self, z, c):
        """Apply one step of the map to `z` with free parameter `c`."""
        return evaluate(complex(z), self.c_coef * complex(c), self.numerator_array(), self.denominator_array())


@dataclass(frozen=True)
class ColorStop:
    position: float
    color: tuple

    def __post_init__(self):
        position = _finite_float(self.position, "position")
        if not 0.0 <= position <= 1.0:
            raise ValidationError("position", f"must lie in [0, 1], got {position!r}")
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "color", _rgb(self.color, "color"))


@dataclass(frozen=True)
class ColorMap:
    stops: tuple
    default_color: tuple = (0, 0, 0)
    interpolation: str = LINEAR

    def __post_init__(self):
        stops = []
        for index, stop in enumerate(self.stops):
            if not isinstance(stop, ColorStop):
                try:
                    stop = ColorStop(*stop)
                except ValidationError as e:
                    raise e.within(f"stops[{index}]") from None
                except TypeError:
                    raise ValidationError(f"stops[{index}]", f"expected (position, color), got {stop!r}") from None
            if stops and stop.position <= stops[-1].position:
                raise ValidationError(
                    f"stops[{index}].position",
                    f"positions must be strictly ascending ({stop.position!r} after {stops[-1].position!r})",
                )
            stops.append(stop)
        if not stops:
            raise ValidationError("stops", "at least one color stop is required")
        object.__setattr__(self, "stops", tuple(stops))
        object.__setattr__(self, "default_color", _rgb(self.default_color, "default_color"))
        if self.interpolation not in INTERPOLATIONS:
            raise ValidationError(
                "interpolation", f"must be one of {', '.join(INTERPOLATIONS)}, got {self.interpolation!r}"
            )

    def positions(self):
        return np.array([stop.position for stop in self.stops], dtype=np.float64)

    def colors(self):
        return np.array([stop.color for stop in self.stops], dtype=np.float64)

    def _with_stops(self, stops):
        return ColorMap(tuple(stops), self.default_color, self.interpolation)

    def replace_stop(self, index, color):
        """Return a copy with the color of stop `index` set to `color`."""
        stops = list(self.stops)
        stops[index] = ColorStop(stops[index].position, color)
        return self._with_stops(stops)

    def copy_color(self, from_index, to_index):
        """Return a copy where stop `to_index` takes the color of stop `from_index`."""
        return self.replace_stop(to_index, self.stops[from_index].color)

    def insert_stop(self, position, color):
        new_stop = ColorStop(position, color)
        stops = sorted(self.stops + (new_stop,), key=lambda s: s.position)
        return self._with_stops(stops)

    def remove_stop(self, index):
        stops = list(self.stops)
        del stops[index]
        return self._with_stops(stops)


@dataclass(frozen=True)
class ParameterSet:
    function: IteratedFunction
    viewport: Viewport
    colormap: ColorMap
    width: int
    height: int

    def __post_init__(self):
        for name, kind in (("function", IteratedFunction), ("viewport", Viewport), ("colormap", ColorMap)):
            if not isinstance(getattr(self, name), kind):
                raise ValidationError(name, f"expected {kind.__name__}, got {getattr(self, name)!r}")
        object.__setattr__(self, "width", _positive_int(self.width, "width"))
        object.__setattr__(self, "height", _positive_int(self.height, "height"))


@dataclass(frozen=True, eq=False)
class DivergenceGrid:
    """Smoothed escape values per pixel; INTERIOR marks points that never escaped."""

    values: np.ndarray
    max_iter: int

    @property
    def height(self):
        return self.values.shape[0]

    @property
    def width(self):
        return self.values.shape[1]

    @property
    def interior(self):
        return self.values == INTERIOR
