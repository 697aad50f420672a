from contextlib import contextmanager
from numbers import Integral, Real

import yaml

from escapetime.datatypes import ColorMap, ColorStop, IteratedFunction, ParameterSet, Viewport
from escapetime.errors import ParseError, ValidationError

FORMAT_VERSION = 1
DEFAULT_RESOLUTION = (800, 600)
DEFAULT_MAX_ITERATIONS = 100
ESCAPE_RADIUS = 2.0
DEFAULT_SAVE_PATH = "./saves/mandelbrot.yaml"

default_colormap = ColorMap(
    stops=(
        ColorStop(0.0, (0, 7, 100)),
        ColorStop(0.16, (32, 107, 203)),
        ColorStop(0.42, (237, 255, 255)),
        ColorStop(0.6425, (255, 170, 0)),
        ColorStop(0.8575, (0, 2, 0)),
        ColorStop(1.0, (0, 0, 0)),
    ),
    default_color=(0, 0, 0),
)

default_settings = ParameterSet(
    function=IteratedFunction(max_iter=DEFAULT_MAX_ITERATIONS, escape_radius=ESCAPE_RADIUS),
    viewport=Viewport(center=-0.5 + 0j, scale=3.5 / DEFAULT_RESOLUTION[0]),
    colormap=default_colormap,
    width=DEFAULT_RESOLUTION[0],
    height=DEFAULT_RESOLUTION[1],
)


def julia_settings(c, resolution=DEFAULT_RESOLUTION, max_iter=DEFAULT_MAX_ITERATIONS):
    """Filled Julia set of z^2 + c, centered on the origin."""
    return ParameterSet(
        function=IteratedFunction(mode="julia", param=c, max_iter=max_iter, escape_radius=ESCAPE_RADIUS),
        viewport=Viewport(center=0j, scale=3.2 / resolution[0]),
        colormap=default_colormap,
        width=resolution[0],
        height=resolution[1],
    )


def _complex_to_list(z):
    return [z.real, z.imag]


def settings_to_dict(settings):
    """Convert a ParameterSet to a dictionary for YAML serialization."""
    function = settings.function
    viewport = settings.viewport
    colormap = settings.colormap
    return {
        "version": FORMAT_VERSION,
        "computation": {
            "mode": function.mode,
            "numerator": [_complex_to_list(a) for a in function.numerator],
            "denominator": [_complex_to_list(b) for b in function.denominator],
            "param": _complex_to_list(function.param),
            "c_coef": _complex_to_list(function.c_coef),
            "max_iter": function.max_iter,
            "escape_radius": function.escape_radius,
        },
        "location": {
            "center": {
                "x": viewport.center.real,
                "y": viewport.center.imag,
            },
            "scale": viewport.scale,
            "rotation": viewport.rotation,
        },
        "image": {
            "width": settings.width,
            "height": settings.height,
        },
        "presentation": {
            "interpolation": colormap.interpolation,
            "default_color": list(colormap.default_color),
            "stops": [{"position": stop.position, "color": list(stop.color)} for stop in colormap.stops],
        },
    }


def serialize(settings):
    return yaml.safe_dump(settings_to_dict(settings), default_flow_style=None, sort_keys=False)


@contextmanager
def _section(name):
    """Prefix the field path of validation errors raised inside the block."""
    try:
        yield
    except ValidationError as e:
        raise e.within(name) from None


def _get(mapping, key, path):
    if not isinstance(mapping, dict):
        raise ParseError(path, f"expected a mapping, got {type(mapping).__name__}")
    if key not in mapping:
        raise ParseError(f"{path}.{key}" if path else key, "missing")
    return mapping[key]


def _float(value, path):
    if isinstance(value, bool):
        raise ParseError(path, f"expected a number, got {value!r}")
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise ParseError(path, f"expected a number, got {value!r}")


def _int(value, path):
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ParseError(path, f"expected an integer, got {value!r}")
    return int(value)


def _complex(value, path):
    """Accept [re, im], a plain number, or a string such as '0.3+0.5j'."""
    if isinstance(value, list):
        if len(value) != 2:
            raise ParseError(path, f"expected [re, im], got {value!r}")
        return complex(_float(value[0], f"{path}[0]"), _float(value[1], f"{path}[1]"))
    if isinstance(value, str):
        try:
            return complex(value.strip().lower().replace(" ", "").replace("i", "j"))
        except ValueError:
            raise ParseError(path, f"not a complex number: {value!r}") from None
    return complex(_float(value, path))


def _list(value, path):
    if not isinstance(value, list):
        raise ParseError(path, f"expected a list, got {value!r}")
    return value


def _rgb(value, path):
    channels = _list(value, path)
    if len(channels) != 3:
        raise ParseError(path, f"expected [r, g, b], got {value!r}")
    return tuple(_int(c, f"{path}[{k}]") for k, c in enumerate(channels))


def dict_to_settings(settings_dict):
    """Convert a dictionary to a ParameterSet, validating every field."""
    version = settings_dict.get("version", FORMAT_VERSION) if isinstance(settings_dict, dict) else None
    if version != FORMAT_VERSION:
        raise ParseError("version", f"unsupported format version {version!r}")

    computation = _get(settings_dict, "computation", "")
    with _section("computation"):
        function = IteratedFunction(
            mode=_get(computation, "mode", "computation"),
            numerator=tuple(
                _complex(a, f"computation.numerator[{k}]")
                for k, a in enumerate(_list(_get(computation, "numerator", "computation"), "computation.numerator"))
            ),
            denominator=tuple(
                _complex(b, f"computation.denominator[{k}]")
                for k, b in enumerate(
                    _list(_get(computation, "denominator", "computation"), "computation.denominator")
                )
            ),
            param=_complex(_get(computation, "param", "computation"), "computation.param"),
            c_coef=_complex(computation.get("c_coef", [1.0, 0.0]), "computation.c_coef"),
            max_iter=_int(_get(computation, "max_iter", "computation"), "computation.max_iter"),
            escape_radius=_float(_get(computation, "escape_radius", "computation"), "computation.escape_radius"),
        )

    location = _get(settings_dict, "location", "")
    center = _get(location, "center", "location")
    with _section("location"):
        viewport = Viewport(
            center=complex(
                _float(_get(center, "x", "location.center"), "location.center.x"),
                _float(_get(center, "y", "location.center"), "location.center.y"),
            ),
            scale=_float(_get(location, "scale", "location"), "location.scale"),
            rotation=_float(location.get("rotation", 0.0), "location.rotation"),
        )

    presentation = _get(settings_dict, "presentation", "")
    stops = []
    for index, stop in enumerate(_list(_get(presentation, "stops", "presentation"), "presentation.stops")):
        path = f"presentation.stops[{index}]"
        stops.append((
            _float(_get(stop, "position", path), f"{path}.position"),
            _rgb(_get(stop, "color", path), f"{path}.color"),
        ))
    with _section("presentation"):
        colormap = ColorMap(
            stops=tuple(stops),
            default_color=_rgb(_get(presentation, "default_color", "presentation"), "presentation.default_color"),
            interpolation=presentation.get("interpolation", "linear"),
        )

    image = _get(settings_dict, "image", "")
    with _section("image"):
        return ParameterSet(
            function=function,
            viewport=viewport,
            colormap=colormap,
            width=_int(_get(image, "width", "image"), "image.width"),
            height=_int(_get(image, "height", "image"), "image.height"),
        )


def deserialize(text):
    """Parse parameter text produced by `serialize` (or written by hand)."""
    try:
        settings_dict = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        problem = getattr(e, "problem", None) or str(e)
        raise ParseError("<document>", problem, line=line) from e
    if not isinstance(settings_dict, dict):
        raise ParseError("<document>", f"expected a mapping of parameter sections, got {type(settings_dict).__name__}")
    return dict_to_settings(settings_dict)
