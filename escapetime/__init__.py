"""Escape-time fractal rendering with parameter files and image-embedded metadata."""

from .colors import color_at, colorize, colormap_from_matplotlib, downsample
from .datatypes import (
    ColorMap,
    ColorStop,
    DivergenceGrid,
    IteratedFunction,
    ParameterSet,
    Viewport,
)
from .errors import FractalError, ParseError, ValidationError
from .fractal import INTERIOR
from .images import decode_image, encode_png, encode_ppm, extract_parameters
from .parameters import pixel_to_complex, sample_plane
from .render import compute_divergence, render
from .settings import default_settings, deserialize, julia_settings, serialize
from .storage import load_parameters, read_image, read_parameters, save_image, save_parameters

__all__ = [
    "INTERIOR",
    "ColorMap",
    "ColorStop",
    "DivergenceGrid",
    "FractalError",
    "IteratedFunction",
    "ParameterSet",
    "ParseError",
    "ValidationError",
    "Viewport",
    "color_at",
    "colorize",
    "colormap_from_matplotlib",
    "compute_divergence",
    "decode_image",
    "default_settings",
    "deserialize",
    "downsample",
    "encode_png",
    "encode_ppm",
    "extract_parameters",
    "julia_settings",
    "load_parameters",
    "pixel_to_complex",
    "read_image",
    "read_parameters",
    "render",
    "sample_plane",
    "save_image",
    "save_parameters",
    "serialize",
]
