import numpy as np
from matplotlib import colormaps

from escapetime.datatypes import STEP, ColorMap, ColorStop


def _map_positions(t, colormap):
    """RGB floats for normalized positions `t` (any shape), clamped to the end stops."""
    positions = colormap.positions()
    colors = colormap.colors()
    if colormap.interpolation == STEP:
        index = np.searchsorted(positions, t, side="right") - 1
        return colors[np.clip(index, 0, len(positions) - 1)]
    # np.interp returns fp[i] exactly at xp[i] and clamps outside the range
    channels = [np.interp(t, positions, colors[:, k]) for k in range(3)]
    return np.stack(channels, axis=-1)


def color_at(colormap, value):
    """Color of a single normalized position as an RGB tuple of ints."""
    rgb = np.rint(_map_positions(np.array([float(value)]), colormap)[0])
    return tuple(int(c) for c in rgb)


def colorize(grid, colormap):
    """Convert a divergence grid to an RGB pixel buffer (uint8, height x width x 3)."""
    interior = grid.interior
    normalized = np.clip(grid.values / grid.max_iter, 0.0, 1.0)
    colored = np.rint(_map_positions(normalized, colormap)).astype(np.uint8)
    colored[interior] = colormap.default_color
    return colored


def colormap_from_matplotlib(name, n_stops=16, default_color=(0, 0, 0)):
    """Sample a named matplotlib colormap into evenly spaced color stops."""
    if n_stops < 1:
        raise ValueError(f"At least one stop is required, got {n_stops}")
    cmap = colormaps[name]
    positions = np.linspace(0.0, 1.0, n_stops) if n_stops > 1 else np.array([0.0])
    stops = []
    for position in positions:
        rgba = cmap(float(position))
        stops.append(ColorStop(float(position), tuple(int(round(c * 255)) for c in rgba[:3])))
    return ColorMap(tuple(stops), default_color)


def downsample(pixels, factor):
    """Average `factor` x `factor` blocks of pixels; partial blocks at the edges are dropped."""
    if factor < 1:
        raise ValueError(f"Downsampling factor must be at least 1, got {factor}")
    if factor == 1:
        return pixels.copy()
    height, width = pixels.shape[0] // factor, pixels.shape[1] // factor
    if height == 0 or width == 0:
        raise ValueError(f"Image of size {pixels.shape[1]}x{pixels.shape[0]} is smaller than factor {factor}")
    blocks = pixels[: height * factor, : width * factor].astype(np.float64)
    blocks = blocks.reshape(height, factor, width, factor, 3)
    return np.rint(blocks.mean(axis=(1, 3))).astype(np.uint8)
