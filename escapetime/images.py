"""
Raster encodings for rendered fractals.

Two formats are supported:
- raw: binary PPM ("P6"), a short ASCII header followed by RGB bytes, no metadata
- compressed: PNG, optionally carrying the parameter text in an iTXt chunk
"""

import struct
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError
from PIL.PngImagePlugin import PngInfo

PARAMETERS_KEY = "escapetime parameters"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PPM_MAGIC = (b"P6", b"P3")


def _check_pixels(pixels):
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected a (height, width, 3) pixel buffer, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
    if pixels.shape[0] < 1 or pixels.shape[1] < 1:
        raise ValueError(f"Image must not be empty, got shape {pixels.shape}")
    return np.ascontiguousarray(pixels)


def is_png(data):
    return data[:8] == PNG_SIGNATURE


def is_ppm(data):
    return data[:2] in PPM_MAGIC


def encode_ppm(pixels):
    """Encode pixels as a binary PPM: header "P6 width height 255" then row-major RGB."""
    image = Image.fromarray(_check_pixels(pixels))
    buf = BytesIO()
    image.save(buf, format="PPM")
    return buf.getvalue()


def encode_png(pixels, parameters_text=None):
    """Encode pixels as PNG with maximum compression, embedding `parameters_text` if given."""
    image = Image.fromarray(_check_pixels(pixels))
    pnginfo = None
    if parameters_text is not None:
        pnginfo = PngInfo()
        pnginfo.add_itxt(PARAMETERS_KEY, parameters_text)
    buf = BytesIO()
    image.save(buf, format="PNG", pnginfo=pnginfo, compress_level=9)
    return buf.getvalue()


# Pillow reports damaged input through any of these
DECODE_ERRORS = (UnidentifiedImageError, OSError, SyntaxError, EOFError, struct.error)


def _open(data, load=True):
    try:
        image = Image.open(BytesIO(data))
        if load:
            image.load()
    except UnidentifiedImageError as e:
        raise ValueError("Data is not a PNG or PPM image") from e
    except DECODE_ERRORS as e:
        raise ValueError(f"Damaged image data: {e}") from e
    return image


def decode_image(data):
    """Decode PNG or PPM bytes to a (height, width, 3) uint8 array; metadata is ignored."""
    image = _open(data)
    if image.mode != "RGB":
        image = image.convert("RGB")
    return np.array(image, dtype=np.uint8)


def extract_parameters(data):
    """
    Return the parameter text embedded in PNG bytes, or None if there is none.

    Only the chunks ahead of the pixel data are read, so a truncated image
    still yields its parameters.
    """
    if not is_png(data):
        return None
    image = _open(data, load=False)
    text = image.info.get(PARAMETERS_KEY)
    return str(text) if text is not None else None
