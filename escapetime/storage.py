import logging
import os
import stat
import tempfile
from pathlib import Path

from escapetime import images
from escapetime.errors import ParseError
from escapetime.render import render
from escapetime.settings import deserialize, serialize

logger = logging.getLogger(__name__)

RAW_SUFFIXES = (".ppm", ".pnm")


def _file_mode(path):
    """Mode of the existing file at `path`, or what a plain open() would create."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_atomic(path, data):
    """
    Write bytes to a temporary file beside `path`, then rename it into place.

    The result keeps the permissions of the file it replaces; new files get
    the umask default.
    """
    path = Path(path)
    mode = _file_mode(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as file:
            file.write(data)
            file.flush()
            os.fsync(file.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def save_parameters(params, path):
    """Save a ParameterSet to a YAML text file."""
    write_atomic(path, serialize(params).encode("utf-8"))
    logger.info(f"Settings saved to {path}")


def read_parameters(path):
    """Load parameters from a text file or an image with embedded parameters."""
    with open(path, "rb") as file:
        data = file.read()
    params = load_parameters(data)
    logger.info(f"Settings loaded from {path}" if params is not None else f"No parameters found in {path}")
    return params


def load_parameters(data):
    """
    Recover a ParameterSet from file contents.

    PNG data yields its embedded parameters, PPM data never carries any;
    both return None when nothing is embedded. Any other data is parsed as
    parameter text. Raises ParseError or ValidationError on malformed input,
    including image data Pillow cannot read.
    """
    if images.is_png(data):
        try:
            text = images.extract_parameters(data)
        except ValueError as e:
            raise ParseError("<document>", str(e)) from e
        return deserialize(text) if text is not None else None
    if images.is_ppm(data):
        return None
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError("<document>", "neither parameter text nor a supported image") from e
    return deserialize(text)


def _image_format(path, fmt):
    if fmt is not None:
        if fmt not in ("png", "ppm"):
            raise ValueError(f"Unknown image format {fmt!r}, expected 'png' or 'ppm'")
        return fmt
    return "ppm" if Path(path).suffix.lower() in RAW_SUFFIXES else "png"


def save_image(params, path, pixels=None, fmt=None, embed=True, workers=None):
    """
    Render (unless `pixels` is given) and write an image.

    PNG output embeds the serialized parameters when `embed` is true; PPM
    output never carries metadata.
    """
    fmt = _image_format(path, fmt)
    logger.info(f"Exporting fractal to {path} as {fmt.upper()}...")
    if pixels is None:
        pixels = render(params, workers=workers)
    if fmt == "ppm":
        data = images.encode_ppm(pixels)
    else:
        data = images.encode_png(pixels, serialize(params) if embed else None)
    write_atomic(path, data)
    logger.info(f"Fractal successfully exported to {path}.")
    return pixels


def read_image(path):
    """Read the pixels of a PNG or PPM file."""
    with open(path, "rb") as file:
        return images.decode_image(file.read())
