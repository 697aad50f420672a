import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from escapetime.errors import FractalError
from escapetime.parameters import preview_viewport
from escapetime.settings import DEFAULT_SAVE_PATH, default_settings, serialize
from escapetime.storage import read_parameters, save_image, save_parameters

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_handlers = []


def setup_logging(verbose=False, log_file=None):
    """Log to stdout, and to `log_file` if given."""
    level = logging.INFO if verbose else logging.WARNING
    logger = logging.getLogger()
    for handler in _handlers:
        logger.removeHandler(handler)
    _handlers.clear()
    logger.setLevel(level)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)
    _handlers.append(console_handler)
    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
        _handlers.append(file_handler)
        logger.setLevel(logging.INFO)
    return logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="escapetime",
        description="Render escape-time fractals from parameter files.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress and timing.")
    parser.add_argument("--log-file", type=str, metavar="PATH", help="Also write the log to this file.")
    commands = parser.add_subparsers(dest="command", required=True)

    render_parser = commands.add_parser(
        "render", help="Render a parameter file to an image.", formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    render_parser.add_argument(
        "--load", type=str, metavar="PATH", help="Parameter file or image with embedded parameters.",
        default=DEFAULT_SAVE_PATH,
    )
    render_parser.add_argument("--output", type=str, metavar="PATH", help="Image to write (.png or .ppm).",
                               default="fractal.png")
    render_parser.add_argument("--width", type=int, help="Override the image width.")
    render_parser.add_argument("--height", type=int, help="Override the image height.")
    render_parser.add_argument("--workers", type=int, help="Number of worker threads (default: all available).")
    render_parser.add_argument("--no-metadata", action="store_true", help="Do not embed parameters in PNG output.")

    info_parser = commands.add_parser("info", help="Print the parameters stored in a file.")
    info_parser.add_argument("path", type=str, help="Parameter file or image.")

    default_parser = commands.add_parser(
        "default", help="Write the default parameters.", formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    default_parser.add_argument("--output", type=str, metavar="PATH", default=DEFAULT_SAVE_PATH)

    return parser.parse_args(argv)


def _render(args):
    params = read_parameters(args.load)
    if params is None:
        logging.error(f"No parameters embedded in {args.load}.")
        return 1
    if args.width is not None or args.height is not None:
        width = args.width if args.width is not None else params.width
        height = args.height if args.height is not None else params.height
        viewport = preview_viewport(params.viewport, params.width, params.height, width, height)
        params = replace(params, viewport=viewport, width=width, height=height)
    save_image(params, args.output, embed=not args.no_metadata, workers=args.workers)
    return 0


def _info(args):
    params = read_parameters(args.path)
    if params is None:
        print(f"{args.path}: no embedded parameters")
        return 0
    print(serialize(params), end="")
    return 0


def _default(args):
    Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    save_parameters(default_settings, args.output)
    return 0


COMMANDS = {"render": _render, "info": _info, "default": _default}


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    try:
        return COMMANDS[args.command](args)
    except (FractalError, OSError) as e:
        logging.error(str(e))
        return 1
