import math
import os
import sys
import time
import warnings
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

from fractalpattern import BACKENDS, DriverState, RenderParameters, run

from argparse import ArgumentParser

DEFAULT_OUTPUT = "mandelbrot_fractal_pattern.png"
_DEFAULTS = RenderParameters()


def select_device():
    """Return the first GPU when TensorFlow sees one, otherwise the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


class RenderArgumentParser(ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser():
    parser = RenderArgumentParser(description='Render the Mandelbrot set to a PNG image.')

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels',
                        metavar='WIDTH', default=_DEFAULTS.width)

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels',
                        metavar='HEIGHT', default=_DEFAULTS.height)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration budget before a point counts as inside the set',
                        metavar='MAX_ITERATIONS', default=_DEFAULTS.max_iterations)

    parser.add_argument('--min-real', type=float,
                        dest='min_real', help='real coordinate of the left image edge',
                        metavar='MIN_REAL', default=_DEFAULTS.min_real)

    parser.add_argument('--max-real', type=float,
                        dest='max_real', help='real coordinate of the right image edge',
                        metavar='MAX_REAL', default=_DEFAULTS.max_real)

    parser.add_argument('--min-imag', type=float,
                        dest='min_imag', help='imaginary coordinate of the top image row',
                        metavar='MIN_IMAG', default=_DEFAULTS.min_imag)

    parser.add_argument('--max-imag', type=float,
                        dest='max_imag', help='imaginary coordinate of the bottom image edge',
                        metavar='MAX_IMAG', default=_DEFAULTS.max_imag)

    parser.add_argument('--output', dest='output', type=str, default=DEFAULT_OUTPUT,
                        help='PNG file to write. ".png" is appended when no extension is given.')

    parser.add_argument('--backend', choices=BACKENDS, default='tensorflow',
                        help='"tensorflow" evaluates the whole grid at once; "python" walks pixels one by one.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_path(output_arg, parser):
    if output_arg.endswith(tuple(filter(None, {os.sep, os.altsep}))):
        parser.error("--output must be a file path.")
    output_path = Path(output_arg).expanduser()
    if output_path.suffix:
        if output_path.suffix.lower() != ".png":
            parser.error(f"--output extension {output_path.suffix} is not .png.")
    else:
        output_path = output_path.with_suffix(".png")
    return output_path.resolve()


def resolve_params(opt, parser):
    for name in ('width', 'height', 'max_iterations'):
        if getattr(opt, name) <= 0:
            parser.error(f"--{name.replace('_', '-')} must be a positive integer.")
    for name in ('min_real', 'max_real', 'min_imag', 'max_imag'):
        if not math.isfinite(getattr(opt, name)):
            parser.error(f"--{name.replace('_', '-')} must be a finite number.")

    return RenderParameters(
        width=opt.width,
        height=opt.height,
        max_iterations=opt.max_iterations,
        min_real=opt.min_real,
        max_real=opt.max_real,
        min_imag=opt.min_imag,
        max_imag=opt.max_imag,
    )


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    params = resolve_params(opt, parser)
    output_path = resolve_output_path(opt.output, parser)

    log("TensorFlow version: %s" % tf.__version__)
    device = select_device() if opt.backend == 'tensorflow' else None
    log("Backend: %s, %dx%d, %d iterations, window [%g, %g] x [%g, %g]" % (
        opt.backend, params.width, params.height, params.max_iterations,
        params.min_real, params.max_real, params.min_imag, params.max_imag,
    ))

    start = time.perf_counter()
    state = run(params, output_path, backend=opt.backend, device=device, log=log)
    log("Finished in %.2fs" % (time.perf_counter() - start))

    return 0 if state is DriverState.DONE else 1


if __name__ == '__main__':
    sys.exit(main())
