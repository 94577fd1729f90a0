"""
Command line entry point.

    python -m hydrocode INPUT OUTPUT ORDER[_SCHEME] FRAME [n=C ...]

e.g. 'python -m hydrocode data_in/sod data_out/sod 2_GRP LAG 5=100' runs the
second-order Lagrangian GRP scheme for at most 100 steps.

Exit status: 0 success, 1 file/directory error, 2 data read/write error,
3 calculation error, 4 arguments/configuration error, 5 memory error.
"""

import argparse
import logging
import sys
from typing import List, Tuple

from hydrocode.src.config import ConfigIndex, Frame, scheme_name
from hydrocode.src.errors import ConfigurationError, HydroError
from hydrocode.src.io import load_case, write_outputs
from hydrocode.src.solver import initialize, run

logger = logging.getLogger('hydrocode')


class _ArgumentParser(argparse.ArgumentParser):
    """Argument errors are configuration errors (exit status 4)."""

    def error(self, message):
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='hydrocode',
        description='Godunov/GRP finite volume solver for the compressible Euler equations.')
    parser.add_argument('input', help='Folder with the initial data files RHO/U/P[/V/PHI] and config.txt')
    parser.add_argument('output', help='Folder for the numerical results')
    parser.add_argument('order', help='Order of the scheme with optional Riemann solver, '
                                      'e.g. 1, 1_Riemann_exact, 2_GRP, 2_HLLC')
    parser.add_argument('frame', help='Coordinate frame: EUL, LAG, ALE or RAD')
    parser.add_argument('overrides', nargs='*', metavar='n=C',
                        help='Configuration supplement config[n] = C')
    parser.add_argument('--dim', type=int, choices=(1, 2), default=1,
                        help='Dimensionality when config.txt does not set it')
    parser.add_argument('--plot', metavar='FILE', help='Save a plot of the final state')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors')
    return parser


def parse_order(text: str) -> Tuple[int, str]:
    """Split 'ORDER[_SCHEME]' into the order and a normalised scheme name."""
    order_text, _, scheme = text.partition('_')
    try:
        order = int(order_text)
    except ValueError:
        raise ConfigurationError(f"NOT appropriate order of the scheme! The order is {text}.")
    if order not in (1, 2):
        raise ConfigurationError(f"NOT appropriate order of the scheme! The order is {order}.")
    return order, scheme_name(scheme) if scheme else 'exact'


def main(argv: List[str] = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except ConfigurationError as err:
        logging.basicConfig(level=logging.INFO, format='%(message)s')
        logger.error("Arguments error: %s", err)
        return err.exit_code

    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO,
                        format='%(message)s')

    try:
        order, scheme = parse_order(args.order)
        frame = Frame.from_name(args.frame)
        overrides = [f"{int(ConfigIndex.ORDER)}={order}",
                     f"{int(ConfigIndex.FRAME)}={int(frame)}"] + list(args.overrides)
        fields, config = load_case(args.input, overrides, dim=args.dim, scheme=scheme)
        logger.info("Configuration: order %d, scheme %s, frame %s, h = %g, boundary = %d",
                    config.order, config.scheme, config.frame.name, config.h, config.bound)

        initial = initialize(fields, config)
        result = run(initial)
        write_outputs(result, args.output, initial)

        if args.plot:
            import matplotlib
            matplotlib.use('Agg')
            from hydrocode.src.plotting import plot_field_2d, plot_result
            if config.dim == 2:
                plot_field_2d(result, filename=args.plot)
            else:
                plot_result(result, filename=args.plot)
            logger.info("Saved plot to: %s", args.plot)
    except HydroError as err:
        logger.error("%s", err)
        return err.exit_code
    except MemoryError:
        logger.error("NOT enough memory!")
        return 5

    return 0


if __name__ == '__main__':
    sys.exit(main())
