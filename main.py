"""
Builds one exploration session and reports on it.

Usage examples:
  python main.py --dump
  python main.py --config session.json --load saved_view.json -v
"""
import argparse
import logging
import sys
from typing import List, Optional

from fractals.validation import ParameterError
from rendering.service import FractalSessionController
from storage.state_io import StateFormatError
from utils.config import SessionConfig
from utils.logging_config import setup_logging

logger = logging.getLogger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mandelbrot session engine")
    parser.add_argument('--config', dest='config', metavar='FILE',
                        help='JSON session config; MANDELBROT_* environment variables are used otherwise')
    parser.add_argument('--load', dest='load', metavar='STATE',
                        help='saved view to load after the session starts')
    parser.add_argument('--dump', action='store_true',
                        help='print the iteration grid of the current view as a text table')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SessionConfig.from_file(args.config) if args.config else SessionConfig.from_env()
    except (OSError, ValueError) as e:
        # pydantic's ValidationError and json's decode error are both ValueErrors
        setup_logging("DEBUG" if args.verbose else "INFO")
        logger.error("Invalid session config: %s", e)
        return 1
    setup_logging("DEBUG" if args.verbose else config.log_level)

    controller = FractalSessionController.from_config(config)
    try:
        if args.load:
            try:
                controller.load(args.load)
            except (StateFormatError, ParameterError) as e:
                logger.error("Could not open %s: %s", args.load, e)
                return 1

        params = controller.current_parameters()
        logger.info("View [%r, %r] x [%r, %r], %d iterations, radius^2 %r",
                    params.min_real, params.max_real, params.min_imaginary,
                    params.max_imaginary, params.max_iterations, params.sq_radius)
        logger.info("Magnification x %d", controller.magnification())

        if args.dump:
            sys.stdout.write(controller.format_grid())
    finally:
        controller.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
