"""Command line interface for densemat."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .algebra.power_iteration import (
    DEFAULT_MAX_ITERS,
    DEFAULT_PROBE_ITERS,
    DEFAULT_STEP,
    Method,
    power_method_eigenvalues,
)
from .context import DEFAULT_EPS, DEFAULT_PRECISION, NumericContext
from .errors import MatrixError
from .generators import random_int_matrix, random_matrix
from .matrix import Matrix
from .render import format_matrix, format_scalar, to_wolfram

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_NOT_CONVERGED = 2

_METHOD_NAMES = {
    "dominant": Method.DOMINANT_REAL,
    "squared": Method.SQUARED_PAIR,
    "complex": Method.COMPLEX_PAIR,
}


class TextFormatter(logging.Formatter):
    """Human-readable text log formatter"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging(verbose: bool = False) -> None:
    """Send densemat log records to stderr; DEBUG when verbose."""
    level = logging.DEBUG if verbose else logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(TextFormatter())
    handler.setLevel(level)

    package_logger = logging.getLogger("densemat")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


def _load_matrix(raw: str) -> Matrix:
    """Parse a JSON nested list given inline or as ``@path``."""
    if raw.startswith("@"):
        text = Path(raw[1:]).read_text(encoding="utf-8")
    else:
        text = raw
    rows: Any = json.loads(text)
    if not isinstance(rows, list):
        raise TypeError("Matrix must be a JSON list of rows")
    return Matrix(rows)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="densemat",
        description="Dense matrix utilities: dominant eigenpairs and random matrices.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log iteration details to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    eig = subparsers.add_parser("eig", help="Extract the dominant eigenpair(s) of a square matrix.")
    eig.add_argument(
        "matrix",
        help='JSON nested list such as "[[0, -1], [1, 0]]", or @path to a JSON file.',
    )
    eig.add_argument(
        "--method",
        choices=sorted(_METHOD_NAMES),
        help="Force one power-iteration variant instead of automatic selection.",
    )
    eig.add_argument("--max-iters", type=int, default=DEFAULT_MAX_ITERS, help="Iteration cap per run.")
    eig.add_argument(
        "--probe-iters",
        type=int,
        default=DEFAULT_PROBE_ITERS,
        help="Iteration cap of the loose probe run.",
    )
    eig.add_argument("--step", type=int, default=DEFAULT_STEP, help="Lookback window for stall detection.")
    eig.add_argument("--eps", type=float, default=DEFAULT_EPS, help="Convergence tolerance.")
    eig.add_argument(
        "--precision",
        type=int,
        default=DEFAULT_PRECISION,
        help="Decimals shown in the output.",
    )
    eig.add_argument(
        "--wolfram",
        action="store_true",
        help="Print eigenvectors as {{a},{b}} lists.",
    )

    rand = subparsers.add_parser("random", help="Print a random matrix.")
    rand.add_argument("rows", type=int, help="Number of rows.")
    rand.add_argument("cols", type=int, nargs="?", help="Number of columns (defaults to rows).")
    rand.add_argument("--low", type=float, default=0.0, help="Lower bound (default: 0).")
    rand.add_argument("--high", type=float, default=1.0, help="Upper bound (default: 1).")
    rand.add_argument("--seed", type=int, help="Seed for reproducible output.")
    rand.add_argument(
        "--ints",
        action="store_true",
        help="Draw integers from [low, high] instead of reals from [low, high).",
    )
    rand.add_argument("--precision", type=int, default=DEFAULT_PRECISION, help="Decimals shown.")
    rand.add_argument("--wolfram", action="store_true", help="Print as a {{a,b},{c,d}} list.")
    return parser


def _run_eig(args: argparse.Namespace) -> int:
    context = NumericContext(eps=args.eps, precision=args.precision)
    matrix = _load_matrix(args.matrix)
    method = _METHOD_NAMES[args.method] if args.method else None

    result = power_method_eigenvalues(
        matrix,
        max_iters=args.max_iters,
        probe_iters=args.probe_iters,
        step=args.step,
        method=method,
        context=context,
    )

    print(f"method: {result.method.name.lower()}")
    print(f"iterations: {result.iterations}")
    for pair in result.pairs:
        print(f"lambda = {format_scalar(pair.value, context.precision)}")
        if args.wolfram:
            print(to_wolfram(pair.vector, precision=context.precision))
        else:
            print(format_matrix(pair.vector, precision=context.precision))

    if not result.converged:
        print("Warning: power iteration did not converge", file=sys.stderr)
        return EXIT_NOT_CONVERGED
    return EXIT_OK


def _run_random(args: argparse.Namespace) -> int:
    cols = args.rows if args.cols is None else args.cols
    if args.ints:
        matrix = random_int_matrix(args.rows, cols, int(args.low), int(args.high), seed=args.seed)
    else:
        matrix = random_matrix(args.rows, cols, args.low, args.high, seed=args.seed)

    if args.wolfram:
        print(to_wolfram(matrix, precision=args.precision))
    else:
        print(format_matrix(matrix, precision=args.precision))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "eig":
            return _run_eig(args)
        return _run_random(args)
    except (OSError, ValueError, TypeError, MatrixError) as exc:
        # ValidationError and JSONDecodeError are ValueErrors.
        logger.debug("input rejected", exc_info=True)
        message = exc.errors()[0]["msg"] if isinstance(exc, ValidationError) else exc
        print(f"Error: {message}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
