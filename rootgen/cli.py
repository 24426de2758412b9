"""
Command-line entry points.

    rootgen-cutstock            cutting stock root node (canonical instance)
    rootgen-lotsizing           lot sizing root node (canonical instance)
    python -m rootgen cutstock|lotsizing

The programs take no options. Pass lines and the final report go to stdout;
a fatal error prints one line to stderr and exits with status 1.
"""

import argparse
import sys
import warnings
from typing import Callable, List, Optional

from rootgen.applications.cutting_stock import solve_cutting_stock
from rootgen.applications.lot_sizing import solve_lot_sizing
from rootgen.exceptions import LoopLimitWarning, RootgenError
from rootgen.log import configure_logging

_PROGRAMS = {
    "cutstock": (
        "Cutting stock by column generation on the canonical instance",
        solve_cutting_stock,
    ),
    "lotsizing": (
        "Economic lot sizing by (l,S) cut generation on the canonical instance",
        solve_lot_sizing,
    ),
}


def _run(solve: Callable[[], object]) -> int:
    configure_logging(stream=sys.stdout)
    try:
        with warnings.catch_warnings():
            # Already reported through the logger
            warnings.simplefilter("ignore", LoopLimitWarning)
            solve()
    except RootgenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def cutting_stock_main(argv: Optional[List[str]] = None) -> int:
    """Entry point of rootgen-cutstock."""
    description, solve = _PROGRAMS["cutstock"]
    argparse.ArgumentParser(prog="rootgen-cutstock", description=description).parse_args(argv)
    return _run(solve)


def lot_sizing_main(argv: Optional[List[str]] = None) -> int:
    """Entry point of rootgen-lotsizing."""
    description, solve = _PROGRAMS["lotsizing"]
    argparse.ArgumentParser(prog="rootgen-lotsizing", description=description).parse_args(argv)
    return _run(solve)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of python -m rootgen."""
    parser = argparse.ArgumentParser(
        prog="python -m rootgen",
        description="Root-node reformulation loops on the canonical instances",
    )
    subparsers = parser.add_subparsers(dest="program", required=True)
    for name, (description, _) in _PROGRAMS.items():
        subparsers.add_parser(name, help=description, description=description)

    args = parser.parse_args(argv)
    _, solve = _PROGRAMS[args.program]
    return _run(solve)
