"""Command-line interface for Kitchen Stock.

Starts an interactive session: loads the inventory file, reads commands
line by line until ``exit`` (or end of input), prints each result between
divider lines and saves the inventory before quitting.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from kitchen_stock.config import ConfigError, load_config
from kitchen_stock.inventory import InventorySession, InventoryState
from kitchen_stock.models import date_to_string
from kitchen_stock.parser import is_exit
from kitchen_stock.storage import IngredientStorage, StorageError

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date


logger = logging.getLogger(__name__)

DIVIDER = "_" * 52
GOODBYE_MESSAGE = "Okay, see you soon! Goodbye."


# ------------------------------------------------------------------
# Output formatting
# ------------------------------------------------------------------


def _frame(text: str) -> str:
    """Wrap output between divider lines.

    Args:
        text: Text to frame.

    Returns:
        Framed text.
    """
    return f"{DIVIDER}\n{text}\n{DIVIDER}"


def _welcome(session_date: date) -> str:
    return _frame(
        f"Current session date: {date_to_string(session_date)}\n"
        "Welcome to Kitchen Stock!\n"
        "What would you like to do first?\n"
        'To see what I can do, use "help"'
    )


# ------------------------------------------------------------------
# Session loop
# ------------------------------------------------------------------


def run_session(
    session: InventorySession,
    read_line: Callable[[], str] | None = None,
    write: Callable[[str], None] | None = None,
) -> int:
    """Read and handle commands until ``exit`` or end of input.

    Args:
        session: The inventory session to drive.
        read_line: Returns the next input line; raises EOFError at the end.
            Defaults to ``input``.
        write: Receives each framed output block. Defaults to ``print``.

    Returns:
        Number of commands handled (``exit`` not included).
    """
    read_line = read_line or input
    write = write or print
    handled = 0
    while True:
        try:
            line = read_line()
        except EOFError:
            logger.debug("End of input reached")
            break
        if is_exit(line):
            break
        if not line.strip():
            continue
        write(_frame(session.handle_line(line)))
        handled += 1
    return handled


# ------------------------------------------------------------------
# Argument parser
# ------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="kitchen-stock",
        description="Kitchen Stock: interactive ingredient inventory tracker.",
    )
    parser.add_argument(
        "--data-file",
        default=None,
        help="Inventory file to use (default from config: data/ingredients.txt).",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file with configuration overrides.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )
    return parser


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Run the interactive tracker.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_config(args.env_file)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    level = logging.DEBUG if args.verbose else cfg.log_level
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    data_file = args.data_file or cfg.data_file
    try:
        storage = IngredientStorage(data_file, default_units=cfg.default_units)
    except OSError as exc:
        print(f"Error: cannot create inventory file {data_file}: {exc}", file=sys.stderr)
        sys.exit(1)

    state = InventoryState.from_config(cfg, storage.load())
    session = InventorySession(state, storage, default_units=cfg.default_units)

    print(_welcome(state.session_date))
    run_session(session)

    exit_code = 0
    try:
        session.save()
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    print(_frame(GOODBYE_MESSAGE))
    sys.exit(exit_code)
