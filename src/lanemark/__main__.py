"""CLI entry point for lanemark."""

import argparse
from pathlib import Path

from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="lanemark",
        description="Read, check and rewrite markdown kanban boards",
    )
    parser.add_argument(
        "board",
        type=Path,
        help="Path to the board markdown file",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--json",
        action="store_true",
        help="Print the parsed board as JSON",
    )
    mode.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if rewriting the board would change it",
    )
    mode.add_argument(
        "--write",
        action="store_true",
        help="Rewrite the board in stable form (adds missing identifiers)",
    )
    mode.add_argument(
        "--create",
        action="store_true",
        help="Create a new board with default lanes",
    )
    parser.add_argument(
        "--no-natural-dates",
        action="store_true",
        help="Do not read phrases like 'next monday' as due dates",
    )
    parser.add_argument(
        "--no-recurrence",
        action="store_true",
        help="Do not read bare phrases like 'every week' as recurrence",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file
    if args.no_natural_dates:
        settings_kwargs["parse_natural_dates"] = False
    if args.no_recurrence:
        settings_kwargs["parse_recurrence"] = False

    settings = Settings(**settings_kwargs)
    setup_logging(settings.verbose, settings.log_file)

    board_path = args.board if args.board.is_absolute() else settings.board_root / args.board

    from .cli.board import run_check, run_create, run_show, run_write

    if args.check:
        exit_code = run_check(board_path, settings)
    elif args.write:
        exit_code = run_write(board_path, settings)
    elif args.create:
        exit_code = run_create(board_path, settings)
    else:
        exit_code = run_show(board_path, settings, as_json=args.json)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
