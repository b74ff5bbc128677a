"""Command-line front door for ``ws``.

Parses subcommands and global flags, resolves settings, and sets up logging.
Then dispatches into ``wsnav.dispatch`` and maps results to exit codes.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_settings
from .dispatch import CommandDeps, CommandResult, run_back, run_history, run_kill, run_pick
from .history import HistoryStore
from .logs import setup_logging
from .picker import PickerError, get_selector
from .tmux import AdapterError, TmuxClient

EXIT_OK = 0
EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ws",
        description="Jump between tmux sessions with a persistent back stack.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable).")
    parser.add_argument("--log-file", default=None, help="Write logs here instead of stderr (or set $WSNAV_LOG).")
    parser.add_argument("--history-file", type=Path, default=None, help="Override the history file location.")
    parser.add_argument("--max-history", type=_positive_int, default=None, help="Override the history depth cap.")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True
    sub.add_parser("pick", help="Pick a session and switch to it.")
    kill = sub.add_parser("kill", help="Kill a session, switching away first if it is active.")
    kill.add_argument("session", nargs="?", default=None, help="Session to kill. Picks one when omitted.")
    sub.add_parser("back", help="Jump back to the previous live session.")
    sub.add_parser("history", help="Show the reachable back history, newest first.")
    return parser


def build_deps(args: argparse.Namespace) -> CommandDeps:
    settings = load_settings(history_path=args.history_file, max_history=args.max_history)
    store = HistoryStore(
        settings.history_path,
        max_entries=settings.max_history,
        lock_timeout=settings.lock_timeout,
    )
    return CommandDeps(directory=TmuxClient(), store=store, select=get_selector(settings.picker))


def run_command(args: argparse.Namespace, deps: CommandDeps) -> CommandResult:
    if args.command == "pick":
        return run_pick(deps)
    if args.command == "kill":
        return run_kill(deps, args.session)
    if args.command == "back":
        return run_back(deps)
    return run_history(deps)


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command, and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        result = run_command(args, build_deps(args))
    except (AdapterError, PickerError) as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    for line in result.lines:
        print(line)
    if result.message:
        print(result.message, file=sys.stderr)
    return EXIT_OK


def entrypoint() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    entrypoint()
