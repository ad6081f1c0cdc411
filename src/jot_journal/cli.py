"""Command-line entry point: ``jot``."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from .config import ProjectConfig, load_config
from .history import JotError, JotHistory, JotIndexError
from .models import Jot, JotState, parse_date
from .prompts import PromptAborted, prompt_state, prompt_text, select_index, select_jot
from .store import load_or_create, save_history

logger = logging.getLogger(__name__)


def _state_arg(text: str) -> JotState:
    try:
        return JotState.from_cli(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _date_arg(text: str) -> date:
    try:
        return parse_date(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{text}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jot",
        description="Track short jots in dated sets and roll unfinished ones forward",
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the history file (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    parser.add_argument(
        "--history-file",
        "-f",
        type=Path,
        help="History file to use instead of the configured one",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log more detail to stderr (-v info, -vv debug)",
    )
    parser.set_defaults(jot=None, state=None, index=None)

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    view = sub.add_parser(
        "view",
        help="View the current set, or the set containing --date",
    )
    view.add_argument("--date", "-d", type=_date_arg, help="Show the set containing this date")
    view.add_argument(
        "--state",
        "-s",
        dest="states",
        type=_state_arg,
        nargs="+",
        action="extend",
        default=[],
        help="Only show jots in these states",
    )

    sub.add_parser("view-history", help="Pick a date interval and view its set")

    new = sub.add_parser("new", help="Add a jot to the current set (the default command)")
    new.add_argument("--jot", "-j", help="Jot text; prompts when omitted")
    new.add_argument("--state", "-s", type=_state_arg, help="Jot state; prompts when omitted")

    update = sub.add_parser("update", help="Change a jot in the current set")
    update.add_argument("--jot", "-j", help="New jot text; prompts when omitted")
    update.add_argument("--state", "-s", type=_state_arg, help="New state; prompts when omitted")
    update.add_argument(
        "--index",
        "-i",
        type=int,
        help="Position of the jot to change (1-based); prompts when omitted",
    )

    sub.add_parser("delete", help="Delete jots from the current set (not implemented)")
    sub.add_parser("roll", help="Close the current set and carry unfinished jots forward")

    return parser


def configure_logging(verbosity: int, default_level: str = "WARNING") -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, default_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ========== Commands ==========


def cmd_view(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    if args.date is not None:
        jot_set = history.find_by_date(args.date)
        if jot_set is None:
            print("No jotset found for date")
            return
    else:
        jot_set = history.current()
    print(jot_set.filter_by_states(args.states).render())


def cmd_view_history(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    intervals = history.date_intervals()
    index = select_index("Select a date interval to view", intervals)
    print(history.set_at(index).render())


def cmd_new(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    content = args.jot if args.jot is not None else prompt_text("Enter jot")
    state = args.state if args.state is not None else prompt_state()

    jot = Jot(content=content, state=state)
    history.insert(jot)
    config.run_hook("post_insert", jot)
    print(f"Added {jot}")


def cmd_update(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    jots = history.current().jots

    if args.index is not None:
        index = args.index - 1
        if not 0 <= index < len(jots):
            raise JotIndexError(f"No jot #{args.index}; current set has {len(jots)} jots")
        selected = jots[index]
    else:
        if not jots:
            print("The current set has no jots to update")
            return
        selected = select_jot(jots, "Select a jot to modify")
        # Identical jots are interchangeable, so the first match is the one changed
        index = history.index_of(selected)

    content = args.jot if args.jot is not None else prompt_text(
        "Provide new jot message", initial=selected.content
    )
    state = args.state if args.state is not None else prompt_state()

    updated = Jot(content=content, state=state)
    history.replace_jot(updated, index)
    print(f"Updated {updated}")


def cmd_delete(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    logger.info("delete requested; command is not implemented")
    print("Delete is not implemented yet; nothing was removed")


def cmd_roll(history: JotHistory, args: argparse.Namespace, config: ProjectConfig) -> None:
    new_set = history.roll()
    config.run_hook("post_roll", history)
    print(new_set.render())


COMMANDS: dict[str, Callable[[JotHistory, argparse.Namespace, ProjectConfig], None]] = {
    "view": cmd_view,
    "view-history": cmd_view_history,
    "new": cmd_new,
    "update": cmd_update,
    "delete": cmd_delete,
    "roll": cmd_roll,
}


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "new"

    project_root = args.project_root.resolve()

    try:
        config = load_config(project_root, args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.verbose, config.log_level)

    if args.history_file is not None:
        path = args.history_file if args.history_file.is_absolute() else project_root / args.history_file
    else:
        path = config.get_history_path()

    try:
        history = load_or_create(path)
        COMMANDS[args.command](history, args, config)
        save_history(history, path, timeout=config.lock_timeout)
    except PromptAborted:
        print("Aborted; nothing was changed", file=sys.stderr)
        sys.exit(1)
    except JotError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
