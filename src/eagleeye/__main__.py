"""Command-line entry point for the file watcher."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .actions import Action, PrintAction
from .channel import ChannelClosed, ProducerError
from .command import CommandAction
from .config import ConfigError, WatchPlan, build_watch_plan, load_config
from .dispatcher import Dispatcher
from .events import ExecutionResult
from .notifier import WatchdogNotifier
from .registry import WatchRegistry

logger = logging.getLogger("eagleeye")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eagleeye",
        description="Watch files and run actions when they change",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to a YAML config file. Mutually exclusive with --execute and --path",
    )
    parser.add_argument(
        "-e",
        "--execute",
        metavar="TEMPLATE",
        help=(
            "Command to run whenever a change happens. Every {:p} is replaced by the "
            "changed path. Requires --path"
        ),
    )
    parser.add_argument(
        "-p",
        "--path",
        metavar="PATH",
        help="File or directory to watch for changes. Requires --execute",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not print file change information",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config and (args.execute or args.path):
        parser.error("--config cannot be combined with --execute or --path")
    if args.execute and not args.path:
        parser.error("--execute requires --path")
    if args.path and not args.execute:
        parser.error("--path requires --execute")
    if not args.config and not args.execute:
        parser.error("either --config or --execute and --path are required")
    return args


def plan_from_args(args: argparse.Namespace) -> WatchPlan:
    if args.config:
        app_config = load_config(Path(args.config))
        return build_watch_plan(app_config)

    actions: List[Action] = []
    if not args.quiet:
        actions.append(PrintAction())
    actions.append(CommandAction(args.execute, args.quiet))
    return [(Path(args.path), actions)]


def report_result(result: ExecutionResult) -> None:
    if result.was_change_event:
        logger.info("Executed %s action(s) successfully.", result.num_actions_run)
    else:
        logger.debug("Ignored non-change event")


def report_error(error: ProducerError) -> bool:
    if isinstance(error, ChannelClosed):
        logger.error("%s", error)
        return False
    logger.error("Error receiving change events: %s", error)
    return True


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        plan = plan_from_args(args)
    except ConfigError as exc:
        logging.error("%s", exc)
        raise SystemExit(2) from exc

    notifier = WatchdogNotifier()
    registry = WatchRegistry(notifier)
    for path, actions in plan:
        registry.register(path, actions)

    if not len(registry):
        logger.error("No path could be watched. Exiting.")
        notifier.stop()
        raise SystemExit(1)

    dispatcher = Dispatcher(registry, notifier.channel)
    try:
        dispatcher.run(on_result=report_result, on_error=report_error)
    except ChannelClosed as exc:
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("Watcher interrupted by user")
    finally:
        notifier.stop()
        logger.info(
            "Watcher stopped after %s events, %s actions run, %s failed",
            dispatcher.stats.events,
            dispatcher.stats.actions_run,
            dispatcher.stats.actions_failed,
        )


if __name__ == "__main__":
    main()
