"""Command-line entry point for the cloudfeed package."""
from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import pkgutil
import sys
from typing import Coroutine, Dict, Iterator, List, Optional, Sequence, Type, cast

from .commands import Command, CommandResult, MaybeAwaitable, discover_commands
from .errors import CloudFeedError

logger = logging.getLogger("cloudfeed")


def _command_modules() -> Iterator[object]:
    package = importlib.import_module("cloudfeed.commands")
    yield package
    for module_info in pkgutil.iter_modules(package.__path__):
        yield importlib.import_module(f"{package.__name__}.{module_info.name}")


def available_commands() -> List[Type[Command]]:
    """Every named command under ``cloudfeed.commands``, one per name."""

    registry: Dict[str, Type[Command]] = {}
    for module in _command_modules():
        for command_type in discover_commands(module):
            registry.setdefault(command_type.name, command_type)
    return [registry[name] for name in sorted(registry)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudfeed",
        description="Google Cloud security, architecture, incident and end-of-support feeds",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level applied to all commands.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Shortcut for setting --log-level=DEBUG.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for command_cls in available_commands():
        command_cls.attach(subparsers)
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if args.debug else getattr(logging, args.log_level.upper(), logging.INFO)
    # stdout carries the JSON output
    logging.basicConfig(level=level, stream=sys.stderr)


def run_command(command_cls: Type[Command], args: argparse.Namespace) -> int:
    """Run a command, awaiting it if needed; upstream failures exit with 1."""

    try:
        result: MaybeAwaitable = command_cls.handle(args)
        if asyncio.iscoroutine(result):
            outcome = asyncio.run(cast(Coroutine[object, object, CommandResult], result))
        else:
            outcome = cast(CommandResult, result)
    except CloudFeedError as exc:
        logger.error("%s failed: %s", command_cls.name, exc)
        return 1
    return int(outcome or 0)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    command_cls: Optional[Type[Command]] = getattr(args, "_command_cls", None)
    if command_cls is None:
        parser.print_help()
        return 1
    return run_command(command_cls, args)


if __name__ == "__main__":  # pragma: no cover - thin wrapper
    sys.exit(main())
