"""Command plugin infrastructure for the cloudfeed CLI."""
from __future__ import annotations

import argparse
import inspect
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, List, Optional, Sequence, Type, Union

from ..cache import QueryCache
from ..config import Settings, load_settings
from ..eos import EndOfSupportSynthesizer
from ..fetcher import FeedClient
from ..queries import FeedQueries

CommandResult = Optional[int]
MaybeAwaitable = Union[CommandResult, Awaitable[CommandResult]]


class Command:
    """Base class for CLI subcommands."""

    name: str = ""
    help: str = ""
    aliases: Sequence[str] = ()

    @classmethod
    def configure_parser(cls, parser: argparse.ArgumentParser) -> None:
        """Hook for subclasses to define command-specific arguments."""

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        """Execute the command using parsed ``argparse`` arguments."""
        raise NotImplementedError("Command subclasses must implement handle()")

    @classmethod
    def attach(cls, subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
        """Register the command with an ``argparse`` sub-parser collection."""

        if not cls.name:
            raise ValueError("Command subclasses must define a non-empty 'name'")
        parser = subparsers.add_parser(
            cls.name,
            help=cls.help or None,
            description=cls.help or None,
            aliases=list(cls.aliases),
        )
        cls.configure_parser(parser)
        parser.set_defaults(_command_cls=cls)


class QueryCommand(Command):
    """Base for commands that read one of the feed views."""

    @classmethod
    def configure_parser(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Optional YAML settings file.",
        )
        parser.add_argument(
            "--base-url",
            default=None,
            help="Base URL of the feed API (overrides configuration).",
        )
        parser.add_argument(
            "--output",
            type=Path,
            default=None,
            help="Write the JSON result to this path instead of stdout.",
        )

    @classmethod
    def settings(cls, args: argparse.Namespace) -> Settings:
        settings = load_settings(getattr(args, "config", None))
        if getattr(args, "base_url", None):
            settings.api_base_url = args.base_url
        return settings

    @classmethod
    def queries(cls, args: argparse.Namespace) -> FeedQueries:
        settings = cls.settings(args)
        return FeedQueries(
            FeedClient(settings.api_base_url, timeout=settings.request_timeout),
            cache=QueryCache(stale_time=settings.stale_time, gc_time=settings.gc_time),
            synthesizer=EndOfSupportSynthesizer(settings.gemini_api_key, model=settings.gemini_model),
        )


def emit(payload: Any, output: Optional[Path] = None) -> None:
    """Serialise ``payload`` as JSON to ``output`` or stdout."""

    text = json.dumps(payload, indent=2, sort_keys=True)
    if output is None:
        sys.stdout.write(text + "\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)


def discover_commands(module: object) -> List[Type[Command]]:
    """Return every ``Command`` subclass defined on ``module``."""

    commands: List[Type[Command]] = []
    for _, obj in inspect.getmembers(module, inspect.isclass):
        if not issubclass(obj, Command) or obj is Command:
            continue
        if not getattr(obj, "name", ""):
            continue
        commands.append(obj)
    commands.sort(key=lambda cls: cls.name)
    return commands


__all__ = [
    "Command",
    "CommandResult",
    "MaybeAwaitable",
    "QueryCommand",
    "discover_commands",
    "emit",
]
