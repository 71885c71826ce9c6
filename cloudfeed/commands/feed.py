from __future__ import annotations

import argparse

from . import CommandResult, MaybeAwaitable, QueryCommand, emit


class FeedCommand(QueryCommand):
    name = "feed"
    help = "Print the raw aggregated feed"

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        async def _runner() -> CommandResult:
            feed = await cls.queries(args).feed()
            emit(feed.to_dict(), args.output)
            return 0

        return _runner()


class SecurityCommand(QueryCommand):
    name = "security"
    help = "Print security bulletins with their severity"

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        async def _runner() -> CommandResult:
            items = await cls.queries(args).security_bulletins()
            emit([item.to_dict() for item in items], args.output)
            return 0

        return _runner()


class ArchitectureCommand(QueryCommand):
    name = "architecture"
    help = "Print normalised Architecture Center updates"

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        async def _runner() -> CommandResult:
            items = await cls.queries(args).architecture_updates()
            emit([item.to_dict() for item in items], args.output)
            return 0

        return _runner()


__all__ = ["ArchitectureCommand", "FeedCommand", "SecurityCommand"]
