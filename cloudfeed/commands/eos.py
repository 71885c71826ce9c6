from __future__ import annotations

import argparse

from . import CommandResult, MaybeAwaitable, QueryCommand, emit


class EndOfSupportCommand(QueryCommand):
    name = "eos"
    help = "Search for upcoming Google Cloud end-of-support dates (needs GEMINI_API_KEY)"

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        async def _runner() -> CommandResult:
            items = await cls.queries(args).end_of_support()
            emit([item.to_dict() for item in items], args.output)
            return 0

        return _runner()


__all__ = ["EndOfSupportCommand"]
