from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict

from ..incidents import IncidentsView
from ..models import FeedItem
from . import CommandResult, MaybeAwaitable, QueryCommand, emit

logger = logging.getLogger(__name__)


def _incident_payload(view: IncidentsView, item: FeedItem) -> Dict[str, Any]:
    payload = item.to_dict()
    if item.begin:
        end = None if item.is_active else item.iso_date
        try:
            payload["duration"] = view.get_duration(item.begin, end)
        except ValueError as exc:
            logger.debug("No duration for incident %s: %s", item.id, exc)
    return payload


def _print_template(text: str) -> None:
    sys.stdout.write(text + "\n")


class IncidentsCommand(QueryCommand):
    name = "incidents"
    help = "Print active incidents, or recent history with --history"

    @classmethod
    def configure_parser(cls, parser: argparse.ArgumentParser) -> None:
        super().configure_parser(parser)
        parser.add_argument(
            "--history",
            action="store_true",
            help="List resolved incidents from this year and last year.",
        )
        parser.add_argument(
            "--copy",
            metavar="ID",
            default=None,
            help="Print the status update template for incident ID.",
        )

    @classmethod
    def handle(cls, args: argparse.Namespace) -> MaybeAwaitable:
        async def _runner() -> CommandResult:
            view = await cls.queries(args).incidents_view(copy_to_clipboard=_print_template)

            if args.copy:
                matches = [item for item in view.items if item.id == args.copy]
                if not matches:
                    logger.error("No incident with id %s", args.copy)
                    return 1
                view.copy_update_template(matches[0])
                return 0

            selected = view.history_incidents if args.history else view.active_incidents
            emit([_incident_payload(view, item) for item in selected], args.output)
            return 0

        return _runner()


__all__ = ["IncidentsCommand"]
