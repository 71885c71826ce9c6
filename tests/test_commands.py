import argparse
import asyncio
import importlib
import json
from pathlib import Path

from cloudfeed.__main__ import build_parser, main
from cloudfeed.commands import Command, discover_commands
from cloudfeed.commands.feed import SecurityCommand
from cloudfeed.errors import TransportError
from cloudfeed.models import Feed, FeedItem


def test_discover_commands_finds_all_subclasses():
    module = importlib.import_module("tests.sample_commands")
    commands = discover_commands(module)
    names = [command.name for command in commands]
    assert names == sorted(names)
    assert {"alpha", "beta"}.issubset(set(names))
    assert all(issubclass(command, Command) for command in commands)


def test_command_attach_registers_parser():
    module = importlib.import_module("tests.sample_commands")
    commands = discover_commands(module)
    parser = argparse.ArgumentParser(prog="test")
    subparsers = parser.add_subparsers(dest="command", required=True)
    for command in commands:
        command.attach(subparsers)

    help_text = parser.format_help()
    assert "alpha" in help_text
    assert "beta" in help_text


def test_build_parser_registers_every_view():
    help_text = build_parser().format_help()
    for name in ["feed", "security", "architecture", "incidents", "eos"]:
        assert name in help_text


def test_security_command_writes_json(monkeypatch, tmp_path: Path):
    feed = Feed(
        items=[
            FeedItem(
                id="1",
                title="Severity: High kernel bug",
                link="https://cloud.google.com/support/bulletins#gcp-1",
                iso_date="2024-05-01T00:00:00Z",
                source="Security Bulletins",
            )
        ]
    )

    async def fake_fetch_feed(self):
        return feed

    monkeypatch.setattr("cloudfeed.fetcher.FeedClient.fetch_feed", fake_fetch_feed)
    output = tmp_path / "out" / "security.json"
    args = build_parser().parse_args(["security", "--base-url", "http://feed.test", "--output", str(output)])
    assert args._command_cls is SecurityCommand

    result = asyncio.run(SecurityCommand.handle(args))
    assert result == 0
    payload = json.loads(output.read_text())
    assert payload[0]["severity"] == "High"
    assert payload[0]["categories"] == ["Security", "Bulletin", "High"]


def test_main_exits_non_zero_on_transport_error(monkeypatch):
    async def failing_fetch_feed(self):
        raise TransportError("http://feed.test/api/feed", "Failed to fetch: 500 Internal Server Error", status=500)

    monkeypatch.setattr("cloudfeed.fetcher.FeedClient.fetch_feed", failing_fetch_feed)
    assert main(["feed", "--base-url", "http://feed.test"]) == 1
