"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from typing import Any

import pytest

from relayscript.transport import InProcessTransport, StdioTransport

FIXED_TIME = "2026-01-01T00:00:00+00:00"


class RecordingSink:
    """Event sink that keeps every event in order."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)


@pytest.fixture
def fixed_clock() -> Callable[[], str]:
    """Clock that always returns the same timestamp."""
    return lambda: FIXED_TIME


@pytest.fixture
def sink() -> RecordingSink:
    """Fresh recording sink."""
    return RecordingSink()


@pytest.fixture
def transport() -> InProcessTransport:
    """Fresh in-process transport."""
    return InProcessTransport()


@pytest.fixture
def command_line() -> Callable[..., str]:
    """Build one wire command line from keyword fields."""

    def build(cmd: str, **fields: Any) -> str:
        message: dict[str, Any] = {"cmd": cmd}
        if "definition" in fields:
            message["def"] = fields.pop("definition")
        message.update(fields)
        return json.dumps(message)

    return build


@pytest.fixture
def stdio() -> Callable[[list[str]], StdioTransport]:
    """Build a StdioTransport over in-memory streams fed with lines."""

    def build(lines: list[str]) -> StdioTransport:
        return StdioTransport(
            stdin=io.StringIO("".join(f"{line}\n" for line in lines)),
            stdout=io.StringIO(),
            stderr=io.StringIO(),
        )

    return build
