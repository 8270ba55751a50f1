"""Output formatting for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, NoReturn

import rich_click as click
from rich.console import Console
from rich.text import Text
from rich.theme import Theme

from relayscript.server.protocols import (
    EntityEvent,
    ErrorEvent,
    LogEvent,
    ResultEvent,
    encode_event,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from relayscript.server.protocols import Event

EVENT_THEME = Theme(
    {
        "time": "dim cyan",
        "severity.debug": "dim",
        "severity.info": "bold blue",
        "severity.warn": "bold yellow",
        "severity.error": "bold red",
        "result": "bold green",
        "entity": "magenta",
        "error": "bold red",
        "location": "dim",
    }
)


def create_console() -> Console:
    """Console for rendering events, bound to the current stdout."""
    return Console(theme=EVENT_THEME, highlight=False)


def render_event(event: Event) -> Text:
    """Render one event as a single styled line (plus any stack trace)."""
    text = Text()
    if isinstance(event, LogEvent):
        text.append(f"{event.time} ", style="time")
        text.append(f"{event.severity.value.upper():<5}", style=f"severity.{event.severity.value}")
        text.append(f" {event.message}")
        if event.stack_trace:
            text.append(f"\n{event.stack_trace.rstrip()}", style="dim")
    elif isinstance(event, ResultEvent):
        text.append("result ", style="result")
        text.append(_json_text(event.data))
    elif isinstance(event, EntityEvent):
        text.append("entity ", style="entity")
        text.append(_json_text(event.data))
    elif isinstance(event, ErrorEvent):
        text.append(f"{event.time} ", style="time")
        text.append("ERROR ", style="error")
        text.append(event.message)
        if event.location:
            text.append(f" ({event.location})", style="location")
        if event.stack_trace:
            text.append(f"\n{event.stack_trace.rstrip()}", style="dim")
    return text


def print_events(events: Iterable[Event], json_output: bool = False) -> None:
    """Print events as styled lines, or as raw wire JSON lines."""
    if json_output:
        for event in events:
            click.echo(encode_event(event), err=isinstance(event, ErrorEvent))
        return

    console = create_console()
    for event in events:
        console.print(render_event(event))


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _json_text(data: object) -> str:
    return json.dumps(data, ensure_ascii=False, default=str)
