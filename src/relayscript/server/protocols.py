"""Server protocols - Command/Event/Outcome types and the EventSink interface.

Wire format, one JSON object per line:

Input (host -> worker):
    {"cmd": "<name>", "def": "<source>", "args": {...}}

Output, primary stream:
    {"log": {"severity": ..., "message": ..., "time": ..., "stackTrace": ...}}
    {"result": {"data": ...}}
    {"entity": {...}}

Output, error stream:
    {"error": {"message": ..., "time": ..., "location": ..., "stackTrace": ...}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol, Union

from relayscript.core.types import Severity


class EventChannel(Enum):
    """Stream an event is written to."""

    OUTPUT = auto()
    ERROR = auto()


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class Command:
    """One decoded input line.

    Attributes:
        operation_name: Operation to run (the "cmd" field).
        logic_text: Source defining or replacing the operation ("def").
        arguments: Argument mapping passed to the operation ("args").
        is_terminator: Whether "cmd" is the terminator sentinel.
    """

    operation_name: str
    logic_text: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    is_terminator: bool = False


@dataclass(frozen=True)
class DecodeFailure:
    """An input line that is not a valid command.

    Attributes:
        raw_line: The offending line, without its terminator.
        reason: Why decoding failed.
    """

    raw_line: str
    reason: str


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class LogEvent:
    """Log line on the primary stream."""

    message: str
    time: str
    severity: Severity = Severity.INFO
    stack_trace: str = ""

    channel = EventChannel.OUTPUT

    def to_dict(self) -> dict[str, Any]:
        return {
            "log": {
                "severity": self.severity.value,
                "message": self.message,
                "time": self.time,
                "stackTrace": self.stack_trace,
            }
        }


@dataclass(frozen=True)
class ResultEvent:
    """Outcome of a successful command."""

    data: Any

    channel = EventChannel.OUTPUT

    def to_dict(self) -> dict[str, Any]:
        return {"result": {"data": self.data}}


@dataclass(frozen=True)
class EntityEvent:
    """Structured record streamed by an operation before its result."""

    data: dict[str, Any]

    channel = EventChannel.OUTPUT

    def to_dict(self) -> dict[str, Any]:
        return {"entity": self.data}


@dataclass(frozen=True)
class ErrorEvent:
    """Error report on the error stream."""

    message: str
    time: str
    location: str = ""
    stack_trace: str = ""

    channel = EventChannel.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "message": self.message,
                "time": self.time,
                "location": self.location,
                "stackTrace": self.stack_trace,
            }
        }


Event = Union[LogEvent, ResultEvent, EntityEvent, ErrorEvent]


def encode_value(value: Any) -> str:
    """Serialize a value as compact JSON.

    Values that are not JSON-serializable are rendered with str().

    Raises:
        TypeError: If a mapping has keys that are not str, int, float, bool or None.
        ValueError: If the value is circular or contains NaN or infinity.
    """
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=str,
    )


def encode_event(event: Event) -> str:
    """Serialize an event as one compact JSON line (without terminator)."""
    return encode_value(event.to_dict())


def event_from_dict(message: dict[str, Any]) -> Event:
    """Rebuild an event from its wire form.

    Args:
        message: Decoded JSON object of one output line.

    Returns:
        The event.

    Raises:
        ValueError: If the object is not a known event.
    """
    if "log" in message:
        body = message["log"]
        return LogEvent(
            message=body.get("message", ""),
            time=body.get("time", ""),
            severity=Severity.parse(body.get("severity", "info")),
            stack_trace=body.get("stackTrace", ""),
        )
    if "result" in message:
        return ResultEvent(data=message["result"].get("data"))
    if "entity" in message:
        return EntityEvent(data=message["entity"])
    if "error" in message:
        body = message["error"]
        return ErrorEvent(
            message=body.get("message", ""),
            time=body.get("time", ""),
            location=body.get("location", ""),
            stack_trace=body.get("stackTrace", ""),
        )
    raise ValueError(f"Unknown event: {sorted(message)}")


# =============================================================================
# Dispatch outcomes
# =============================================================================


@dataclass(frozen=True)
class Result:
    """The operation returned a value."""

    value: Any


@dataclass(frozen=True)
class DefinitionNotFound:
    """No operation is installed under the name and none was supplied."""

    name: str


@dataclass(frozen=True)
class ExecutionFailed:
    """The operation failed to compile or raised while running.

    Attributes:
        name: Operation name.
        detail: "<ExceptionType>: <message>".
        location: "<file>:<line>" of the failure, or "".
        stack_trace: Formatted traceback, or "".
    """

    name: str
    detail: str
    location: str = ""
    stack_trace: str = ""


Outcome = Union[Result, DefinitionNotFound, ExecutionFailed]


class EventSink(Protocol):
    """Protocol for event consumers.

    The emitter writes events through this interface. Implementations must
    deliver each event before returning.
    """

    def emit(self, event: Event) -> None:
        """Emit an event.

        Args:
            event: The event to emit.
        """
        ...
