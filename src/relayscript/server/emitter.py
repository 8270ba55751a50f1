"""EventEmitter - builds events and writes them through a sink.

The emitter is pure I/O: it never decides control flow. emit_error()
returns its terminating flag so the command loop can act on it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from relayscript.core.types import Severity
from relayscript.server.protocols import (
    EntityEvent,
    ErrorEvent,
    EventSink,
    LogEvent,
    ResultEvent,
    encode_value,
)

logger = logging.getLogger(__name__)


def timestamp() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


@dataclass
class EventEmitter:
    """Formats log, result, entity and error events.

    Attributes:
        sink: Destination of the events.
        threshold: Minimum severity of log events that are written.
        clock: Timestamp source used when none is given.

    Example:
        >>> emitter = EventEmitter(sink=transport, threshold=Severity.WARN)
        >>> emitter.emit_log("ignored")  # below threshold, nothing written
        >>> emitter.emit_result({"rows": 3})
    """

    sink: EventSink
    threshold: Severity = Severity.INFO
    clock: Callable[[], str] = field(default=timestamp, repr=False)

    def emit_log(
        self,
        message: str,
        severity: Severity | str = Severity.INFO,
        timestamp: str | None = None,
        stack_trace: str = "",
    ) -> None:
        """Write a log event if severity passes the threshold.

        Args:
            message: Log message.
            severity: Event severity (enum or wire name).
            timestamp: Time string, defaults to now.
            stack_trace: Optional stack trace.
        """
        severity = Severity.parse(severity)
        if not severity.at_least(self.threshold):
            return
        self.sink.emit(
            LogEvent(
                message=str(message),
                time=timestamp if timestamp is not None else self.clock(),
                severity=severity,
                stack_trace=stack_trace,
            )
        )

    def emit_result(self, data: Any) -> None:
        """Write a result event (not subject to the threshold)."""
        self.sink.emit(ResultEvent(data=data))

    def emit_entity(self, data: dict[str, Any]) -> None:
        """Write an entity event (not subject to the threshold).

        Raises:
            TypeError, ValueError: If data cannot be encoded as JSON. The
                operation calling return_entity() then fails.
        """
        encode_value(data)
        self.sink.emit(EntityEvent(data=data))

    def emit_error(
        self,
        message: str,
        timestamp: str | None = None,
        location: str = "",
        stack_trace: str = "",
        terminating: bool = False,
    ) -> bool:
        """Report an error on the error stream and log it.

        The same message, time and stack trace are also written as an
        error-severity log event.

        Args:
            message: Error message.
            timestamp: Time string, defaults to now.
            location: Where the error happened, if known.
            stack_trace: Optional stack trace.
            terminating: Whether the error ends the command loop.

        Returns:
            The terminating flag, for the caller to act on.
        """
        time = timestamp if timestamp is not None else self.clock()
        logger.debug("error_emitted: terminating=%s message=%s", terminating, message)
        self.sink.emit(
            ErrorEvent(
                message=message,
                time=time,
                location=location,
                stack_trace=stack_trace,
            )
        )
        self.emit_log(message, Severity.ERROR, timestamp=time, stack_trace=stack_trace)
        return terminating
