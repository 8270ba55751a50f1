"""Transport protocol definitions.

Defines the interfaces that transport adapters must implement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from relayscript.server.protocols import Event


class LineSource(Protocol):
    """Source of command lines."""

    async def readline(self) -> str | None:
        """Read the next line without its terminator.

        Blocks until a line is available. Returns None once the source
        is exhausted.
        """
        ...


class Transport(Protocol):
    """Base transport protocol.

    A transport feeds command lines to the engine and receives the
    engine's events (it is usable as an EventSink).
    """

    async def readline(self) -> str | None:
        """Read the next command line, or None at end of input."""
        ...

    def emit(self, event: Event) -> None:
        """Deliver an event before returning."""
        ...
