"""In-process transport - direct communication without IPC.

Useful for:
- Testing
- Embedding a worker in an application
- Replaying a command file
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relayscript.server.protocols import Event


@dataclass
class InProcessTransport:
    """In-process transport - no IPC, direct communication.

    Lines are fed into a queue the engine reads from; events are collected
    in order and also queued for consumers.

    Example:
        >>> transport = InProcessTransport()
        >>> engine = build_worker_engine(transport)
        >>> transport.feed('{"cmd": "f", "def": "42"}')
        >>> transport.close()
        >>> await engine.run()
        >>> transport.events
        [LogEvent(message='Starting', ...), ResultEvent(data=42), ...]
    """

    events: list[Event] = field(default_factory=list)
    _lines: asyncio.Queue[str | None] = field(default_factory=asyncio.Queue)
    _event_queue: asyncio.Queue[Event] = field(default_factory=asyncio.Queue)
    _closed: bool = False

    def feed(self, line: str) -> None:
        """Queue one command line.

        Raises:
            RuntimeError: If the transport has been closed.
        """
        if self._closed:
            raise RuntimeError("Transport is closed")
        self._lines.put_nowait(line)

    def feed_lines(self, lines: Iterable[str]) -> None:
        """Queue several command lines."""
        for line in lines:
            self.feed(line)

    def close(self) -> None:
        """Mark the end of input (the engine sees EOF after queued lines)."""
        if not self._closed:
            self._closed = True
            self._lines.put_nowait(None)

    async def readline(self) -> str | None:
        """Wait for the next fed line, or None after close()."""
        line = await self._lines.get()
        if line is None:
            # Keep reporting EOF to any later reader
            self._lines.put_nowait(None)
            return None
        return line.rstrip("\r\n")

    def emit(self, event: Event) -> None:
        """Record an event from the engine."""
        self.events.append(event)
        self._event_queue.put_nowait(event)

    async def next_event(self, timeout: float | None = None) -> Event | None:
        """Get the next emitted event.

        Args:
            timeout: Timeout in seconds.

        Returns:
            The next event, or None if timeout.
        """
        try:
            if timeout:
                return await asyncio.wait_for(self._event_queue.get(), timeout=timeout)
            return await self._event_queue.get()
        except TimeoutError:
            return None

    def clear_events(self) -> None:
        """Forget collected and pending events."""
        self.events.clear()
        while not self._event_queue.empty():
            try:
                self._event_queue.get_nowait()
            except asyncio.QueueEmpty:
                break
