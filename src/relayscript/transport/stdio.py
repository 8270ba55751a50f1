"""Stdio transport - the worker side of a host pipe.

Commands arrive on stdin; error events go to stderr and every other event
to stdout, one JSON line each, flushed immediately.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TextIO

from relayscript.server.protocols import EventChannel, encode_event

if TYPE_CHECKING:
    from relayscript.server.protocols import Event


@dataclass
class StdioTransport:
    """Line transport over text streams.

    Streams default to the process's stdin/stdout/stderr at construction
    time. Blocking reads run in a worker thread so the event loop stays
    responsive; only one read is ever outstanding.

    Example:
        >>> transport = StdioTransport()
        >>> engine = build_worker_engine(transport)
        >>> await engine.run()
    """

    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    async def readline(self) -> str | None:
        """Read the next line from stdin.

        Returns:
            The line without its terminator, or None at end of input.
        """
        line = await asyncio.to_thread(self.stdin.readline)
        if not line:
            return None
        return line.rstrip("\r\n")

    def emit(self, event: Event) -> None:
        """Write an event as one JSON line and flush."""
        stream = self.stderr if event.channel is EventChannel.ERROR else self.stdout
        stream.write(encode_event(event) + "\n")
        stream.flush()
