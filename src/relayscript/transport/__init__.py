"""Transport - Communication adapters.

Transport adapters feed command lines to the engine and receive its
events (they implement the EventSink protocol).

Available transports:
    StdioTransport: stdin/stdout/stderr of the worker process.
    InProcessTransport: Queue-backed, no IPC.

Example (in-process):
    >>> from relayscript.transport import InProcessTransport
    >>> from relayscript.server import build_worker_engine
    >>>
    >>> transport = InProcessTransport()
    >>> engine = build_worker_engine(transport)
    >>> transport.feed('{"cmd": "done"}')
    >>> await engine.run()
"""

from relayscript.transport.in_process import InProcessTransport
from relayscript.transport.protocol import LineSource, Transport
from relayscript.transport.stdio import StdioTransport

__all__ = [
    # Protocols
    "LineSource",
    "Transport",
    # Implementations
    "InProcessTransport",
    "StdioTransport",
]
