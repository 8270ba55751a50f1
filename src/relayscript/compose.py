"""Composition helpers for common worker configurations.

These helpers wire a transport, an engine and a configuration together
without assembling the layers by hand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relayscript.config import WorkerConfig
    from relayscript.server import WorkerEngine
    from relayscript.transport import InProcessTransport, StdioTransport


def create_standalone(
    config: WorkerConfig | None = None,
) -> tuple[WorkerEngine, InProcessTransport]:
    """Create an in-process worker.

    Returns:
        Tuple of (engine, transport) ready to use.

    Example:
        >>> engine, transport = create_standalone()
        >>> transport.feed('{"cmd": "f", "def": "1 + 1"}')
        >>> transport.close()
        >>> await engine.run()
    """
    from relayscript.server import build_worker_engine
    from relayscript.transport import InProcessTransport

    transport = InProcessTransport()
    engine = build_worker_engine(transport, config)
    return engine, transport


async def run_stdio_worker(
    config: WorkerConfig | None = None,
    transport: StdioTransport | None = None,
) -> int:
    """Run a worker over the process's standard streams.

    Blocks until the terminator, end of input or a fatal error.

    Args:
        config: Worker configuration (defaults if omitted).
        transport: Stdio transport (process streams if omitted).

    Returns:
        Exit status: 0 after a normal stop, 1 after a fatal error.
    """
    from relayscript.server import build_worker_engine
    from relayscript.transport import StdioTransport

    engine = build_worker_engine(transport or StdioTransport(), config)
    return await engine.run()
