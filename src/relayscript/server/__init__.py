"""Server - the command loop protocol state machine.

This layer knows about core, but not about:
- Specific transports (stdio, in-process)
- Frontends (CLI, SDK)

Classes:
    WorkerEngine: Command loop and lifecycle controller.
    ExecutionDispatcher: Installs, resolves and invokes operations.
    EventEmitter: Builds and writes log/result/entity/error events.
    EventSink: Protocol for event consumers.

Example:
    >>> from relayscript.server import build_worker_engine
    >>> from relayscript.transport import StdioTransport
    >>>
    >>> engine = build_worker_engine(StdioTransport())
    >>> exit_code = await engine.run()
"""

from relayscript.server.decoder import decode_command
from relayscript.server.dispatcher import ExecutionDispatcher
from relayscript.server.emitter import EventEmitter
from relayscript.server.engine import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    WorkerEngine,
    build_worker_engine,
)
from relayscript.server.protocols import (
    Command,
    DecodeFailure,
    DefinitionNotFound,
    EntityEvent,
    ErrorEvent,
    Event,
    EventChannel,
    EventSink,
    ExecutionFailed,
    LogEvent,
    Outcome,
    Result,
    ResultEvent,
)

__all__ = [
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "Command",
    "DecodeFailure",
    "DefinitionNotFound",
    "EntityEvent",
    "ErrorEvent",
    "Event",
    "EventChannel",
    "EventEmitter",
    "EventSink",
    "ExecutionDispatcher",
    "ExecutionFailed",
    "LogEvent",
    "Outcome",
    "Result",
    "ResultEvent",
    "WorkerEngine",
    "build_worker_engine",
    "decode_command",
]
