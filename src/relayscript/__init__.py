"""relayscript - Line-delimited JSON operation worker.

A host process sends commands over stdin, one JSON object per line, naming
an operation to run and optionally carrying its Python source and
arguments. The worker keeps the operations it has been given, runs them,
and answers with events on stdout (logs, results, entities) and stderr
(errors).

Layers:
    core/       Pure types and logic (severities, operations, registry)
    server/     Command loop protocol (decoder, dispatcher, emitter, engine)
    transport/  Line sources and event sinks (stdio, in-process)
    frontends/  User interfaces (CLI, host-side SDK)

Quick Start (in-process):
    >>> import json
    >>> from relayscript import create_standalone
    >>>
    >>> engine, transport = create_standalone()
    >>> transport.feed(json.dumps(
    ...     {"cmd": "greet", "def": "'hello ' + args['name']", "args": {"name": "Ada"}}
    ... ))
    >>> transport.feed('{"cmd": "greet", "args": {"name": "Bob"}}')
    >>> transport.close()
    >>> exit_code = await engine.run()

Wire session (worker process):
    $ relayscript run
    {"log":{"severity":"info","message":"Starting",...}}
    {"cmd": "f", "def": "'hello'"}
    {"result":{"data":"hello"}}
    {"cmd": "done"}
    {"log":{"severity":"info","message":"Finished",...}}
"""

from relayscript.__version__ import __version__
from relayscript.compose import create_standalone, run_stdio_worker
from relayscript.config import WorkerConfig, load_worker_config
from relayscript.core import (
    Operation,
    OperationRegistry,
    Severity,
    WorkerState,
    compile_operation,
)
from relayscript.server import EventEmitter, WorkerEngine, build_worker_engine

__all__ = [
    "__version__",
    # Composition
    "create_standalone",
    "run_stdio_worker",
    # Configuration
    "WorkerConfig",
    "load_worker_config",
    # Core
    "Operation",
    "OperationRegistry",
    "Severity",
    "WorkerState",
    "compile_operation",
    # Server
    "EventEmitter",
    "WorkerEngine",
    "build_worker_engine",
]
