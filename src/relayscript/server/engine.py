"""WorkerEngine - the command loop and lifecycle controller.

WorkerEngine owns the pipeline for each input line:

    line -> decode_command -> ExecutionDispatcher -> EventEmitter

and is the only place that decides whether the loop continues. Lines are
read one at a time; a command's events are written before the next line
is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relayscript.core.operations import load_operations
from relayscript.core.types import WorkerState
from relayscript.server.decoder import DEFAULT_TERMINATOR, decode_command
from relayscript.server.dispatcher import ExecutionDispatcher
from relayscript.server.emitter import EventEmitter
from relayscript.server.protocols import (
    Command,
    DecodeFailure,
    DefinitionNotFound,
    ExecutionFailed,
    Outcome,
    Result,
)

if TYPE_CHECKING:
    from relayscript.config import WorkerConfig
    from relayscript.transport.protocol import LineSource, Transport

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass
class WorkerEngine:
    """Command loop over a line source.

    States: STARTING -> LISTENING -> (EXECUTING)* -> STOPPING -> STOPPED,
    or FATAL_EXIT after a fatal error.

    Example:
        >>> transport = StdioTransport()
        >>> engine = build_worker_engine(transport)
        >>> exit_code = await engine.run()
    """

    source: LineSource
    emitter: EventEmitter
    dispatcher: ExecutionDispatcher
    terminator: str = DEFAULT_TERMINATOR
    _state: WorkerState = field(default=WorkerState.STARTING, init=False)
    _commands_handled: int = field(default=0, init=False, repr=False)

    @property
    def state(self) -> WorkerState:
        """Current lifecycle state."""
        return self._state

    @property
    def commands_handled(self) -> int:
        """Number of commands dispatched so far."""
        return self._commands_handled

    async def run(self) -> int:
        """Run the command loop until terminator, EOF or a fatal error.

        Returns:
            EXIT_SUCCESS after a normal stop, EXIT_FAILURE after a fatal error.
        """
        self._state = WorkerState.STARTING
        self.emitter.emit_log("Starting")
        self._state = WorkerState.LISTENING

        while True:
            line = await self.source.readline()
            if line is None:
                logger.debug("input_exhausted: commands=%d", self._commands_handled)
                break

            command = decode_command(line, self.terminator)

            if isinstance(command, DecodeFailure):
                logger.debug("decode_failed: reason=%s", command.reason)
                self.emitter.emit_error(f"Could not parse JSON: {command.raw_line}")
                continue

            if command.is_terminator:
                logger.debug("terminator_received: commands=%d", self._commands_handled)
                break

            if not await self._execute(command):
                self._state = WorkerState.FATAL_EXIT
                return EXIT_FAILURE

            self._state = WorkerState.LISTENING

        self._state = WorkerState.STOPPING
        self.emitter.emit_log("Finished")
        self._state = WorkerState.STOPPED
        return EXIT_SUCCESS

    async def _execute(self, command: Command) -> bool:
        """Dispatch one command and report its outcome.

        Returns:
            True if the loop should keep listening.
        """
        self._state = WorkerState.EXECUTING
        self._commands_handled += 1
        logger.debug(
            "command_received: cmd=%s has_def=%s args=%d",
            command.operation_name,
            command.logic_text is not None,
            len(command.arguments),
        )
        outcome = await self.dispatcher.dispatch(command)
        return not self._report(outcome)

    def _report(self, outcome: Outcome) -> bool:
        """Emit the events for an outcome.

        Returns:
            True if the outcome is fatal.
        """
        if isinstance(outcome, Result):
            self.emitter.emit_result(outcome.value)
            return False

        if isinstance(outcome, DefinitionNotFound):
            return self.emitter.emit_error(
                f"Function definition for '{outcome.name}' not found",
                terminating=True,
            )

        if isinstance(outcome, ExecutionFailed):
            return self.emitter.emit_error(
                f"Could not execute {outcome.name}: {outcome.detail}",
                location=outcome.location,
                stack_trace=outcome.stack_trace,
                terminating=True,
            )

        raise TypeError(f"Unknown outcome: {outcome!r}")


def build_worker_engine(
    transport: Transport,
    config: WorkerConfig | None = None,
) -> WorkerEngine:
    """Wire a WorkerEngine to a transport.

    The transport is both the line source and the event sink. Operations
    named by config.preload are installed before the loop starts.

    Args:
        transport: Line source and event sink.
        config: Worker configuration (defaults if omitted).

    Returns:
        A ready-to-run engine.
    """
    from relayscript.config import WorkerConfig

    config = config or WorkerConfig()
    emitter = EventEmitter(sink=transport, threshold=config.log_severity)
    dispatcher = ExecutionDispatcher(emitter=emitter)

    for ref in config.preload:
        for operation in load_operations(ref):
            dispatcher.registry.install(operation.name, operation)
            logger.debug("operation_preloaded: name=%s module=%s", operation.name, ref)

    return WorkerEngine(
        source=transport,
        emitter=emitter,
        dispatcher=dispatcher,
        terminator=config.terminator,
    )
