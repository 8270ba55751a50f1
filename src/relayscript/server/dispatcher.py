"""ExecutionDispatcher - installs, resolves and invokes operations.

SECURITY BOUNDARY:
- Operation source from the host is compiled and run in-process
- All compiled operations share one namespace per dispatcher
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from relayscript.core.operations import OperationCompileError, compile_operation
from relayscript.core.registry import OperationRegistry
from relayscript.server.protocols import (
    Command,
    DefinitionNotFound,
    ExecutionFailed,
    Outcome,
    Result,
    encode_value,
)

if TYPE_CHECKING:
    from relayscript.server.emitter import EventEmitter

logger = logging.getLogger(__name__)


@dataclass
class ExecutionDispatcher:
    """Runs decoded commands against the operation registry.

    State: registry (owned operations) and _namespace (globals shared by
    compiled operations, seeded with log/return_entity helpers).

    Example:
        >>> dispatcher = ExecutionDispatcher(emitter=emitter)
        >>> outcome = await dispatcher.dispatch(
        ...     Command(operation_name="f", logic_text="'hello'")
        ... )
        >>> outcome
        Result(value='hello')
    """

    emitter: EventEmitter
    registry: OperationRegistry = field(default_factory=OperationRegistry)
    _namespace: dict[str, Any] | None = field(default=None, repr=False)

    @property
    def namespace(self) -> dict[str, Any]:
        """Globals shared by compiled operations (created on first use)."""
        if self._namespace is None:
            self._namespace = self._create_default_namespace()
        return self._namespace

    async def dispatch(self, command: Command) -> Outcome:
        """Install (if source is given), resolve and invoke an operation.

        Args:
            command: Decoded, non-terminator command.

        Returns:
            Result, DefinitionNotFound or ExecutionFailed.
        """
        name = command.operation_name

        if command.logic_text is not None:
            try:
                operation = compile_operation(name, command.logic_text, self.namespace)
            except OperationCompileError as e:
                logger.debug("operation_compile_failed: name=%s error=%s", name, e)
                return ExecutionFailed(
                    name=name,
                    detail=str(e),
                    location=e.location,
                )
            replaced = self.registry.has_operation(name)
            self.registry.install(name, operation)
            logger.debug("operation_installed: name=%s replaced=%s", name, replaced)

        operation = self.registry.resolve(name)
        if operation is None:
            return DefinitionNotFound(name=name)

        start_mono = time.monotonic()
        try:
            value = await operation.invoke(command.arguments)
        except Exception as e:
            logger.debug("operation_failed: name=%s error=%s", name, e, exc_info=True)
            return ExecutionFailed(
                name=name,
                detail=f"{type(e).__name__}: {e}",
                location=operation.failure_location(e),
                stack_trace=traceback.format_exc(),
            )

        try:
            encode_value(value)
        except Exception as e:
            logger.debug("result_unencodable: name=%s error=%s", name, e)
            return ExecutionFailed(
                name=name,
                detail=f"{type(e).__name__}: result is not valid JSON: {e}",
                stack_trace=traceback.format_exc(),
            )

        duration = time.monotonic() - start_mono
        logger.debug("operation_complete: name=%s duration_s=%.3f", name, duration)
        return Result(value=value)

    def _create_default_namespace(self) -> dict[str, Any]:
        """Create the globals compiled operations run with.

        Returns:
            Namespace with helpers bound to this dispatcher's emitter:
            log(message, severity="info", timestamp=None, stack_trace="")
            and return_entity(data).
        """
        return {
            "__name__": "relayscript.operations",
            "log": self.emitter.emit_log,
            "return_entity": self.emitter.emit_entity,
        }
