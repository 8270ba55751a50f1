"""Core - pure types and logic with no I/O.

Classes:
    Severity: Ordered log severities.
    WorkerState: Command loop lifecycle states.
    Operation: Named, invocable unit of behavior.
    OperationRegistry: Name to operation mapping.

Functions:
    compile_operation: Turn operation source text into an Operation.
    load_operations: Load a module's public functions as operations.
"""

from relayscript.core.operations import (
    Operation,
    OperationArguments,
    OperationCompileError,
    compile_operation,
    load_operations,
)
from relayscript.core.registry import OperationRegistry
from relayscript.core.types import Severity, WorkerState

__all__ = [
    "Operation",
    "OperationArguments",
    "OperationCompileError",
    "OperationRegistry",
    "Severity",
    "WorkerState",
    "compile_operation",
    "load_operations",
]
