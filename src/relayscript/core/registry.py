"""OperationRegistry - Name to operation mapping for one command loop.

Operations are installed lazily: a command may carry an operation's source
once and then be replayed by name. Entries are never removed; a later
install under the same name replaces the stored operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relayscript.core.operations import Operation


@dataclass
class OperationRegistry:
    """Registry of named operations, scoped to one engine.

    Example:
        >>> registry = OperationRegistry()
        >>> registry.install("greet", greet_operation)
        >>> registry.resolve("greet") is greet_operation
        True
        >>> registry.resolve("missing") is None
        True
    """

    _operations: dict[str, Operation] = field(default_factory=dict)

    def install(self, name: str, operation: Operation) -> None:
        """Insert or overwrite the operation stored under name.

        Args:
            name: Operation name (registry key).
            operation: Operation to store.
        """
        self._operations[name] = operation

    def resolve(self, name: str) -> Operation | None:
        """Look up an operation by name.

        Args:
            name: Operation name.

        Returns:
            The most recently installed operation, or None if absent.
        """
        return self._operations.get(name)

    def has_operation(self, name: str) -> bool:
        """Check if an operation is installed under name."""
        return name in self._operations

    def list_operation_names(self) -> list[str]:
        """List installed operation names in install order."""
        return list(self._operations.keys())

    def operation_count(self) -> int:
        """Get the number of installed operations."""
        return len(self._operations)
