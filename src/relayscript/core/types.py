"""Pure data types for relayscript.core.

These are simple enums with no behavior coupling.
"""

from __future__ import annotations

from enum import Enum, auto


class Severity(Enum):
    """Log event severities, ordered debug < info < warn < error."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Position in the severity ordering."""
        return _SEVERITY_ORDER.index(self)

    def at_least(self, threshold: Severity) -> bool:
        """Whether this severity passes a minimum-severity threshold."""
        return self.rank >= threshold.rank

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Parse a severity name.

        Accepts the wire names plus "warning" as an alias for "warn",
        case-insensitively.

        Raises:
            ValueError: If the name is not a known severity.
        """
        if isinstance(value, Severity):
            return value
        name = str(value).strip().lower()
        if name == "warning":
            name = "warn"
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {choices})") from None


_SEVERITY_ORDER = (Severity.DEBUG, Severity.INFO, Severity.WARN, Severity.ERROR)


class WorkerState(Enum):
    """Command loop lifecycle states."""

    STARTING = auto()  # Emitting the start event
    LISTENING = auto()  # Waiting for the next input line
    EXECUTING = auto()  # Dispatching one command
    STOPPING = auto()  # Terminator or EOF seen
    STOPPED = auto()  # Normal return
    FATAL_EXIT = auto()  # Fatal error reported, loop abandoned
