"""Operations - named, invocable units of behavior.

An operation is a callable taking one argument mapping. Operations come
from two places:

- Source text sent by the host in a command's "def" field, compiled by
  compile_operation() into a function sharing the engine's namespace.
- Python modules preloaded at startup with load_operations().

SECURITY BOUNDARY:
- compile_operation executes host-supplied source with full interpreter
  privileges. The channel is assumed to be a trusted, co-located pipe.
"""

from __future__ import annotations

import ast
import asyncio
import importlib
import importlib.util
import inspect
import textwrap
import traceback
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Name the wrapped function is bound to while compiling
_FUNCTION_NAME = "__operation__"


class OperationArguments(dict[str, Any]):
    """Argument mapping passed to operations.

    Reading a missing key yields None instead of raising KeyError, so an
    operation invoked with fewer arguments than it reads decides for itself
    how to treat the gap.
    """

    def __missing__(self, key: str) -> None:
        return None


class OperationCompileError(Exception):
    """Raised when operation source text does not compile.

    Attributes:
        name: Operation name.
        lineno: Line of the error, relative to the supplied source.
        filename: Pseudo filename of the operation source.
    """

    def __init__(self, name: str, message: str, lineno: int | None = None) -> None:
        self.name = name
        self.lineno = lineno
        self.filename = operation_filename(name)
        super().__init__(message)

    @property
    def location(self) -> str:
        """Location of the error as "<file>:<line>", or "" when unknown."""
        if self.lineno is None:
            return ""
        return f"{self.filename}:{self.lineno}"


@dataclass
class Operation:
    """A named operation.

    Attributes:
        name: Registry key.
        fn: Sync or async callable accepting the argument mapping.
        source: Source text the operation was compiled from (None if preloaded).
        filename: File the operation's code reports in tracebacks.
        line_offset: Lines added in front of the source when compiling.
    """

    name: str
    fn: Callable[[dict[str, Any]], Any]
    source: str | None = None
    filename: str | None = None
    line_offset: int = 0

    async def invoke(self, args: dict[str, Any] | None = None) -> Any:
        """Call the operation with an argument mapping.

        Handles both sync and async callables.

        Args:
            args: Argument mapping (missing keys read as None).

        Returns:
            The operation's return value.
        """
        result = self.fn(OperationArguments(args or {}))
        if asyncio.iscoroutine(result):
            result = await result
        return result

    def failure_location(self, exc: BaseException) -> str:
        """Locate the innermost traceback frame of exc inside this operation.

        Falls back to the innermost frame overall when none of the frames
        belong to the operation's own code.

        Returns:
            "<file>:<line>" with lines relative to the operation source,
            or "" when the exception carries no traceback.
        """
        frames = traceback.extract_tb(exc.__traceback__)
        own = [f for f in frames if self.filename and f.filename == self.filename]
        if own:
            frame = own[-1]
            return f"{frame.filename}:{(frame.lineno or 0) - self.line_offset}"
        if frames:
            frame = frames[-1]
            return f"{frame.filename}:{frame.lineno}"
        return ""

    def __repr__(self) -> str:
        origin = "source" if self.source is not None else "preloaded"
        return f"Operation(name={self.name!r}, origin={origin})"


def operation_filename(name: str) -> str:
    """Pseudo filename used for compiled operation source."""
    return f"<operation:{name}>"


def compile_operation(name: str, source: str, namespace: dict[str, Any]) -> Operation:
    """Compile operation source text into an Operation.

    The source is a function body with the argument mapping bound to
    ``args``. When the last statement is a bare expression its value is
    returned, so ``"hello"`` is a complete operation. The body is always
    compiled as a coroutine function, so it may use ``await`` anywhere.

    Args:
        name: Operation name.
        source: Function body source.
        namespace: Globals the compiled function runs with.

    Returns:
        The compiled operation.

    Raises:
        OperationCompileError: If the source is empty or not valid Python.
    """
    filename = operation_filename(name)
    body = textwrap.dedent(source).strip("\n")
    if not body.strip():
        raise OperationCompileError(name, "SyntaxError: operation source is empty")

    # Always a coroutine function; invoke() awaits it
    wrapped = f"async def {_FUNCTION_NAME}(args):\n{textwrap.indent(body, '    ')}\n"

    try:
        with warnings.catch_warnings():
            # Warnings would otherwise be printed on the error stream
            warnings.simplefilter("ignore", SyntaxWarning)
            tree = ast.parse(wrapped, filename=filename)
            function = tree.body[0]
            assert isinstance(function, ast.AsyncFunctionDef)
            last = function.body[-1]
            if isinstance(last, ast.Expr):
                function.body[-1] = ast.copy_location(ast.Return(value=last.value), last)
            # Some errors ('break' outside loop, bad nonlocal) are only found here
            code = compile(tree, filename, "exec")
    except SyntaxError as e:
        lineno = e.lineno - 1 if e.lineno else None
        raise OperationCompileError(name, f"SyntaxError: {e.msg}", lineno) from e
    except ValueError as e:
        raise OperationCompileError(name, f"SyntaxError: {e}") from e

    scope: dict[str, Any] = {}
    exec(code, namespace, scope)

    return Operation(
        name=name,
        fn=scope[_FUNCTION_NAME],
        source=source,
        filename=filename,
        line_offset=1,
    )


def load_operations(ref: str) -> list[Operation]:
    """Load every public function of a module as an operation.

    Args:
        ref: Dotted module name, or path to a .py file.

    Returns:
        One Operation per public function defined in the module itself
        (imported names are skipped), named after the function.

    Raises:
        ValueError: If a file path is given and does not exist.
        ImportError: If the module cannot be imported.
    """
    module = _import_module(ref)
    operations = []
    for attr_name, value in vars(module).items():
        if attr_name.startswith("_") or not inspect.isfunction(value):
            continue
        if value.__module__ != module.__name__:
            continue
        operations.append(
            Operation(name=attr_name, fn=value, filename=value.__code__.co_filename)
        )
    return operations


def _import_module(ref: str) -> Any:
    if not ref.endswith(".py"):
        return importlib.import_module(ref)

    path = Path(ref)
    if not path.is_file():
        raise ValueError(f"Operations file not found: {ref}")

    spec = importlib.util.spec_from_file_location(f"relayscript_preload_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load operations from {ref}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
