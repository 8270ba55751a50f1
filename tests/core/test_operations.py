"""Tests for operation compilation and preloading."""

from __future__ import annotations

import textwrap
import warnings

import pytest

from relayscript.core.operations import (
    Operation,
    OperationArguments,
    OperationCompileError,
    compile_operation,
    load_operations,
)


class TestOperationArguments:
    """Tests for the argument mapping."""

    def test_missing_key_reads_as_none(self) -> None:
        """Missing keys yield None instead of KeyError."""
        args = OperationArguments({"1": "bye"})

        assert args["1"] == "bye"
        assert args["2"] is None
        assert "2" not in args

    def test_get_default_still_applies(self) -> None:
        """dict.get defaults are unaffected."""
        assert OperationArguments().get("x", "") == ""


class TestCompileOperation:
    """Tests for compile_operation."""

    @pytest.mark.asyncio
    async def test_expression_is_returned(self) -> None:
        """A single expression is a complete operation."""
        operation = compile_operation("f", "'hello'", {})

        assert await operation.invoke({}) == "hello"

    @pytest.mark.asyncio
    async def test_explicit_return(self) -> None:
        """Bodies may return explicitly."""
        source = "if args['n'] > 1:\n    return 'many'\nreturn 'one'"
        operation = compile_operation("count", source, {})

        assert await operation.invoke({"n": 5}) == "many"
        assert await operation.invoke({"n": 1}) == "one"

    @pytest.mark.asyncio
    async def test_last_expression_is_returned(self) -> None:
        """The value of a trailing bare expression is returned."""
        operation = compile_operation("double", "x = args['a'] * 2\nx + 1", {})

        assert await operation.invoke({"a": 3}) == 7

    @pytest.mark.asyncio
    async def test_statement_body_returns_none(self) -> None:
        """A body ending in a statement returns None."""
        operation = compile_operation("noop", "x = 1", {})

        assert await operation.invoke({}) is None

    @pytest.mark.asyncio
    async def test_missing_arguments_are_lenient(self) -> None:
        """Operations decide how to treat missing arguments."""
        source = "(args['1'] or '') + ' ' + (args['2'] or '')"
        operation = compile_operation("f", source, {})

        assert await operation.invoke({"1": "hello", "2": "there!"}) == "hello there!"
        assert await operation.invoke({"1": "bye"}) == "bye "

    @pytest.mark.asyncio
    async def test_indented_source_is_dedented(self) -> None:
        """Uniformly indented source compiles."""
        source = textwrap.indent("total = sum(args['values'])\nreturn total", "        ")
        operation = compile_operation("sum", source, {})

        assert await operation.invoke({"values": [1, 2, 3]}) == 6

    @pytest.mark.asyncio
    async def test_await_compiles_coroutine(self) -> None:
        """Source using await runs as a coroutine."""
        source = "import asyncio\nawait asyncio.sleep(0)\nargs['v']"
        operation = compile_operation("wait", source, {})

        assert await operation.invoke({"v": 42}) == 42

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source",
        [
            "import asyncio\nawait(asyncio.sleep(0))\n1",
            "import asyncio\nawait\tasyncio.sleep(0)\n1",
            "import asyncio\nx = [await asyncio.sleep(0, 1)][0]\nx",
        ],
    )
    async def test_any_await_spelling_compiles(self, source) -> None:
        """await is accepted however it is spelled."""
        operation = compile_operation("wait", source, {})

        assert await operation.invoke({}) == 1

    @pytest.mark.asyncio
    async def test_namespace_is_global_scope(self) -> None:
        """Compiled functions see and update the shared namespace."""
        namespace = {"helper": lambda: 5}
        setup = compile_operation("setup", "global counter\ncounter = helper()", namespace)
        reader = compile_operation("read", "counter", namespace)

        await setup.invoke()

        assert namespace["counter"] == 5
        assert await reader.invoke() == 5

    def test_compiled_metadata(self) -> None:
        """Compiled operations keep their source and pseudo filename."""
        operation = compile_operation("f", "1", {})

        assert operation.name == "f"
        assert operation.source == "1"
        assert operation.filename == "<operation:f>"
        assert operation.line_offset == 1

    def test_syntax_error_raises(self) -> None:
        """Invalid source raises OperationCompileError with a relative line."""
        with pytest.raises(OperationCompileError) as excinfo:
            compile_operation("bad", "x = 1\nx = = 2", {})

        assert excinfo.value.name == "bad"
        assert excinfo.value.lineno == 2
        assert excinfo.value.location == "<operation:bad>:2"
        assert str(excinfo.value).startswith("SyntaxError: ")

    def test_empty_source_raises(self) -> None:
        """Whitespace-only source is rejected."""
        with pytest.raises(OperationCompileError, match="empty"):
            compile_operation("blank", "  \n ", {})

    @pytest.mark.parametrize(
        ("source", "message", "lineno"),
        [
            ("break", "'break' outside loop", 1),
            ("y = 1\nnonlocal x", "no binding for nonlocal 'x' found", 2),
            ("def inner():\n    await g()\ninner()", "'await' outside async function", 2),
        ],
    )
    def test_compile_stage_errors_raise(self, source, message, lineno) -> None:
        """Errors found only when compiling the parsed tree are compile errors too."""
        with pytest.raises(OperationCompileError) as excinfo:
            compile_operation("late", source, {})

        assert str(excinfo.value) == f"SyntaxError: {message}"
        assert excinfo.value.lineno == lineno

    def test_syntax_warnings_are_silenced(self) -> None:
        """Compiling never emits warnings, which would reach the error stream."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            compile_operation("w", "x = 1\nx is 1", {})

        assert not [w for w in caught if issubclass(w.category, SyntaxWarning)]


class TestFailureLocation:
    """Tests for Operation.failure_location."""

    @pytest.mark.asyncio
    async def test_line_is_relative_to_source(self) -> None:
        """The reported line counts from the first line of the source."""
        operation = compile_operation("f", "x = 1\nraise ValueError('boom')", {})

        with pytest.raises(ValueError) as excinfo:
            await operation.invoke({})

        assert operation.failure_location(excinfo.value) == "<operation:f>:2"

    @pytest.mark.asyncio
    async def test_falls_back_to_innermost_frame(self) -> None:
        """Failures outside the operation's code report the innermost frame."""

        def fail(args):
            raise RuntimeError("nope")

        operation = Operation(name="g", fn=fail, filename="<elsewhere>")

        with pytest.raises(RuntimeError) as excinfo:
            await operation.invoke({})

        location = operation.failure_location(excinfo.value)
        assert "test_operations.py:" in location

    def test_no_traceback(self) -> None:
        """An exception that was never raised has no location."""
        operation = Operation(name="h", fn=lambda args: None)

        assert operation.failure_location(ValueError("x")) == ""


class TestLoadOperations:
    """Tests for load_operations."""

    @pytest.fixture
    def operations_file(self, tmp_path):
        path = tmp_path / "sample_ops.py"
        path.write_text(
            textwrap.dedent(
                """
                import os
                from json import dumps

                PREFIX = "hi "

                def greet(args):
                    return PREFIX + args["name"]

                async def shout(args):
                    return args["text"].upper()

                def _private(args):
                    return None
                """
            )
        )
        return path

    def test_loads_public_functions(self, operations_file) -> None:
        """Only public functions defined in the module are loaded."""
        operations = load_operations(str(operations_file))

        assert sorted(op.name for op in operations) == ["greet", "shout"]
        assert all(op.source is None for op in operations)

    @pytest.mark.asyncio
    async def test_loaded_operations_invoke(self, operations_file) -> None:
        """Loaded sync and async functions are invocable."""
        operations = {op.name: op for op in load_operations(str(operations_file))}

        assert await operations["greet"].invoke({"name": "Ada"}) == "hi Ada"
        assert await operations["shout"].invoke({"text": "hey"}) == "HEY"

    def test_missing_file_raises(self, tmp_path) -> None:
        """A missing .py path raises ValueError."""
        with pytest.raises(ValueError, match="not found"):
            load_operations(str(tmp_path / "absent.py"))

    def test_missing_module_raises(self) -> None:
        """An unknown dotted module raises ImportError."""
        with pytest.raises(ImportError):
            load_operations("relayscript_no_such_module")
