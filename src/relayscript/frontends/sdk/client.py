"""Python SDK client - drives a worker subprocess from the host side."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any

from relayscript.server.protocols import (
    EntityEvent,
    ErrorEvent,
    Event,
    LogEvent,
    ResultEvent,
    event_from_dict,
)

logger = logging.getLogger(__name__)


class WorkerError(RuntimeError):
    """The worker reported an error and exited.

    Attributes:
        event: The error-stream event, if the worker wrote one.
        exit_code: The worker's exit status.
    """

    def __init__(
        self,
        message: str,
        event: ErrorEvent | None = None,
        exit_code: int | None = None,
    ):
        super().__init__(message)
        self.event = event
        self.exit_code = exit_code


@dataclass
class WorkerClient:
    """High-level client for a relayscript worker process.

    Each call() writes one command and waits for its result. Log and entity
    events written while the command runs are collected on the client.

    Example:
        >>> async with await WorkerClient.spawn() as client:
        ...     await client.call("greet", {"name": "Ada"}, definition="'hi ' + args['name']")
        ...     'hi Ada'
        ...     await client.call("greet", {"name": "Bob"})
        ...     'hi Bob'
    """

    _process: asyncio.subprocess.Process
    terminator: str = "done"
    logs: list[LogEvent] = field(default_factory=list)
    entities: list[EntityEvent] = field(default_factory=list)
    errors: list[ErrorEvent] = field(default_factory=list)
    _stderr_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @classmethod
    async def spawn(
        cls,
        *worker_args: str,
        python: str = sys.executable,
        terminator: str = "done",
    ) -> WorkerClient:
        """Start a worker subprocess.

        Args:
            *worker_args: Extra options for "relayscript run"
                (e.g. "--log-severity", "debug").
            python: Interpreter to run the worker with.
            terminator: Terminator sentinel the worker is configured with.

        Returns:
            Connected client.
        """
        args = [python, "-m", "relayscript", "run", *worker_args]
        if terminator != "done":
            args.extend(["--terminator", terminator])

        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        logger.debug("worker_spawned: pid=%s", process.pid)

        client = cls(_process=process, terminator=terminator)
        client._stderr_task = asyncio.create_task(client._read_errors())
        return client

    async def call(
        self,
        name: str,
        args: dict[str, Any] | None = None,
        definition: str | None = None,
    ) -> Any:
        """Run an operation on the worker.

        Args:
            name: Operation name.
            args: Argument mapping.
            definition: Operation source, installed (or replaced) before running.

        Returns:
            The operation's result data.

        Raises:
            WorkerError: If the worker exits before returning a result.
        """
        command: dict[str, Any] = {"cmd": name}
        if definition is not None:
            command["def"] = definition
        if args:
            command["args"] = args
        await self._send(command)

        while True:
            event = await self._read_event()
            if event is None:
                raise await self._worker_failure(f"Worker exited while running '{name}'")
            if isinstance(event, ResultEvent):
                return event.data
            if isinstance(event, EntityEvent):
                self.entities.append(event)
            elif isinstance(event, LogEvent):
                self.logs.append(event)

    async def close(self) -> int:
        """Send the terminator and wait for the worker to exit.

        Returns:
            The worker's exit status.
        """
        if self._process.returncode is None and self._process.stdin is not None:
            try:
                await self._send({"cmd": self.terminator})
                self._process.stdin.close()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("worker_stdin_closed: pid=%s", self._process.pid)

        # Drain remaining output (the Finished log) so the worker never blocks on a full pipe
        while (event := await self._read_event()) is not None:
            if isinstance(event, LogEvent):
                self.logs.append(event)

        exit_code = await self._process.wait()
        if self._stderr_task is not None:
            await self._stderr_task
        return exit_code

    async def __aenter__(self) -> WorkerClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _send(self, command: dict[str, Any]) -> None:
        assert self._process.stdin is not None
        line = json.dumps(command, ensure_ascii=False) + "\n"
        self._process.stdin.write(line.encode("utf-8"))
        await self._process.stdin.drain()

    async def _read_event(self) -> Event | None:
        """Read the next primary-stream event, or None at EOF."""
        assert self._process.stdout is not None
        while True:
            line = await self._process.stdout.readline()
            if not line:
                return None
            text = line.decode("utf-8").strip()
            if not text:
                continue
            try:
                return event_from_dict(json.loads(text))
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning("worker_output_unparsed: line=%r error=%s", text, e)

    async def _read_errors(self) -> None:
        """Collect error-stream events until the worker closes stderr."""
        assert self._process.stderr is not None
        async for line in self._process.stderr:
            text = line.decode("utf-8").strip()
            if not text:
                continue
            try:
                event = event_from_dict(json.loads(text))
            except (json.JSONDecodeError, ValueError):
                logger.warning("worker_stderr_unparsed: line=%r", text)
                continue
            if isinstance(event, ErrorEvent):
                self.errors.append(event)

    async def _worker_failure(self, fallback: str) -> WorkerError:
        exit_code = await self._process.wait()
        if self._stderr_task is not None:
            await self._stderr_task
        if self.errors:
            last = self.errors[-1]
            return WorkerError(last.message, event=last, exit_code=exit_code)
        return WorkerError(f"{fallback} (exit code {exit_code})", exit_code=exit_code)
