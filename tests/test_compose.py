"""Tests for composition helpers."""

from __future__ import annotations

import io

import pytest

from relayscript import create_standalone, run_stdio_worker
from relayscript.config import WorkerConfig
from relayscript.server.protocols import ResultEvent
from relayscript.transport import InProcessTransport, StdioTransport


class TestCreateStandalone:
    @pytest.mark.asyncio
    async def test_runs_fed_commands(self) -> None:
        engine, transport = create_standalone()
        transport.feed('{"cmd": "f", "def": "1 + 1"}')
        transport.close()

        exit_code = await engine.run()

        assert isinstance(transport, InProcessTransport)
        assert exit_code == 0
        assert ResultEvent(data=2) in transport.events

    def test_uses_config(self) -> None:
        engine, _ = create_standalone(WorkerConfig(terminator="quit"))

        assert engine.terminator == "quit"


class TestRunStdioWorker:
    @pytest.mark.asyncio
    async def test_exit_code_returned(self) -> None:
        transport = StdioTransport(
            stdin=io.StringIO('{"cmd":"missing"}\n'),
            stdout=io.StringIO(),
            stderr=io.StringIO(),
        )

        exit_code = await run_stdio_worker(transport=transport)

        assert exit_code == 1
        assert "Function definition for 'missing' not found" in transport.stderr.getvalue()
