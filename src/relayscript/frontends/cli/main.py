"""CLI entry point."""

from __future__ import annotations

import asyncio
import io
import sys

import rich_click as click

from relayscript.config import load_worker_config
from relayscript.core.logging_config import configure_logging
from relayscript.core.types import Severity
from relayscript.frontends.cli.output import error_exit, print_events

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.ERRORS_EPILOGUE = ""
click.rich_click.MAX_WIDTH = 100

SEVERITY_CHOICES = [s.value for s in Severity]


def worker_options(fn):
    """Options shared by commands that build a worker."""
    fn = click.option(
        "--config",
        "config_file",
        default=None,
        type=click.Path(dir_okay=False),
        help="YAML config file (or RELAYSCRIPT_CONFIG)",
    )(fn)
    fn = click.option(
        "--preload",
        "-p",
        multiple=True,
        help="Module or .py file whose public functions are preinstalled as operations",
    )(fn)
    fn = click.option(
        "--terminator",
        default=None,
        help="Command name that stops the worker (default: done)",
    )(fn)
    fn = click.option(
        "--log-severity",
        "-s",
        default=None,
        type=click.Choice(SEVERITY_CHOICES, case_sensitive=False),
        help="Minimum severity of log events (default: info)",
    )(fn)
    return fn


@click.group()
@click.version_option(package_name="relayscript")
def cli():
    """relayscript - Line-delimited JSON operation worker.

    A host drives the worker over stdin/stdout: each input line names an
    operation, optionally with its Python source and arguments, and the
    worker answers with result, log and error events.

    **Commands:**

        relayscript run       Serve commands over stdin/stdout/stderr

        relayscript replay    Run a JSONL command file and show the events
    """
    pass


@cli.command()
@worker_options
@click.option("--log-file", default=None, help="Diagnostic log file (or RELAYSCRIPT_LOG_FILE)")
@click.option(
    "--log-level",
    default=None,
    help="Diagnostic log level, e.g. DEBUG (or RELAYSCRIPT_LOG_LEVEL)",
)
def run(
    log_severity: str | None,
    terminator: str | None,
    preload: tuple[str, ...],
    config_file: str | None,
    log_file: str | None,
    log_level: str | None,
):
    """Serve commands over stdin/stdout/stderr.

    Reads one JSON command per line from stdin. Results and logs are
    written to stdout, errors to stderr. Exits 0 after the terminator or
    end of input, 1 after a fatal error.

    **Examples:**

        echo '{"cmd": "f", "def": "1 + 1"}' | relayscript run

        relayscript run --log-severity debug --preload myproject.operations
    """
    from relayscript.server import EXIT_FAILURE, EventEmitter, build_worker_engine
    from relayscript.transport import StdioTransport

    configure_logging(level=log_level, file_path=log_file)
    _use_utf8_streams()

    transport = StdioTransport()
    try:
        config = load_worker_config(
            log_severity=log_severity,
            terminator=terminator,
            preload=preload,
            config_file=config_file,
        )
        engine = build_worker_engine(transport, config)
    except (ValueError, ImportError) as e:
        EventEmitter(sink=transport).emit_error(f"Could not start worker: {e}", terminating=True)
        sys.exit(EXIT_FAILURE)

    try:
        exit_code = asyncio.run(engine.run())
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


@cli.command()
@click.argument("file", type=click.File("r", encoding="utf-8"))
@worker_options
@click.option("--json", "-j", "json_output", is_flag=True, help="Print raw wire events")
def replay(
    file: io.TextIOBase,
    log_severity: str | None,
    terminator: str | None,
    preload: tuple[str, ...],
    config_file: str | None,
    json_output: bool,
):
    """Run a JSONL command file against an in-process worker.

    Blank lines in FILE are skipped. The events are printed once the
    worker stops; the exit code matches what "relayscript run" would
    return for the same input.

    **Examples:**

        relayscript replay commands.jsonl

        relayscript replay commands.jsonl --json

        cat commands.jsonl | relayscript replay -
    """
    from relayscript.compose import create_standalone

    try:
        config = load_worker_config(
            log_severity=log_severity,
            terminator=terminator,
            preload=preload,
            config_file=config_file,
        )
        engine, transport = create_standalone(config)
    except (ValueError, ImportError) as e:
        error_exit(str(e))

    transport.feed_lines(line for line in file.read().splitlines() if line.strip())
    transport.close()

    exit_code = asyncio.run(engine.run())
    print_events(transport.events, json_output=json_output)
    sys.exit(exit_code)


def _use_utf8_streams() -> None:
    """Switch the process's own standard streams to UTF-8.

    Undecodable input bytes become U+FFFD, so a bad input line is reported
    as malformed instead of stopping the worker. Unencodable output
    characters (lone surrogates) are written as "?".
    """
    for name in ("stdin", "stdout", "stderr"):
        stream = getattr(sys, name)
        if stream is getattr(sys, f"__{name}__") and isinstance(stream, io.TextIOWrapper):
            stream.reconfigure(encoding="utf-8", errors="replace")


def main() -> None:
    """Main entry point for the CLI."""
    cli()
