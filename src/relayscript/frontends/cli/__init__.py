"""CLI frontend for relayscript.

Commands:
    relayscript run      Run a worker over stdin/stdout/stderr
    relayscript replay   Feed a JSONL command file to an in-process worker

Example:
    $ echo '{"cmd": "f", "def": "1 + 1"}' | relayscript run
    $ relayscript replay commands.jsonl
"""

from relayscript.frontends.cli.main import main

__all__ = ["main"]
