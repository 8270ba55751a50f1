"""Command decoder - one input line to a Command."""

from __future__ import annotations

import json

from relayscript.server.protocols import Command, DecodeFailure

DEFAULT_TERMINATOR = "done"


def decode_command(line: str, terminator: str = DEFAULT_TERMINATOR) -> Command | DecodeFailure:
    """Decode one line of the command channel.

    Args:
        line: Raw input line (a trailing line terminator is ignored).
        terminator: "cmd" value that ends the loop.

    Returns:
        The decoded Command, or a DecodeFailure carrying the raw line.
    """
    raw = line.rstrip("\r\n")

    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        return DecodeFailure(raw_line=raw, reason=str(e))

    if not isinstance(message, dict):
        return DecodeFailure(raw_line=raw, reason="command must be a JSON object")

    name = message.get("cmd")
    if not isinstance(name, str):
        return DecodeFailure(raw_line=raw, reason="cmd is required and must be a string")

    if name == terminator:
        return Command(operation_name=name, is_terminator=True)

    logic_text = message.get("def")
    if logic_text is not None and not isinstance(logic_text, str):
        return DecodeFailure(raw_line=raw, reason="def must be a string")

    arguments = message.get("args")
    if arguments is None:
        arguments = {}
    elif not isinstance(arguments, dict):
        return DecodeFailure(raw_line=raw, reason="args must be a JSON object")

    return Command(operation_name=name, logic_text=logic_text, arguments=arguments)
