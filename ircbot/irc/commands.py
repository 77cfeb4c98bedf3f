"""Outbound record construction and CTCP framing helpers."""

from __future__ import annotations

from ..constants import CTCP_DELIMITER, RECORD_TERMINATOR

_FORBIDDEN = ("\r", "\n", "\0")


def build_record(verb: str, *args: object) -> str:
    """Join ``verb`` and ``args`` with single spaces and append CRLF.

    A trailing free-text argument must already carry its ``:`` marker.
    Arguments containing CR, LF or NUL are rejected so that one call can
    never produce more than one record.
    """
    if not verb or " " in verb:
        raise ValueError(f"invalid verb: {verb!r}")
    parts = [verb, *(str(arg) for arg in args if arg is not None)]
    for part in parts:
        if any(ch in part for ch in _FORBIDDEN):
            raise ValueError(f"record argument contains a line break: {part!r}")
    return " ".join(parts) + RECORD_TERMINATOR


def trailing(text: str) -> str:
    return f":{text}"


def ctcp(command: str, argument: str | None = None) -> str:
    body = f"{command} {argument}" if argument else command
    return f"{CTCP_DELIMITER}{body}{CTCP_DELIMITER}"


def parse_ctcp(message: str | None) -> tuple[str, str] | None:
    """Split a single-frame CTCP request into ``(command, argument)``."""
    if not message or len(message) < 2:
        return None
    if not message.startswith(CTCP_DELIMITER):
        return None
    body = message[1:]
    if body.endswith(CTCP_DELIMITER):
        body = body[:-1]
    if not body:
        return None
    command, _, argument = body.partition(" ")
    return command.upper(), argument
