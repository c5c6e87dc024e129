"""Turn committed input lines into outgoing messages or local notices."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from grel_client.protocol import ROSTER_QUERY, Join, Logout, Message, Name, Query, Text

DEFAULT_CMD_CHAR = ";"


@dataclass(frozen=True)
class LocalNotice:
    """Text shown only in the local scrollback; nothing goes to the server."""

    text: str


Outcome = Union[Message, LocalNotice]


def _command_pattern(cmd_char: str) -> re.Pattern[str]:
    return re.compile(rf"^\s*{re.escape(cmd_char)}(\S+)\s*(.*?)\s*$", re.DOTALL)


def help_text(cmd_char: str = DEFAULT_CMD_CHAR) -> str:
    return (
        f"* Commands: {cmd_char}quit [message], {cmd_char}name NEW, {cmd_char}join ROOM, "
        f"{cmd_char}who [prefix], {cmd_char}roster, {cmd_char}help"
    )


def parse_input(line: str, cmd_char: str = DEFAULT_CMD_CHAR) -> Optional[Outcome]:
    """Parse one committed input line.

    Returns ``None`` for blank input, a ``LocalNotice`` for local-only output
    (help, unknown commands) and a protocol message for everything else.
    """

    if not line.strip():
        return None

    match = _command_pattern(cmd_char).match(line)
    if match is None:
        return Text(who="", lines=[line])

    cmd = match.group(1).lower()
    arg = match.group(2)
    if cmd == "quit":
        return Logout(arg)
    if cmd == "name":
        return Name(who="", new=arg)
    if cmd == "join":
        return Join(who="", what=arg)
    if cmd == "who":
        return Query(what="who", arg=arg)
    if cmd == "roster":
        return ROSTER_QUERY
    if cmd == "help":
        return LocalNotice(help_text(cmd_char))
    return LocalNotice(f"# Unrecognized command: {cmd_char}{cmd}")
