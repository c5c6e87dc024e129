"""Apply incoming protocol messages to the client session."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, assert_never

from grel_client.protocol import (
    PING,
    ROSTER_QUERY,
    Err,
    Info,
    Join,
    Leave,
    List,
    Logout,
    Message,
    Name,
    Ping,
    Query,
    Text,
    Unrecognized,
)

if TYPE_CHECKING:  # pragma: no cover
    from grel_client.session import Session

logger = logging.getLogger(__name__)


def _compact(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def dispatch(session: "Session", message: Message) -> bool:
    """Apply ``message`` to ``session``; returns True when the screen needs a repaint.

    Joins, leaves and renames also queue a roster query so the side panel
    stays current. Unsupported messages are reported in the scrollback.
    """

    if isinstance(message, Ping):
        session.send(PING)
        return False

    if isinstance(message, Text):
        for line in message.lines:
            session.notice(f"{message.who}: {line}")
        return True

    if isinstance(message, Join):
        if message.who == session.name:
            session.room = message.what
        session.notice(f"* {message.who} joins {message.what}.")
        session.send(ROSTER_QUERY)
        return True

    if isinstance(message, Name):
        if message.who == session.name:
            session.name = message.new
        session.notice(f'* "{message.who}" is now known as "{message.new}".')
        session.send(ROSTER_QUERY)
        return True

    if isinstance(message, Leave):
        session.notice(f"* {message.who} leaves: {message.message}")
        session.send(ROSTER_QUERY)
        return True

    if isinstance(message, List):
        if message.what == "roster":
            session.roster = list(message.items)
        else:
            session.notice(f"* List: {message.what}")
            session.notice(", ".join(message.items))
        return True

    if isinstance(message, Info):
        session.notice(f"* {message.text}")
        return True

    if isinstance(message, Err):
        session.notice(f"# ERROR: {message.text}")
        return True

    if isinstance(message, Logout):
        session.notice(f"* You have been logged out: {message.message}")
        session.stop(message.message)
        return True

    if isinstance(message, (Query, Unrecognized)):
        logger.debug("unsupported message: %r", message)
        session.notice(f"# Unsupported message: {_compact(message.to_wire())}")
        return True

    assert_never(message)
