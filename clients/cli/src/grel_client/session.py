"""Session state and the single-threaded event loop that drives it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from grel_client.commands import DEFAULT_CMD_CHAR, LocalNotice, parse_input
from grel_client.dispatcher import dispatch
from grel_client.editor import InputLine
from grel_client.frames import FrameDecoder
from grel_client.layout import Key
from grel_client.protocol import FrameError, Logout, Message, encode_message
from grel_client.scrollback import DEFAULT_MAX_LINES, Scrollback
from grel_client.transport import ConnectionClosed, Transport, TransportError

logger = logging.getLogger(__name__)


class ScreenLike(Protocol):
    def check_resize(self) -> bool: ...

    def read_keys(self) -> List[Key]: ...

    def repaint(self, session: "Session") -> None: ...

    def paint_input(self, session: "Session") -> None: ...


@dataclass
class Session:
    """Everything one connection's loop iterations read and mutate."""

    name: str
    transport: Transport
    cmd_char: str = DEFAULT_CMD_CHAR
    read_timeout: float = 0.05
    room: str = ""
    max_scrollback: int = DEFAULT_MAX_LINES
    scrollback: Scrollback = field(init=False)
    editor: InputLine = field(default_factory=InputLine)
    roster: List[str] = field(default_factory=list)
    decoder: FrameDecoder = field(default_factory=FrameDecoder)
    running: bool = True
    quitting: bool = False
    exit_message: str = ""
    fatal_error: Optional[str] = None

    def __post_init__(self) -> None:
        self.scrollback = Scrollback(self.max_scrollback)

    def send(self, message: Message) -> None:
        self.transport.enqueue(encode_message(message))

    def notice(self, text: str) -> None:
        self.scrollback.add_line(text)

    def stop(self, message: str = "") -> None:
        self.running = False
        self.exit_message = message

    def status_text(self) -> str:
        where = f" in {self.room}" if self.room else ""
        addr = self.transport.local_address
        return f"{self.name}{where} @ {addr}" if addr else f"{self.name}{where}"

    def submit(self, line: str) -> bool:
        """Handle one committed input line; True if the scrollback changed."""

        outcome = parse_input(line, self.cmd_char)
        if outcome is None:
            return False
        if isinstance(outcome, LocalNotice):
            self.notice(outcome.text)
            return True
        if isinstance(outcome, Logout):
            self.quitting = True
        self.send(outcome)
        return False

    def _fail(self, error: Exception) -> None:
        if isinstance(error, ConnectionClosed) and self.quitting:
            self.stop(self.exit_message or "Disconnected.")
            return
        logger.warning("session ended by connection error: %s", error)
        self.notice(f"# Connection error: {error}")
        self.fatal_error = str(error)
        self.running = False

    def tick(self, screen: ScreenLike) -> None:
        """Run one loop iteration: keys, flush, bounded read, dispatch, repaint."""

        if not self.running:
            return
        redraw = screen.check_resize()

        keys = screen.read_keys()
        for key, char in keys:
            if key == "RESIZE":
                redraw = screen.check_resize() or redraw
                continue
            line = self.editor.handle_key(key, char)
            if line is not None and self.submit(line):
                redraw = True

        error: Optional[Exception] = None
        try:
            self.transport.flush()
            self.transport.poll(self.read_timeout)
        except TransportError as exc:
            error = exc

        try:
            messages = self.decoder.messages(self.transport.incoming)
        except FrameError as exc:
            messages = []
            if error is None:
                error = exc

        for message in messages:
            if dispatch(self, message):
                redraw = True
            if not self.running:
                break

        if error is not None and self.running:
            self._fail(error)
            redraw = True

        if redraw:
            screen.repaint(self)
        elif keys:
            screen.paint_input(self)


def run_session(session: Session, screen: ScreenLike) -> Session:
    screen.repaint(session)
    while session.running:
        session.tick(screen)
    logger.debug("session over after %d frames", session.decoder.frames_decoded)
    return session
