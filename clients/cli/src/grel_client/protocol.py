"""Wire codec and message variants for the grel chat protocol."""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

_DECODER = json.JSONDecoder()
_WHITESPACE = b" \t\r\n"
# Bare JSON literals a truncated read can cut short.
_LITERALS = ("true", "false", "null", "NaN", "Infinity", "-Infinity")


class FrameError(ValueError):
    """The incoming bytes can never become a JSON value, whatever follows."""


def encode_value(value: Any) -> bytes:
    """Encode a JSON-ready value as compact UTF-8 bytes."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _partial_utf8(tail: bytes) -> bool:
    if len(tail) > 3:
        return False
    try:
        codecs.getincrementaldecoder("utf-8")().decode(tail, final=False)
    except UnicodeDecodeError:
        return False
    return True


def _runs_off_the_end(exc: json.JSONDecodeError) -> bool:
    rest = exc.doc[exc.pos :]
    if not rest.strip():
        return True
    if exc.msg.startswith("Unterminated string"):
        return True
    if exc.msg.startswith("Invalid \\uXXXX escape") and len(rest) <= 6:
        return True
    return any(literal.startswith(rest) and literal != rest for literal in _LITERALS)


def decode_prefix(data: bytes | bytearray) -> Optional[Tuple[Any, int]]:
    """Decode the first complete JSON value in ``data``.

    Returns ``(value, consumed)`` where ``consumed`` counts the bytes of the
    value plus any whitespace in front of it, or ``None`` when the buffer
    does not yet hold a whole value. Raises :class:`FrameError` when the
    front of the buffer is malformed JSON or invalid UTF-8.
    """

    start = 0
    while start < len(data) and data[start] in _WHITESPACE:
        start += 1
    if start == len(data):
        return None

    raw = bytes(data[start:])
    bad_byte: Optional[int] = None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        text = raw[: exc.start].decode("utf-8")
        # A multibyte sequence cut off by the read boundary is not an error.
        if not _partial_utf8(raw[exc.start :]):
            bad_byte = start + exc.start
    try:
        value, end = _DECODER.raw_decode(text)
    except json.JSONDecodeError as exc:
        if bad_byte is not None:
            raise FrameError(f"invalid UTF-8 at byte {bad_byte}") from None
        if _runs_off_the_end(exc):
            return None
        offset = start + len(text[: exc.pos].encode("utf-8"))
        raise FrameError(f"malformed JSON at byte {offset}: {exc.msg}") from exc
    return value, start + len(text[:end].encode("utf-8"))


@dataclass(frozen=True)
class Ping:
    def to_wire(self) -> Any:
        return "Ping"


@dataclass(frozen=True)
class Text:
    who: str
    lines: list[str] = field(default_factory=list)

    def to_wire(self) -> Any:
        return {"Text": {"who": self.who, "lines": list(self.lines)}}


@dataclass(frozen=True)
class Join:
    who: str
    what: str

    def to_wire(self) -> Any:
        return {"Join": {"who": self.who, "what": self.what}}


@dataclass(frozen=True)
class Name:
    who: str
    new: str

    def to_wire(self) -> Any:
        return {"Name": {"who": self.who, "new": self.new}}


@dataclass(frozen=True)
class Leave:
    who: str
    message: str

    def to_wire(self) -> Any:
        return {"Leave": {"who": self.who, "message": self.message}}


@dataclass(frozen=True)
class List:
    what: str
    items: list[str] = field(default_factory=list)

    def to_wire(self) -> Any:
        return {"List": {"what": self.what, "items": list(self.items)}}


@dataclass(frozen=True)
class Query:
    what: str
    arg: str

    def to_wire(self) -> Any:
        return {"Query": {"what": self.what, "arg": self.arg}}


@dataclass(frozen=True)
class Info:
    text: str

    def to_wire(self) -> Any:
        return {"Info": self.text}


@dataclass(frozen=True)
class Err:
    text: str

    def to_wire(self) -> Any:
        return {"Err": self.text}


@dataclass(frozen=True)
class Logout:
    message: str

    def to_wire(self) -> Any:
        return {"Logout": self.message}


@dataclass(frozen=True)
class Unrecognized:
    """A decoded value that matches none of the known message kinds."""

    value: Any

    def to_wire(self) -> Any:
        return self.value


Message = Union[Ping, Text, Join, Name, Leave, List, Query, Info, Err, Logout, Unrecognized]

PING = Ping()
ROSTER_QUERY = Query(what="roster", arg="")


def encode_message(message: Message) -> bytes:
    return encode_value(message.to_wire())


def _str_field(body: dict, key: str, default: Optional[str] = None) -> str:
    value = body.get(key, default)
    if not isinstance(value, str):
        raise ValueError(key)
    return value


def _str_list(body: dict, key: str) -> list[str]:
    value = body.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(key)
    return list(value)


def parse_message(value: Any) -> Message:
    """Map a decoded JSON value onto its message variant.

    Values with an unknown tag or a malformed body come back as
    ``Unrecognized`` rather than raising.
    """

    if value == "Ping":
        return PING
    if not isinstance(value, dict) or len(value) != 1:
        return Unrecognized(value)

    (tag, body), = value.items()
    try:
        if tag in {"Info", "Err", "Logout"}:
            if not isinstance(body, str):
                return Unrecognized(value)
            if tag == "Info":
                return Info(body)
            if tag == "Err":
                return Err(body)
            return Logout(body)
        if not isinstance(body, dict):
            return Unrecognized(value)
        if tag == "Text":
            return Text(who=_str_field(body, "who", ""), lines=_str_list(body, "lines"))
        if tag == "Join":
            return Join(who=_str_field(body, "who", ""), what=_str_field(body, "what", ""))
        if tag == "Name":
            return Name(who=_str_field(body, "who", ""), new=_str_field(body, "new"))
        if tag == "Leave":
            return Leave(who=_str_field(body, "who", ""), message=_str_field(body, "message"))
        if tag == "List":
            return List(what=_str_field(body, "what"), items=_str_list(body, "items"))
        if tag == "Query":
            return Query(what=_str_field(body, "what"), arg=_str_field(body, "arg", ""))
    except ValueError:
        return Unrecognized(value)
    return Unrecognized(value)
