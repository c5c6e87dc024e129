"""Pull complete protocol values out of the incoming byte buffer."""

from __future__ import annotations

import logging
from typing import Any, List

from grel_client.protocol import FrameError, Message, decode_prefix, parse_message

logger = logging.getLogger(__name__)


def extract_frames(buffer: bytearray) -> List[Any]:
    """Decode every complete value at the front of ``buffer``.

    Consumed bytes are removed in place; an incomplete trailing value is left
    untouched for the next read. Malformed bytes raise :class:`FrameError`
    once every value in front of them has been returned, so a call that
    yields frames never loses them to a later bad frame.
    """

    frames: List[Any] = []
    while buffer:
        try:
            decoded = decode_prefix(buffer)
        except FrameError:
            if frames:
                break
            raise
        if decoded is None:
            break
        value, consumed = decoded
        del buffer[:consumed]
        frames.append(value)
    return frames


class FrameDecoder:
    def __init__(self) -> None:
        self.frames_decoded = 0

    def messages(self, buffer: bytearray) -> List[Message]:
        values = extract_frames(buffer)
        self.frames_decoded += len(values)
        if values:
            logger.debug("decoded %d frames, %d bytes left over", len(values), len(buffer))
        return [parse_message(value) for value in values]
