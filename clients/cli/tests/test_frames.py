import json
import unittest

from grel_client.frames import FrameDecoder, extract_frames
from grel_client.protocol import FrameError, Info, Ping, Text, encode_value

STREAM_VALUES = [
    "Ping",
    {"Info": "hi"},
    {"Text": {"who": "zoë", "lines": ["naïve ✓", "two"]}},
    {"List": {"what": "roster", "items": ["a", "b", "c"]}},
    "Ping",
    {"Logout": "bye"},
]


def _stream() -> bytes:
    return b"".join(encode_value(value) for value in STREAM_VALUES)


def _feed(chunks) -> list:
    buffer = bytearray()
    frames = []
    for chunk in chunks:
        buffer += chunk
        frames.extend(extract_frames(buffer))
    return frames


class FrameDecoderTests(unittest.TestCase):
    def test_concatenated_values_in_one_chunk(self):
        buffer = bytearray(b'"Ping"{"Info":"hi"}')
        self.assertEqual(extract_frames(buffer), ["Ping", {"Info": "hi"}])
        self.assertEqual(buffer, bytearray())

    def test_object_split_across_two_reads(self):
        data = encode_value({"Info": "hello there"})
        buffer = bytearray(data[:7])
        self.assertEqual(extract_frames(buffer), [])
        self.assertEqual(bytes(buffer), data[:7])

        buffer += data[7:]
        self.assertEqual(extract_frames(buffer), [{"Info": "hello there"}])
        self.assertEqual(buffer, bytearray())

    def test_trailing_partial_value_is_retained(self):
        buffer = bytearray(b'"Ping"{"Err":"no')
        self.assertEqual(extract_frames(buffer), ["Ping"])
        self.assertEqual(bytes(buffer), b'{"Err":"no')

    def test_decoding_is_insensitive_to_chunk_boundaries(self):
        data = _stream()
        expected = _feed([data])
        self.assertEqual(expected, STREAM_VALUES)
        for cut in range(len(data) + 1):
            with self.subTest(cut=cut):
                self.assertEqual(_feed([data[:cut], data[cut:]]), expected)

    def test_byte_at_a_time_delivery(self):
        data = _stream()
        self.assertEqual(_feed(data[i : i + 1] for i in range(len(data))), STREAM_VALUES)

    def test_three_way_splits(self):
        data = _stream()
        for first in range(0, len(data), 7):
            for second in range(first, len(data), 11):
                with self.subTest(first=first, second=second):
                    chunks = [data[:first], data[first:second], data[second:]]
                    self.assertEqual(_feed(chunks), STREAM_VALUES)

    def test_pretty_printed_values_with_whitespace_between(self):
        data = b"".join(json.dumps(value, indent=2).encode("utf-8") + b"\n" for value in STREAM_VALUES)
        self.assertEqual(_feed([data]), STREAM_VALUES)

    def test_frame_decoder_parses_messages_and_counts(self):
        decoder = FrameDecoder()
        buffer = bytearray(b'"Ping"{"Info":"hi"}{"Text":{"who":"a","lines":["x"]}}{"Inf')
        messages = decoder.messages(buffer)
        self.assertEqual(messages, [Ping(), Info("hi"), Text(who="a", lines=["x"])])
        self.assertEqual(decoder.frames_decoded, 3)
        self.assertEqual(bytes(buffer), b'{"Inf')

    def test_malformed_value_raises_instead_of_waiting(self):
        buffer = bytearray(b'{"Info":oops}')
        with self.assertRaises(FrameError):
            extract_frames(buffer)
        buffer += b'{"Info":"after"}"Ping"'
        with self.assertRaises(FrameError):
            extract_frames(buffer)

    def test_invalid_utf8_raises(self):
        with self.assertRaises(FrameError):
            extract_frames(bytearray(b'{"Info":"a\xff b"}{"Info":"after"}'))

    def test_values_before_a_bad_frame_are_returned_first(self):
        buffer = bytearray(b'"Ping"{"Info":"ok"}{"Info":oops}"Ping"')
        self.assertEqual(extract_frames(buffer), ["Ping", {"Info": "ok"}])
        self.assertEqual(bytes(buffer), b'{"Info":oops}"Ping"')
        with self.assertRaises(FrameError):
            extract_frames(buffer)

    def test_bad_byte_after_a_complete_value(self):
        buffer = bytearray(b'{"Info":"ok"}\xff')
        self.assertEqual(extract_frames(buffer), [{"Info": "ok"}])
        with self.assertRaises(FrameError):
            extract_frames(buffer)


if __name__ == "__main__":
    unittest.main()
