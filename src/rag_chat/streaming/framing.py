"""
Chat wire protocol.

A response body is a sequence of newline-terminated frames, each a
one-character tag and a colon:

    d:{"sources":[{"content":"...","metadata":{...}}]}\n     exactly one, first
    0:"<delta>"\n                                             one per text delta

In a text frame every `"` of the delta is written as `\\"`; nothing else
is escaped. There is no end frame: the end of the transport is the end
of the response.

The encoder is byte-compatible with existing consumers of this format.
The decoder also copes with deltas that contain raw newlines: a line
that does not open a new frame continues the current text frame. A
delta containing a newline immediately followed by `0:"` or `d:` is
indistinguishable from a frame boundary; that is a limit of the format.

Usage:
    body = encode_sources(matches) + b"".join(encode_delta(d) for d in deltas)
    sources, deltas = decode_stream(body)
"""

import codecs
import json
from typing import Iterable, NamedTuple, Optional, Sequence, Union

from pydantic import ValidationError

from rag_chat.errors import FramingError
from rag_chat.models.chat import Source, SourcesPayload
from rag_chat.models.document import Match

SOURCES_TAG = "d"
TEXT_TAG = "0"

_SOURCES_PREFIX = SOURCES_TAG + ":"
_TEXT_PREFIX = TEXT_TAG + ':"'


class Frame(NamedTuple):
    tag: str
    value: Union[SourcesPayload, str]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def escape_delta(text: str) -> str:
    return text.replace('"', '\\"')


def unescape_delta(text: str) -> str:
    return text.replace('\\"', '"')


def encode_sources(sources: Sequence[Union[Source, Match]]) -> bytes:
    """
    Encode the citation frame.

    Matches are reduced to content + metadata; ids and scores are not
    part of the wire format. JSON is compact with non-ASCII kept as is.
    """
    payload = SourcesPayload(sources=[
        s if isinstance(s, Source) else Source.from_match(s)
        for s in sources
    ])
    body = json.dumps(
        payload.model_dump(mode="json"),
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return f"{_SOURCES_PREFIX}{body}\n".encode("utf-8")


def encode_delta(text: str) -> bytes:
    """Encode one text delta as a `0:` frame."""
    return f'{_TEXT_PREFIX}{escape_delta(text)}"\n'.encode("utf-8")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _opens_frame(line: str) -> bool:
    return line.startswith(_SOURCES_PREFIX) or line.startswith(_TEXT_PREFIX)


def _text_frame_closed(raw: str) -> bool:
    """
    True if a text frame certainly ends here.

    The closing quote is the only unescaped quote in a frame. A frame
    ending in backslash-quote is ambiguous (escaped quote followed by
    a newline, or a delta ending in a backslash), so it stays open
    until the next frame or the end of the stream decides.
    """
    return len(raw) >= len(_TEXT_PREFIX) + 1 and raw.endswith('"') and not raw.endswith('\\"')


def parse_frame(raw: str) -> Frame:
    """Parse one complete frame (without its trailing newline)."""
    if raw.startswith(_SOURCES_PREFIX):
        try:
            payload = SourcesPayload.model_validate(json.loads(raw[len(_SOURCES_PREFIX):]))
        except (ValueError, ValidationError) as exc:
            raise FramingError("Malformed sources frame", details={"error": str(exc)}) from exc
        return Frame(SOURCES_TAG, payload)

    if raw.startswith(_TEXT_PREFIX) and len(raw) >= len(_TEXT_PREFIX) + 1 and raw.endswith('"'):
        return Frame(TEXT_TAG, unescape_delta(raw[len(_TEXT_PREFIX):-1]))

    raise FramingError("Malformed frame", details={"frame": raw[:80]})


class FrameDecoder:
    """
    Incremental demultiplexer.

    feed() accepts arbitrary byte chunks (frames and even UTF-8
    sequences may be split across them) and returns the frames that are
    complete so far. close() must be called at end of stream to flush a
    trailing frame.
    """

    def __init__(self):
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._pending: Optional[str] = None

    def feed(self, data: bytes) -> list[Frame]:
        self._buffer += self._utf8.decode(data)
        frames: list[Frame] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            frames.extend(self._push_line(line))
        return frames

    def close(self) -> list[Frame]:
        self._buffer += self._utf8.decode(b"", final=True)
        frames: list[Frame] = []
        if self._buffer:
            # Stream ended without the final newline.
            frames.extend(self._push_line(self._buffer))
            self._buffer = ""
        if self._pending is not None:
            frames.append(parse_frame(self._pending))
            self._pending = None
        return frames

    def _push_line(self, line: str) -> list[Frame]:
        frames: list[Frame] = []

        if _opens_frame(line):
            if self._pending is not None:
                frames.append(parse_frame(self._pending))
            self._pending = line
        elif self._pending is not None and self._pending.startswith(_TEXT_PREFIX):
            self._pending += "\n" + line
        else:
            raise FramingError("Unexpected data outside a frame", details={"line": line[:80]})

        if self._pending.startswith(_SOURCES_PREFIX) or _text_frame_closed(self._pending):
            frames.append(parse_frame(self._pending))
            self._pending = None
        return frames


def decode_stream(
    data: Union[bytes, Iterable[bytes]],
) -> tuple[Optional[SourcesPayload], list[str]]:
    """
    Split a whole response body into its sources and text deltas.

    Raises:
        FramingError: On malformed frames, or if the sources frame is
            missing from the front or repeated.
    """
    chunks = [data] if isinstance(data, (bytes, bytearray)) else data

    decoder = FrameDecoder()
    frames: list[Frame] = []
    for chunk in chunks:
        frames.extend(decoder.feed(bytes(chunk)))
    frames.extend(decoder.close())

    if not frames:
        return None, []

    first, rest = frames[0], frames[1:]
    if first.tag != SOURCES_TAG:
        raise FramingError("Stream does not start with a sources frame")
    if any(frame.tag == SOURCES_TAG for frame in rest):
        raise FramingError("Stream has more than one sources frame")

    return first.value, [frame.value for frame in rest]
