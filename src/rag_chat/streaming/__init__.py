from .framing import (
    Frame,
    FrameDecoder,
    decode_stream,
    encode_delta,
    encode_sources,
)

__all__ = [
    "Frame",
    "FrameDecoder",
    "decode_stream",
    "encode_delta",
    "encode_sources",
]
