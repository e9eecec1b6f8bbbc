# cansat_extractor.py
# Delimiter based frame extractor for the inbound telemetry stream.
#
# The container sends ASCII telemetry wrapped as  /* ... */  over a lossy radio.
# Chunks arrive with arbitrary boundaries, so bytes are buffered until a full
# start/end pair is available.
#
# - frames are emitted in the order their end markers appear
# - a start marker without its end keeps the buffer from that marker on
# - no start marker at all keeps only a possible partial marker tail
# - buffer larger than `cap` after extraction is dropped (resync on next "/*")

from __future__ import annotations
from typing import Callable, List, Optional

from cansat_constants import FRAME_START, FRAME_END, INBOUND_BUFFER_CAP


class InboundExtractor:
    def __init__(
        self,
        on_frame: Optional[Callable[[bytes], None]] = None,
        *,
        start: bytes = FRAME_START,
        end: bytes = FRAME_END,
        cap: int = INBOUND_BUFFER_CAP,
    ):
        if not start or not end:
            raise ValueError("start/end markers must be non-empty")
        if cap <= 0:
            raise ValueError("cap must be > 0")
        self._on_frame = on_frame
        self._start = bytes(start)
        self._end = bytes(end)
        self._cap = int(cap)
        self._buf = bytearray()

    @property
    def buffered(self) -> int:
        return len(self._buf)

    def clear(self) -> None:
        self._buf.clear()

    def feed(self, chunk: bytes) -> List[bytes]:
        """Append `chunk` and return every frame it completed."""
        if chunk:
            self._buf += chunk

        frames: List[bytes] = []
        consumed = 0
        while True:
            s = self._buf.find(self._start, consumed)
            if s < 0:
                # keep a possible partial start marker at the tail
                consumed = max(consumed, len(self._buf) - (len(self._start) - 1))
                break

            body = s + len(self._start)
            e = self._buf.find(self._end, body)
            if e < 0:
                # wait for the rest of this frame
                consumed = s
                break

            frames.append(bytes(self._buf[body:e]))
            consumed = e + len(self._end)

        if consumed > 0:
            del self._buf[:consumed]

        if len(self._buf) > self._cap:
            self._buf.clear()

        if self._on_frame is not None:
            for frame in frames:
                self._on_frame(frame)
        return frames
