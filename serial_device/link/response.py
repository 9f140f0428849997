"""
Response accumulation and normalization.

Responses have no length prefix and no terminator; the read loop collects
whatever arrives until the line goes quiet and hands the bytes to
``normalize_response``.
"""

from __future__ import annotations


class ResponseBuffer:
    """Bounded byte buffer. Chunks that would reach ``capacity`` are dropped whole."""

    def __init__(self, capacity: int = 255):
        self.capacity = capacity
        self.truncated = False
        self._data = bytearray()

    def append(self, chunk: bytes) -> bool:
        if len(self._data) + len(chunk) < self.capacity:
            self._data += chunk
            return True
        self.truncated = True
        return False

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)


def normalize_response(data: bytes, encoding: str = "ascii") -> str:
    """
    Turn raw response bytes into the text handed to callers.

    The payload ends at the first NUL. Every newline becomes a space, so a
    reply the device split over several lines reads as one, then runs of
    spaces are stripped from both ends. Other whitespace (CR, tabs) is kept.
    """
    payload = data.split(b"\0", 1)[0]
    text = payload.decode(encoding, errors="replace")
    return text.replace("\n", " ").strip(" ")
