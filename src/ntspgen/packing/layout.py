"""Low-level layout helpers (bounded byte writer, name packing)."""

from __future__ import annotations
from .errors import layout_error

__all__ = ["ByteWriter", "encode_name", "pack_name_string"]


def encode_name(name: str) -> bytes:
    """UTF-8 bytes of ``name``; undecodable filename bytes pass through raw."""
    return name.encode("utf-8", "surrogateescape")


def pack_name_string(name: str) -> bytes:
    """Return the encoded ``name`` with a single trailing null."""
    return encode_name(name) + b"\x00"


class ByteWriter:
    """Append-only buffer with a fixed capacity.

    The cursor only moves forward; any write that would cross ``capacity``
    raises instead of growing the buffer.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._buf = bytearray()

    @property
    def offset(self) -> int:
        return len(self._buf)

    def write(self, data: bytes) -> int:
        start = len(self._buf)
        if start + len(data) > self.capacity:
            raise layout_error(
                "Write past header bound",
                {"offset": start, "size": len(data), "capacity": self.capacity},
            )
        self._buf.extend(data)
        return start

    def expect_offset(self, expected: int, label: str) -> None:
        if len(self._buf) != expected:
            raise layout_error(
                f"{label} starts at {len(self._buf)}, plan expects {expected}"
            )

    def getvalue(self) -> bytes:
        """Return the buffer; it must be filled exactly to capacity."""
        if len(self._buf) != self.capacity:
            raise layout_error(
                f"Header underfilled: wrote {len(self._buf)} of {self.capacity}"
            )
        return bytes(self._buf)
