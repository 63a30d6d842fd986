from __future__ import annotations

import struct

from .errors import OutOfBounds

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


class ByteCursor:
    """
    Sequential little-endian reader over an immutable byte buffer.

    Every read is bounds checked against the buffer and raises ``OutOfBounds``
    instead of returning short data. ``skip`` is allowed to move past the end;
    the next read will then fail, which is how the block scanners notice a
    block size that overshoots the payload.
    """

    __slots__ = ("_view", "offset")

    def __init__(self, data: bytes | bytearray | memoryview, offset: int = 0) -> None:
        self._view = memoryview(data).toreadonly()
        self.offset = offset

    def __len__(self) -> int:
        return len(self._view)

    @property
    def remaining(self) -> int:
        return max(0, len(self._view) - self.offset)

    def at_end(self) -> bool:
        return self.offset >= len(self._view)

    def _unpack(self, fmt: struct.Struct, advance: bool) -> int:
        if self.offset < 0 or self.offset + fmt.size > len(self._view):
            raise OutOfBounds(self.offset, fmt.size, len(self._view))
        (value,) = fmt.unpack_from(self._view, self.offset)
        if advance:
            self.offset += fmt.size
        return value

    def read_u8(self, advance: bool = True) -> int:
        return self._unpack(_U8, advance)

    def read_u16(self, advance: bool = True) -> int:
        return self._unpack(_U16, advance)

    def read_u32(self, advance: bool = True) -> int:
        return self._unpack(_U32, advance)

    def read_i32(self, advance: bool = True) -> int:
        return self._unpack(_I32, advance)

    def read_bytes(self, length: int) -> bytes:
        if length < 0 or self.offset < 0 or self.offset + length > len(self._view):
            raise OutOfBounds(self.offset, length, len(self._view))
        chunk = self._view[self.offset : self.offset + length].tobytes()
        self.offset += length
        return chunk

    def read_string(self, length: int) -> str:
        # Labels come from arbitrary tools; undecodable bytes are replaced.
        return self.read_bytes(length).decode("utf-8", errors="replace")

    def read_prefixed_string(self) -> tuple[int, str]:
        length = self.read_u32()
        return length, self.read_string(length)

    def skip(self, count: int) -> None:
        self.offset += count

    def truncated(self, length: int) -> ByteCursor:
        """Return a cursor over the first ``length`` bytes, keeping the offset."""

        limit = max(0, min(length, len(self._view)))
        return ByteCursor(self._view[:limit], self.offset)
