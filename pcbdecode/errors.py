from __future__ import annotations


class PCBDecodeError(Exception):
    """Base class for everything the decoder raises on malformed input."""


class OutOfBounds(PCBDecodeError, IndexError):
    def __init__(self, offset: int, width: int, length: int) -> None:
        super().__init__(
            f"read of {width} byte(s) at 0x{offset:X} runs past the end of a {length}-byte buffer"
        )
        self.offset = offset
        self.width = width
        self.length = length


class HeaderError(PCBDecodeError, ValueError):
    pass


class CipherInputError(PCBDecodeError, ValueError):
    pass


class SubParseFailure(PCBDecodeError):
    pass
