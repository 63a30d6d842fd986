from __future__ import annotations

import logging
from dataclasses import dataclass

XOR_KEY_OFFSET = 0x10
# Plain-text trailer (diode readings) starts at this marker; everything before
# it is obfuscated.
XOR_MARKER = bytes([0x76, 0x36, 0x76, 0x36, 0x35, 0x35, 0x35, 0x76, 0x36, 0x76, 0x36])

logger = logging.getLogger("pcbdecode.xor")


@dataclass(frozen=True)
class XorInfo:
    key: int
    length: int
    marker_offset: int | None

    @property
    def applied(self) -> bool:
        return self.key != 0


def find_marker(data: bytes | bytearray, marker: bytes = XOR_MARKER) -> int | None:
    idx = data.find(marker)
    return None if idx == -1 else idx


def xor_range(data: bytearray, key: int, length: int) -> None:
    """XOR ``data[0:length]`` with ``key`` in place."""

    if not key or length <= 0:
        return
    length = min(length, len(data))
    table = bytes(b ^ key for b in range(256))
    data[:length] = data[:length].translate(table)


def deobfuscate(data: bytearray) -> XorInfo:
    """
    Undo the single-byte XOR obfuscation in place.

    The key is the byte at 0x10; a zero key means the file is stored in the
    clear. The obfuscated range runs from the start of the file up to the
    first occurrence of ``XOR_MARKER`` (searched in the still-obfuscated
    bytes), or to the end of the file when the marker is absent.
    """

    if len(data) <= XOR_KEY_OFFSET:
        return XorInfo(key=0, length=0, marker_offset=None)
    key = data[XOR_KEY_OFFSET]
    if key == 0:
        return XorInfo(key=0, length=0, marker_offset=None)
    marker_offset = find_marker(data)
    length = len(data) if marker_offset is None else marker_offset
    xor_range(data, key, length)
    logger.info("Applied XOR de-obfuscation with key 0x%02X over %d bytes", key, length)
    return XorInfo(key=key, length=length, marker_offset=marker_offset)
