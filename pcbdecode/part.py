"""
Parser for the decrypted payload of a DATA (0x07) block.

Layout (little endian, offsets relative to the payload start):

    0x00  u32  part_size          bytes that follow this field
    0x04  u32  reserved
    0x08  u32  part_x
    0x0C  u32  part_y
    0x10  u32  part_rotation
    0x14  u8   visibility
    0x15  u8   reserved
    0x16  u32  part_group_name size, followed by the name

After the header comes a run of tagged sub-blocks (0x01 arc anchor, 0x05 line,
0x06 label, 0x09 pin array). Only the first ``4 + part_size`` bytes belong to
the part; anything after that is cipher padding or unrelated data.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .cursor import ByteCursor
from .entities import PartArc, PartHeader, PartLabel, PartLine, PartPayload, Pin, PinArray, SubBlock
from .errors import OutOfBounds, SubParseFailure

PART_ARC_FIXED_BYTES = 12
PART_LINE_PADDING = 4
PART_LABEL_PADDING = 4
PIN_SKIP_BYTES = 23
PIN_PADDING_BYTES = 13

logger = logging.getLogger("pcbdecode.part")


def expected_pin_count(t07_block_size: int, pins_offset: int, block_size: int) -> int:
    """
    Number of pin records the pin loop will attempt for a pin array whose
    records start at ``pins_offset``.

    Mirrors the loop bound ``offset + block_size <= t07_block_size`` with
    records spaced ``block_size + PIN_PADDING_BYTES`` apart.
    """

    stride = block_size + PIN_PADDING_BYTES
    if stride <= 0 or pins_offset + block_size > t07_block_size:
        return 0
    return (t07_block_size - pins_offset - block_size) // stride + 1


class PartPayloadParser:
    """
    One-shot parser for a single decrypted part payload.

    ``t07_block_size`` is the length of the encrypted DATA block. Pin arrays
    bound their record loop against it rather than against the plaintext,
    since the plaintext length drifts with cipher padding.
    """

    def __init__(self, payload: bytes, t07_block_size: int) -> None:
        self._cursor = ByteCursor(payload)
        self.t07_block_size = t07_block_size
        self.pending_pin_block_size = 0

    def parse(self) -> PartPayload:
        try:
            header = self._parse_header()
        except OutOfBounds as exc:
            raise SubParseFailure(f"part header truncated: {exc}") from exc

        self._cursor = self._cursor.truncated(4 + header.part_size)
        sub_blocks: List[SubBlock] = []
        stop_reason: Optional[str] = None
        while self._cursor.offset + self.pending_pin_block_size < len(self._cursor):
            try:
                block, stop_reason = self._parse_sub_block(sub_blocks)
            except OutOfBounds as exc:
                stop_reason = f"truncated sub-block: {exc}"
                break
            if block is None:
                break
            sub_blocks.append(block)
            if stop_reason is not None:
                break

        return PartPayload(
            header=header,
            sub_blocks=tuple(sub_blocks),
            complete=stop_reason is None,
            stop_reason=stop_reason,
        )

    def _parse_header(self) -> PartHeader:
        cur = self._cursor
        part_size = cur.read_u32()
        cur.skip(4)
        part_x = cur.read_u32()
        part_y = cur.read_u32()
        part_rotation = cur.read_u32()
        visibility = cur.read_u8()
        cur.skip(1)
        name_size, name = cur.read_prefixed_string()
        return PartHeader(
            part_size=part_size,
            part_x=part_x,
            part_y=part_y,
            part_rotation=part_rotation,
            visibility=visibility,
            part_group_name_size=name_size,
            part_group_name=name,
        )

    def _parse_sub_block(self, accumulated: List[SubBlock]) -> Tuple[Optional[SubBlock], Optional[str]]:
        tag_offset = self._cursor.offset
        tag = self._cursor.read_u8()
        if tag == PartArc.TAG:
            return self._parse_arc(), None
        if tag == PartLine.TAG:
            return self._parse_line(), None
        if tag == PartLabel.TAG:
            return self._parse_label(), None
        if tag == PinArray.TAG:
            return self._parse_pin_array()
        # Unknown tags end the part; whatever follows is not understood yet.
        logger.warning(
            "Unknown part sub-block 0x%02X at 0x%X after %d sub-block(s)", tag, tag_offset, len(accumulated)
        )
        return None, None

    def _parse_arc(self) -> PartArc:
        cur = self._cursor
        block_size = cur.read_u32()
        layer = cur.read_u32()
        x1 = cur.read_u32()
        y1 = cur.read_u32()
        padding = block_size - PART_ARC_FIXED_BYTES
        if padding < 0:
            logger.debug("Sub-block 0x01 declares %d bytes, less than its fixed fields", block_size)
            padding = 0
        cur.skip(padding)
        return PartArc(block_size=block_size, layer=layer, x1=x1, y1=y1, padding_size=padding)

    def _parse_line(self) -> PartLine:
        cur = self._cursor
        block_size = cur.read_u32()
        layer, x1, y1, x2, y2, scale = (cur.read_u32() for _ in range(6))
        cur.skip(PART_LINE_PADDING)
        return PartLine(block_size=block_size, layer=layer, x1=x1, y1=y1, x2=x2, y2=y2, scale=scale)

    def _parse_label(self) -> PartLabel:
        cur = self._cursor
        block_size = cur.read_u32()
        layer, x, y, font_size, font_scale = (cur.read_u32() for _ in range(5))
        cur.skip(PART_LABEL_PADDING)
        visibility = cur.read_u8()
        cur.skip(1)
        label_size, label = cur.read_prefixed_string()
        return PartLabel(
            block_size=block_size,
            layer=layer,
            x=x,
            y=y,
            font_size=font_size,
            font_scale=font_scale,
            visibility=visibility,
            label_size=label_size,
            label=label,
        )

    def _parse_pin_array(self) -> Tuple[PinArray, Optional[str]]:
        cur = self._cursor
        block_size = cur.read_u32()
        self.pending_pin_block_size = block_size
        pins: List[Pin] = []
        stop_reason: Optional[str] = None
        while cur.offset + block_size <= self.t07_block_size:
            try:
                pins.append(self._parse_pin())
            except OutOfBounds as exc:
                # Keep the pins already read; the array ran past the part.
                stop_reason = f"truncated pin record {len(pins)}: {exc}"
                break
            cur.skip(PIN_PADDING_BYTES)
        return PinArray(block_size=block_size, pins=tuple(pins)), stop_reason

    def _parse_pin(self) -> Pin:
        cur = self._cursor
        start = cur.offset
        un1 = cur.read_u32()
        x = cur.read_u32()
        y = cur.read_u32()
        un2 = cur.read_u32()
        pin_rotation = cur.read_u32()
        name_size, name = cur.read_prefixed_string()
        width = cur.read_u32()
        height = cur.read_u32()
        pin_shape = cur.read_u8()
        # Two repeated 9-byte outline records plus a 5-byte outline terminator.
        cur.skip(PIN_SKIP_BYTES)
        net_index = cur.read_u32()
        return Pin(
            un1=un1,
            x=x,
            y=y,
            un2=un2,
            pin_rotation=pin_rotation,
            pin_name_size=name_size,
            pin_name=name,
            width=width,
            height=height,
            pin_shape=pin_shape,
            net_index=net_index,
            offset=start,
        )


def parse_part_payload(payload: bytes, t07_block_size: int) -> PartPayload:
    return PartPayloadParser(payload, t07_block_size).parse()
