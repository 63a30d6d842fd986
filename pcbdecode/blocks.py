"""
Top-level scanner for the board file.

After the optional XOR pass, the file starts with a fixed header; the main
block stream begins at 0x44 and spans ``main_data_blocks_size`` bytes. Each
block is a one-byte tag followed (for most tags) by a u32 size and a fixed or
length-prefixed body:

    0x01 ARC        size, layer, x1, y1, r, angle_start, angle_end, scale, unknown
    0x02 VIA        size, x, y, outer_r, inner_r, layer_a, layer_b, net, text
    0x03 (unknown)  size, skipped
    0x04 (unknown)  one byte, no size field
    0x05 SEGMENT    size, layer, x1, y1, x2, y2, scale, net
    0x06 TEXT       size, unknown, x, y, size, divider, empty, one(u16), text
    0x07 DATA       size, DES-encrypted part payload
    0x08 (unknown)  one byte, no size field
    0x09 TEST_PAD   size, skipped

Four zero bytes where a tag is expected are alignment padding.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from . import cipher
from .cursor import ByteCursor
from .entities import (
    ArcBlock,
    BoardFile,
    DataBlock,
    DecodeStatus,
    FileHeader,
    ScanEvent,
    SegmentBlock,
    TextBlock,
    TopLevelBlock,
    ViaBlock,
)
from .errors import CipherInputError, HeaderError, OutOfBounds, SubParseFailure
from .part import parse_part_payload
from .xor import deobfuscate

HEADER_ADDRESSES_SIZE_OFFSET = 0x20
IMAGE_BLOCK_START_OFFSET = 0x24
NET_BLOCK_START_OFFSET = 0x28
MAIN_DATA_BLOCKS_SIZE_OFFSET = 0x40
HEADER_END = 0x44

TAG_ARC = 0x01
TAG_VIA = 0x02
TAG_UNKNOWN_03 = 0x03
TAG_SKIP_04 = 0x04
TAG_SEGMENT = 0x05
TAG_TEXT = 0x06
TAG_DATA = 0x07
TAG_SKIP_08 = 0x08
TAG_TEST_PAD = 0x09

logger = logging.getLogger("pcbdecode.blocks")


def read_file_header(cursor: ByteCursor) -> FileHeader:
    if len(cursor) < HEADER_END:
        raise HeaderError(f"file is {len(cursor)} bytes, shorter than the {HEADER_END}-byte header")
    header = FileHeader(
        header_addresses_size=_u32_at(cursor, HEADER_ADDRESSES_SIZE_OFFSET),
        image_block_start=_u32_at(cursor, IMAGE_BLOCK_START_OFFSET),
        net_block_start=_u32_at(cursor, NET_BLOCK_START_OFFSET),
        main_data_blocks_size=_u32_at(cursor, MAIN_DATA_BLOCKS_SIZE_OFFSET),
    )
    cursor.offset = HEADER_END
    return header


def _u32_at(cursor: ByteCursor, offset: int) -> int:
    cursor.offset = offset
    return cursor.read_u32()


class BoardParser:
    """
    Parses one board file. Instances hold the scan cursor, so use a fresh
    parser per file (``parse_board`` does this for you).
    """

    def __init__(self, data: bytes | bytearray) -> None:
        self._buffer = bytearray(data)
        self._cursor = ByteCursor(b"")
        self._events: List[ScanEvent] = []
        self._handlers: Dict[int, Callable[[], Optional[TopLevelBlock]]] = {
            TAG_ARC: self._parse_arc,
            TAG_VIA: self._parse_via,
            TAG_UNKNOWN_03: self._skip_sized,
            TAG_SKIP_04: self._skip_one,
            TAG_SEGMENT: self._parse_segment,
            TAG_TEXT: self._parse_text,
            TAG_DATA: self._parse_data,
            TAG_SKIP_08: self._skip_one,
            TAG_TEST_PAD: self._skip_sized,
        }

    def parse(self) -> BoardFile:
        if len(self._buffer) < HEADER_END:
            raise HeaderError(f"file is {len(self._buffer)} bytes, shorter than the {HEADER_END}-byte header")
        xor_info = deobfuscate(self._buffer)
        self._cursor = ByteCursor(self._buffer)
        header = read_file_header(self._cursor)
        blocks, stop_reason = self._scan(header)
        return BoardFile(
            header=header,
            blocks=tuple(blocks),
            xor=xor_info,
            end_offset=self._cursor.offset,
            stop_reason=stop_reason,
            events=tuple(self._events),
        )

    def _scan(self, header: FileHeader) -> tuple[List[TopLevelBlock], Optional[str]]:
        cur = self._cursor
        end_offset = min(HEADER_END + header.main_data_blocks_size, len(cur))
        logger.debug("Scanning main blocks 0x%X-0x%X", cur.offset, end_offset)
        blocks: List[TopLevelBlock] = []
        while cur.offset < end_offset:
            start = cur.offset
            try:
                if cur.remaining >= 4 and cur.read_u32(advance=False) == 0:
                    cur.skip(4)
                    self._events.append(ScanEvent(offset=start, tag=None, kind="PADDING", size=4))
                    continue
                tag = cur.read_u8()
                handler = self._handlers.get(tag)
                if handler is None:
                    # Length unknown: resume right after the tag and hope to resync.
                    logger.warning("Unknown block type 0x%02X at 0x%X", tag, start)
                    self._events.append(ScanEvent(offset=start, tag=tag, kind="UNKNOWN"))
                    continue
                block = handler()
            except OutOfBounds as exc:
                logger.warning("Block scan stopped at 0x%X: %s", start, exc)
                self._events.append(ScanEvent(offset=start, tag=None, kind="TRUNCATED", note=str(exc)))
                return blocks, str(exc)
            if block is not None:
                blocks.append(block)
                self._events.append(ScanEvent(offset=start, tag=tag, kind=block.KIND, size=cur.offset - start))
        return blocks, None

    # --- handlers; the cursor sits just past the tag byte -------------------

    def _parse_arc(self) -> ArcBlock:
        cur = self._cursor
        cur.read_u32()  # block size, implied by the fixed layout
        return ArcBlock(
            layer=cur.read_u32(),
            x1=cur.read_u32(),
            y1=cur.read_u32(),
            r=cur.read_i32(),
            angle_start=cur.read_i32(),
            angle_end=cur.read_i32(),
            scale=cur.read_i32(),
            unknown_arc=cur.read_i32(),
        )

    def _parse_via(self) -> ViaBlock:
        cur = self._cursor
        cur.read_u32()
        x = cur.read_i32()
        y = cur.read_i32()
        outer_radius = cur.read_i32()
        inner_radius = cur.read_i32()
        layer_a_index = cur.read_u32()
        layer_b_index = cur.read_u32()
        net_index = cur.read_u32()
        _, via_text = cur.read_prefixed_string()
        return ViaBlock(
            x=x,
            y=y,
            outer_radius=outer_radius,
            inner_radius=inner_radius,
            layer_a_index=layer_a_index,
            layer_b_index=layer_b_index,
            net_index=net_index,
            via_text=via_text,
        )

    def _parse_segment(self) -> SegmentBlock:
        cur = self._cursor
        cur.read_u32()
        return SegmentBlock(
            layer=cur.read_u32(),
            x1=cur.read_i32(),
            y1=cur.read_i32(),
            x2=cur.read_i32(),
            y2=cur.read_i32(),
            scale=cur.read_i32(),
            trace_net_index=cur.read_u32(),
        )

    def _parse_text(self) -> TextBlock:
        cur = self._cursor
        cur.read_u32()
        unknown_1 = cur.read_u32()
        pos_x = cur.read_u32()
        pos_y = cur.read_u32()
        text_size = cur.read_u32()
        divider = cur.read_u32()
        empty = cur.read_u32()
        one = cur.read_u16()
        text_length, text = cur.read_prefixed_string()
        return TextBlock(
            unknown_1=unknown_1,
            pos_x=pos_x,
            pos_y=pos_y,
            text_size=text_size,
            divider=divider,
            empty=empty,
            one=one,
            text_length=text_length,
            text=text,
        )

    def _parse_data(self) -> DataBlock:
        cur = self._cursor
        block_size = cur.read_u32()
        encrypted = cur.read_bytes(block_size)
        try:
            decrypted = cipher.decrypt(encrypted)
        except CipherInputError as exc:
            logger.warning("DATA block at 0x%X could not be decrypted: %s", cur.offset - block_size, exc)
            return DataBlock(
                block_size=block_size,
                encrypted_data=encrypted,
                decrypted_data=encrypted,
                parsed_data=None,
                status=DecodeStatus.DEGRADED,
                reason=f"decryption skipped: {exc}",
            )
        try:
            payload = parse_part_payload(decrypted, block_size)
        except SubParseFailure as exc:
            logger.warning("DATA block at 0x%X has an unreadable part payload: %s", cur.offset - block_size, exc)
            return DataBlock(
                block_size=block_size,
                encrypted_data=encrypted,
                decrypted_data=decrypted,
                parsed_data=None,
                status=DecodeStatus.FAILED,
                reason=str(exc),
            )
        if not payload.complete:
            return DataBlock(
                block_size=block_size,
                encrypted_data=encrypted,
                decrypted_data=decrypted,
                parsed_data=payload,
                status=DecodeStatus.PARTIAL,
                reason=payload.stop_reason,
            )
        return DataBlock(
            block_size=block_size,
            encrypted_data=encrypted,
            decrypted_data=decrypted,
            parsed_data=payload,
        )

    def _skip_sized(self) -> None:
        cur = self._cursor
        tag_offset = cur.offset - 1
        block_size = cur.read_u32()
        cur.skip(block_size)
        logger.debug("Skipped block 0x%02X at 0x%X, %d bytes", self._buffer[tag_offset], tag_offset, block_size)
        self._events.append(
            ScanEvent(offset=tag_offset, tag=self._buffer[tag_offset], kind="SKIPPED", size=block_size + 5)
        )
        return None

    def _skip_one(self) -> None:
        cur = self._cursor
        tag_offset = cur.offset - 1
        tag = self._buffer[tag_offset]
        if tag == TAG_SKIP_08:
            logger.warning("Block type 0x08 at 0x%X has no known layout; skipping one byte", tag_offset)
        else:
            logger.debug("Skipping one byte after block type 0x%02X at 0x%X", tag, tag_offset)
        cur.skip(1)
        self._events.append(ScanEvent(offset=tag_offset, tag=tag, kind="SKIPPED", size=2))
        return None


def parse_board(data: bytes | bytearray) -> BoardFile:
    """Decode a complete board file held in memory. The input is not modified."""

    return BoardParser(data).parse()


def read_board(path: Path | str) -> BoardFile:
    return parse_board(Path(path).read_bytes())
