from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pcbdecode import (
    HEADER_END,
    ArcBlock,
    DecodeStatus,
    HeaderError,
    SegmentBlock,
    TextBlock,
    ViaBlock,
    parse_board,
    read_board,
)
from tests._pcb_builders import (
    arc_block,
    board_bytes,
    sample_board,
    segment_block,
    sized_skip_block,
    text_block,
    via_block,
)


def test_header_fields_are_read_from_fixed_offsets() -> None:
    board = parse_board(board_bytes(header_addresses_size=0x11, image_block_start=0x22, net_block_start=0x33))
    assert board.header.header_addresses_size == 0x11
    assert board.header.image_block_start == 0x22
    assert board.header.net_block_start == 0x33
    assert board.header.main_data_blocks_size == 0
    assert board.blocks == ()
    assert board.end_offset == HEADER_END


def test_short_file_is_a_header_error() -> None:
    with pytest.raises(HeaderError):
        parse_board(b"\x00" * (HEADER_END - 1))


def test_single_arc_block() -> None:
    board = parse_board(board_bytes(arc_block(3, 1000, 2000, 500, -450000, 900000, 20000, 7)))
    assert board.blocks == (
        ArcBlock(
            layer=3,
            x1=1000,
            y1=2000,
            r=500,
            angle_start=-450000,
            angle_end=900000,
            scale=20000,
            unknown_arc=7,
        ),
    )
    assert board.end_offset == HEADER_END + 1 + 4 + 32
    assert board.to_dict()["main_data_block"][0]["ARC"]["angle_start"] == -450000


def test_zero_padding_is_skipped() -> None:
    board = parse_board(board_bytes(b"\x00" * 4, segment_block(2, 1, 2, 3, 4, 5, 6)))
    assert board.blocks == (SegmentBlock(layer=2, x1=1, y1=2, x2=3, y2=4, scale=5, trace_net_index=6),)
    assert board.events[0].kind == "PADDING"
    assert board.events[0].offset == HEADER_END
    assert board.events[1].offset == HEADER_END + 4


def test_via_scenario_with_small_declared_budget() -> None:
    block = via_block(100, 200, 50, 20, 1, 3, 7, "", block_size=21)
    board = parse_board(board_bytes(block, main_size=13))
    assert board.blocks == (
        ViaBlock(
            x=100,
            y=200,
            outer_radius=50,
            inner_radius=20,
            layer_a_index=1,
            layer_b_index=3,
            net_index=7,
            via_text="",
        ),
    )
    assert board.status is DecodeStatus.OK


def test_text_block_fields() -> None:
    board = parse_board(board_bytes(text_block(40, 50, "GND", unknown_1=9, text_size=120, divider=2)))
    (text,) = board.blocks
    assert isinstance(text, TextBlock)
    assert (text.pos_x, text.pos_y, text.text, text.text_length) == (40, 50, "GND", 3)
    assert (text.unknown_1, text.text_size, text.divider, text.empty, text.one) == (9, 120, 2, 0, 1)


def test_skip_types_emit_nothing() -> None:
    board = parse_board(
        board_bytes(
            sized_skip_block(0x03, b"\xff" * 12),
            b"\x04\x99",
            b"\x08\x99",
            sized_skip_block(0x09, b"\xff" * 3),
            segment_block(1, 0, 0, 10, 10, 1, 0),
        )
    )
    assert [block.KIND for block in board.blocks] == ["SEGMENT"]
    assert [event.kind for event in board.events] == ["SKIPPED"] * 4 + ["SEGMENT"]
    assert [event.tag for event in board.events[:4]] == [0x03, 0x04, 0x08, 0x09]


def test_unknown_tag_is_skipped_one_byte() -> None:
    board = parse_board(board_bytes(b"\xff", segment_block(1, 0, 0, 5, 5, 1, 0)))
    assert [block.KIND for block in board.blocks] == ["SEGMENT"]
    assert board.events[0].kind == "UNKNOWN"
    assert board.events[0].tag == 0xFF


def test_scan_stops_at_declared_budget() -> None:
    first = segment_block(1, 0, 0, 5, 5, 1, 0)
    second = segment_block(2, 0, 0, 5, 5, 1, 0)
    board = parse_board(board_bytes(first, second, main_size=len(first)))
    assert len(board.blocks) == 1
    assert board.end_offset == HEADER_END + len(first)


def test_truncated_block_stops_scan_and_keeps_earlier_blocks() -> None:
    first = segment_block(1, 0, 0, 5, 5, 1, 0)
    cut = via_block(1, 2, 3, 4, 1, 2, 3, "VIA")[:-2]
    board = parse_board(board_bytes(first, cut))
    assert len(board.blocks) == 1
    assert board.stop_reason is not None
    assert board.status is DecodeStatus.PARTIAL
    assert board.events[-1].kind == "TRUNCATED"


def test_budget_larger_than_file_is_clamped() -> None:
    board = parse_board(board_bytes(segment_block(1, 0, 0, 5, 5, 1, 0), main_size=10_000))
    assert len(board.blocks) == 1
    assert board.stop_reason is None


def test_sample_board_block_order() -> None:
    board = parse_board(sample_board())
    assert [block.KIND for block in board.blocks] == ["ARC", "VIA", "SEGMENT", "SEGMENT", "SEGMENT", "TEXT", "DATA"]
    assert board.vias[0].via_text == "V1"
    assert board.texts[0].text == "TOP"
    assert board.status is DecodeStatus.OK


def test_parse_does_not_modify_input() -> None:
    data = bytearray(sample_board())
    data[0x10] = 0
    before = bytes(data)
    parse_board(data)
    assert bytes(data) == before


def test_read_board_from_path(tmp_path) -> None:
    path = tmp_path / "board.pcb"
    path.write_bytes(sample_board())
    assert len(read_board(path).blocks) == 7


@settings(max_examples=200, deadline=None)
@given(st.binary(min_size=HEADER_END, max_size=2048))
def test_arbitrary_input_terminates_without_raising(blob: bytes) -> None:
    board = parse_board(blob)
    assert all(event.offset >= HEADER_END for event in board.events)
    assert all(block.KIND in {"ARC", "VIA", "SEGMENT", "TEXT", "DATA"} for block in board.blocks)


@pytest.mark.parametrize("tail", [b"\x04\x00", b"\x08\x00", b"\x04\x00\x04"])
def test_short_trailing_record_is_not_truncation(tail: bytes) -> None:
    board = parse_board(board_bytes(segment_block(1, 0, 0, 1, 1, 1, 0), tail))
    assert board.stop_reason is None
    assert board.status is DecodeStatus.OK
    assert "TRUNCATED" not in [event.kind for event in board.events]
    assert isinstance(board.blocks[0], SegmentBlock)
