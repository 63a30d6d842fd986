from __future__ import annotations

import pytest

from pcbdecode import (
    PIN_PADDING_BYTES,
    PartArc,
    PartLabel,
    PartLine,
    PinArray,
    SubParseFailure,
    encrypt,
    expected_pin_count,
    parse_part_payload,
)
from tests._pcb_builders import (
    part_arc,
    part_label,
    part_line,
    part_payload,
    pin_array,
    pin_record,
    two_pin_payload,
)


def test_header_fields() -> None:
    payload = part_payload("CONN_A", b"", x=11, y=22, rotation=180, visibility=0)
    part = parse_part_payload(payload, len(payload))
    header = part.header
    assert header.part_size == len(payload) - 4
    assert (header.part_x, header.part_y, header.part_rotation, header.visibility) == (11, 22, 180, 0)
    assert header.part_group_name == "CONN_A"
    assert header.part_group_name_size == 6
    assert part.sub_blocks == ()
    assert part.complete


def test_two_pins_bounded_by_encrypted_block_size() -> None:
    payload = two_pin_payload()
    t07_block_size = len(encrypt(payload))
    part = parse_part_payload(payload, t07_block_size)

    assert len(part.sub_blocks) == 1
    pin_block = part.sub_blocks[0]
    assert isinstance(pin_block, PinArray)
    assert pin_block.block_size == 61
    assert [(pin.x, pin.y, pin.pin_name, pin.net_index) for pin in pin_block.pins] == [
        (1000, 2000, "1", 5),
        (3000, 4000, "2", 6),
    ]
    assert pin_block.pins[0].offset == 33
    assert pin_block.pins[1].offset == 33 + 61 + PIN_PADDING_BYTES
    assert (pin_block.pins[0].width, pin_block.pins[0].height, pin_block.pins[0].pin_shape) == (100, 50, 1)
    assert part.complete
    assert expected_pin_count(t07_block_size, 33, 61) == 2


def test_pin_loop_overrunning_part_keeps_decoded_pins() -> None:
    payload = two_pin_payload()
    part = parse_part_payload(payload, 400)
    assert len(part.pins) == 2
    assert not part.complete
    assert "pin record 2" in part.stop_reason


def test_bytes_beyond_part_size_are_ignored() -> None:
    line = part_line(29, 1, 2, 3, 4, 500)
    extra = part_line(29, 9, 9, 9, 9, 500)
    payload = part_payload("R1", line, trailing=extra)
    part = parse_part_payload(payload, len(payload))
    assert part.sub_blocks == (PartLine(block_size=28, layer=29, x1=1, y1=2, x2=3, y2=4, scale=500),)


def test_label_and_arc_sub_blocks() -> None:
    body = part_arc(29, 7, 8, padding=b"\xcc" * 8) + part_label(17, 5, 6, 100, 2, 1, "C12")
    payload = part_payload("C12", body)
    part = parse_part_payload(payload, len(payload))
    arc, label = part.sub_blocks
    assert arc == PartArc(block_size=20, layer=29, x1=7, y1=8, padding_size=8)
    assert label == PartLabel(
        block_size=label.block_size,
        layer=17,
        x=5,
        y=6,
        font_size=100,
        font_scale=2,
        visibility=1,
        label_size=3,
        label="C12",
    )
    assert part.labels == [label]


def test_unknown_sub_block_ends_the_part() -> None:
    body = part_line(29, 0, 0, 1, 1, 1) + b"\xee" + part_line(29, 2, 2, 3, 3, 1)
    payload = part_payload("X", body)
    part = parse_part_payload(payload, len(payload))
    assert len(part.sub_blocks) == 1
    assert part.complete


def test_truncated_sub_block_returns_partial_result() -> None:
    body = part_line(29, 0, 0, 1, 1, 1) + part_line(29, 2, 2, 3, 3, 1)[:10]
    payload = part_payload("X", body)
    part = parse_part_payload(payload, len(payload))
    assert len(part.sub_blocks) == 1
    assert not part.complete


def test_short_arc_size_does_not_rewind() -> None:
    body = b"\x01" + (4).to_bytes(4, "little") + b"\x00" * 12 + part_line(29, 0, 0, 1, 1, 1)
    payload = part_payload("X", body)
    part = parse_part_payload(payload, len(payload))
    assert [type(block) for block in part.sub_blocks] == [PartArc, PartLine]
    assert part.sub_blocks[0].padding_size == 0


def test_unreadable_header_is_a_sub_parse_failure() -> None:
    with pytest.raises(SubParseFailure):
        parse_part_payload(b"\x10\x00", 8)


def test_pin_stride_follows_name_length() -> None:
    pins = [pin_record(1, 2, "A", 9), pin_record(3, 4, "A12", 10)]
    payload = part_payload("Q", pin_array(pins, block_size=len(pins[0])))
    part = parse_part_payload(payload, len(payload))
    assert part.complete
    assert [pin.pin_name for pin in part.pins] == ["A", "A12"]
    assert [pin.pin_name_size for pin in part.pins] == [1, 3]
    assert [pin.net_index for pin in part.pins] == [9, 10]
    # Records start after the 27-byte header and the array's tag and size.
    assert [pin.offset for pin in part.pins] == [32, 32 + len(pins[0]) + PIN_PADDING_BYTES]


def test_expected_pin_count_formula() -> None:
    assert expected_pin_count(192, 33, 61) == 2
    assert expected_pin_count(60, 33, 61) == 0
    assert expected_pin_count(33 + 61, 33, 61) == 1
