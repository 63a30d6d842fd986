from __future__ import annotations

from pcbdecode import (
    OUTLINE_LAYER,
    PART_OUTLINES_LAYER,
    board_bounds,
    board_from_dict,
    board_layers,
    layer_display_map,
    layer_display_name,
    parse_board,
    populated_copper_layers,
    via_layer_span,
)
from tests._pcb_builders import sample_board


def test_populated_copper_layers_exclude_outline_and_silkscreen() -> None:
    board = parse_board(sample_board())
    assert populated_copper_layers(board) == [1, 4]
    assert layer_display_map(board) == {1: 1, 4: 2}


def test_layer_display_names() -> None:
    display_map = {1: 1, 4: 2}
    assert layer_display_name(4, display_map) == "Layer 2"
    assert layer_display_name(OUTLINE_LAYER, display_map) == "Outlines"
    assert layer_display_name(17, display_map) == "Silkscreen"
    assert layer_display_name(PART_OUTLINES_LAYER, display_map) == "Part Outlines"
    assert layer_display_name(21, display_map) == "Layer 21"


def test_board_layers_include_via_ends_and_part_outlines() -> None:
    board = parse_board(sample_board())
    assert board_layers(board) == [1, 4, OUTLINE_LAYER, PART_OUTLINES_LAYER]
    assert via_layer_span(board.vias[0]) == (1, 4)


def test_board_bounds() -> None:
    board = parse_board(sample_board())
    # Outline segment reaches -100..1200; arc at (100, 200) r=50; via at (10, 20) r=30.
    assert board_bounds(board) == (-100, -100, 1200, 800)


def test_empty_board_has_no_bounds() -> None:
    assert board_bounds(board_from_dict({"main_data_block": []})) is None
