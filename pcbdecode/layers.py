from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .entities import BoardFile, ViaBlock

SILKSCREEN_LAYER = 17
OUTLINE_LAYER = 28
PART_OUTLINES_LAYER = 29
MAX_COPPER_LAYER = 16


def populated_copper_layers(board: BoardFile) -> List[int]:
    layers = {segment.layer for segment in board.segments} | {arc.layer for arc in board.arcs}
    return sorted(
        layer
        for layer in layers
        if layer not in (OUTLINE_LAYER, SILKSCREEN_LAYER) and layer <= MAX_COPPER_LAYER
    )


def layer_display_map(board: BoardFile) -> Dict[int, int]:
    """Map each populated copper layer index to its 1-based position in the stack."""

    return {layer: idx for idx, layer in enumerate(populated_copper_layers(board), start=1)}


def layer_display_name(layer: int, display_map: Dict[int, int]) -> str:
    if layer == OUTLINE_LAYER:
        return "Outlines"
    if layer == SILKSCREEN_LAYER:
        return "Silkscreen"
    if layer == PART_OUTLINES_LAYER:
        return "Part Outlines"
    if layer > MAX_COPPER_LAYER or layer not in display_map:
        return f"Layer {layer}"
    return f"Layer {display_map[layer]}"


def board_layers(board: BoardFile) -> List[int]:
    layers = {segment.layer for segment in board.segments}
    layers.update(arc.layer for arc in board.arcs)
    for via in board.vias:
        layers.update((via.layer_a_index, via.layer_b_index))
    layers.add(PART_OUTLINES_LAYER)
    return sorted(layers)


def via_layer_span(via: ViaBlock) -> Tuple[int, int]:
    return min(via.layer_a_index, via.layer_b_index), max(via.layer_a_index, via.layer_b_index)


def board_bounds(board: BoardFile) -> Optional[Tuple[int, int, int, int]]:
    """Bounding box ``(min_x, min_y, max_x, max_y)`` of segments, arcs and vias in raw units."""

    xs: List[int] = []
    ys: List[int] = []
    for segment in board.segments:
        xs.extend((segment.x1, segment.x2))
        ys.extend((segment.y1, segment.y2))
    for arc in board.arcs:
        xs.extend((arc.x1 - arc.r, arc.x1 + arc.r))
        ys.extend((arc.y1 - arc.r, arc.y1 + arc.r))
    for via in board.vias:
        xs.extend((via.x - via.outer_radius, via.x + via.outer_radius))
        ys.extend((via.y - via.outer_radius, via.y + via.outer_radius))
    if not xs:
        return None
    return min(xs), min(ys), max(xs), max(ys)
