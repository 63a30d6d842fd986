#!/usr/bin/env python3
"""
Rasterize a decoded board to a PNG preview with Pillow.

Accepts either the binary board file or a JSON document produced by
pcb_to_json.py. Traces and arcs are coloured per layer, vias are drawn as
rings, and part outlines/pins from the decrypted DATA blocks are overlaid in
orange/white. Example:

    python render_board_png.py board.pcb --output board.png --size 2048
    python render_board_png.py board.json --output top.png --layers 1 28
"""

from __future__ import annotations

import argparse
import json
import math
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

from PIL import Image, ImageDraw

from pcbdecode import (
    OUTLINE_LAYER,
    PART_OUTLINES_LAYER,
    SILKSCREEN_LAYER,
    ArcBlock,
    BoardFile,
    PCBDecodeError,
    board_bounds,
    board_from_dict,
    board_layers,
    read_board,
    via_layer_span,
)

ARC_ANGLE_SCALE = 10000.0  # angles are stored in 1/10000 degree
DEFAULT_TRACE_WIDTH = 20000
PART_OUTLINE_COLOR = (255, 107, 53)
SILKSCREEN_COLOR = (230, 230, 230)
OUTLINE_COLOR = (240, 200, 40)
LAYER_PALETTE = (
    (200, 60, 60),
    (60, 120, 220),
    (60, 180, 90),
    (200, 120, 40),
    (150, 80, 200),
    (40, 170, 170),
    (210, 90, 150),
    (120, 150, 40),
    (90, 90, 200),
    (200, 170, 60),
    (70, 140, 110),
    (180, 70, 100),
    (110, 110, 110),
)

Point = Tuple[float, float]


def load_board(path: Path) -> BoardFile:
    if path.suffix.lower() == ".json":
        return board_from_dict(json.loads(path.read_text(encoding="utf-8")))
    return read_board(path)


def layer_colors(layers: Sequence[int]) -> Dict[int, Tuple[int, int, int]]:
    colors: Dict[int, Tuple[int, int, int]] = {}
    for idx, layer in enumerate(layers):
        if layer == OUTLINE_LAYER:
            colors[layer] = OUTLINE_COLOR
        elif layer == SILKSCREEN_LAYER:
            colors[layer] = SILKSCREEN_COLOR
        elif layer == PART_OUTLINES_LAYER:
            colors[layer] = PART_OUTLINE_COLOR
        else:
            colors[layer] = LAYER_PALETTE[idx % len(LAYER_PALETTE)]
    return colors


def _sample_arc_points(arc: ArcBlock) -> List[Point]:
    if arc.r <= 0:
        return []
    start = math.radians(arc.angle_start / ARC_ANGLE_SCALE)
    end = math.radians(arc.angle_end / ARC_ANGLE_SCALE)
    sweep = (end - start) % math.tau
    if math.isclose(sweep, 0.0):
        sweep = math.tau
    segments = max(16, int(sweep / (math.pi / 64)))
    return [
        (
            arc.x1 + arc.r * math.cos(start + sweep * step / segments),
            arc.y1 + arc.r * math.sin(start + sweep * step / segments),
        )
        for step in range(segments + 1)
    ]


def _build_transform(
    bounds: Tuple[int, int, int, int],
    size_px: int,
    padding_ratio: float,
) -> Tuple[Callable[[Point], Point], float]:
    min_x, min_y, max_x, max_y = bounds
    width = max(max_x - min_x, 1)
    height = max(max_y - min_y, 1)
    pad = max(width, height) * padding_ratio
    world_min_x = min_x - pad
    world_min_y = min_y - pad
    world_width = width + 2 * pad
    world_height = height + 2 * pad

    scale = min(size_px / world_width, size_px / world_height)
    offset_x = (size_px - world_width * scale) / 2.0
    offset_y = (size_px - world_height * scale) / 2.0

    def transform(point: Point) -> Point:
        x, y = point
        return (x - world_min_x) * scale + offset_x, size_px - ((y - world_min_y) * scale + offset_y)

    return transform, scale


def render_png(
    board: BoardFile,
    destination: Path,
    size_px: int,
    *,
    visible_layers: Sequence[int] | None = None,
    show_parts: bool = True,
    padding_ratio: float = 0.02,
) -> None:
    bounds = board_bounds(board)
    if bounds is None:
        raise RuntimeError("No drawable segments, arcs or vias were decoded from the board.")
    transform, scale = _build_transform(bounds, size_px, padding_ratio)
    colors = layer_colors(board_layers(board))
    visible = set(visible_layers) if visible_layers else set(colors)

    def stroke(raw_width: int, factor: float = 0.4) -> int:
        return max(1, int((raw_width or DEFAULT_TRACE_WIDTH) * scale * factor))

    image = Image.new("RGB", (size_px, size_px), (16, 16, 16))
    draw = ImageDraw.Draw(image)

    for segment in board.segments:
        if segment.layer not in visible:
            continue
        draw.line(
            [transform((segment.x1, segment.y1)), transform((segment.x2, segment.y2))],
            fill=colors.get(segment.layer, (255, 255, 255)),
            width=stroke(segment.scale),
        )

    for arc in board.arcs:
        if arc.layer not in visible:
            continue
        points = _sample_arc_points(arc)
        if len(points) < 2:
            continue
        draw.line(
            [transform(pt) for pt in points],
            fill=colors.get(arc.layer, (255, 255, 255)),
            width=stroke(arc.scale),
        )

    for via in board.vias:
        low, high = via_layer_span(via)
        if not any(low <= layer <= high for layer in visible):
            continue
        cx, cy = transform((via.x, via.y))
        outer = max(via.outer_radius * scale, 1.0)
        inner = max(via.inner_radius * scale, 0.5)
        draw.ellipse([cx - outer, cy - outer, cx + outer, cy + outer], fill=(200, 200, 200))
        draw.ellipse([cx - inner, cy - inner, cx + inner, cy + inner], fill=colors.get(via.layer_a_index, (90, 90, 90)))

    if show_parts and PART_OUTLINES_LAYER in visible:
        for part in board.parts:
            for line in part.lines:
                draw.line(
                    [transform((line.x1, line.y1)), transform((line.x2, line.y2))],
                    fill=PART_OUTLINE_COLOR,
                    width=stroke(line.scale, 0.12),
                )
            for pin in part.pins:
                px, py = transform((pin.x, pin.y))
                radius = min(max(min(pin.width or 10000, pin.height or 10000) / 2 * scale, 0.5), 20)
                draw.ellipse([px - radius, py - radius, px + radius, py + radius], fill=(255, 255, 255))

    destination.parent.mkdir(parents=True, exist_ok=True)
    image.save(destination)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a decoded PCB board to a PNG preview.")
    parser.add_argument("input", type=Path, help="Board file or JSON produced by pcb_to_json.py")
    parser.add_argument("--output", type=Path, help="Destination PNG (default: <input>.png)")
    parser.add_argument("--size", type=int, default=2048, help="Image size in pixels (square)")
    parser.add_argument("--layers", type=int, nargs="+", help="Only draw these layer indices")
    parser.add_argument("--no-parts", action="store_true", help="Skip part outlines and pins")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        board = load_board(args.input)
    except (OSError, ValueError, KeyError, PCBDecodeError) as exc:
        raise SystemExit(f"Unable to load {args.input}: {exc}") from exc
    destination = args.output or args.input.with_suffix(".png")
    render_png(board, destination, args.size, visible_layers=args.layers, show_parts=not args.no_parts)
    print(f"[+] Preview PNG written to {destination}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
