#!/usr/bin/env python3
"""
Decode a binary PCB board file into the JSON document the layer viewer loads.

Example usage:

    python pcb_to_json.py board.pcb --json board.json --summary
    python pcb_to_json.py board.pcb --trace board_blocks.log -v

The JSON keeps the raw integer units of the file; scaling is left to the
viewer.
"""

from __future__ import annotations

import argparse
import json
from collections import Counter
from pathlib import Path
from typing import Sequence

from pcbdecode import (
    BlockTraceLogger,
    BoardFile,
    PCBDecodeError,
    board_bounds,
    configure_logging,
    layer_display_map,
    layer_display_name,
    read_board,
)


def summarize_board(board: BoardFile) -> list[str]:
    counts = Counter(block.KIND for block in board.blocks)
    lines = [
        f"blocks: {len(board.blocks)} "
        + " ".join(f"{kind}={counts[kind]}" for kind in ("ARC", "VIA", "SEGMENT", "TEXT", "DATA") if counts[kind]),
        f"status: {board.status.value}",
    ]
    if board.xor is not None and board.xor.applied:
        lines.append(f"xor: key=0x{board.xor.key:02X} length={board.xor.length}")
    if board.stop_reason:
        lines.append(f"scan stopped at 0x{board.end_offset:X}: {board.stop_reason}")
    display_map = layer_display_map(board)
    if display_map:
        names = [f"{layer}->{layer_display_name(layer, display_map)}" for layer in sorted(display_map)]
        lines.append("copper layers: " + ", ".join(names))
    bounds = board_bounds(board)
    if bounds is not None:
        lines.append(f"bounds: x={bounds[0]}..{bounds[2]} y={bounds[1]}..{bounds[3]}")
    parts = board.parts
    if parts:
        pin_total = sum(len(part.pins) for part in parts)
        lines.append(f"parts: {len(parts)} with {pin_total} pin(s)")
    return lines


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a binary PCB board file to JSON.")
    parser.add_argument("input", type=Path, help="Path to the board file")
    parser.add_argument("--json", type=Path, help="Destination JSON path (default: <input>.json)")
    parser.add_argument("--indent", type=int, default=None, help="Indent the JSON output")
    parser.add_argument("--summary", action="store_true", help="Print a short summary of the decoded board")
    parser.add_argument("--trace", type=Path, help="Write one line per scanned block to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped blocks and decode details")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        board = read_board(args.input)
    except (OSError, PCBDecodeError) as exc:
        raise SystemExit(f"Unable to decode {args.input}: {exc}") from exc

    destination = args.json or args.input.with_suffix(".json")
    destination.write_text(json.dumps(board.to_dict(), indent=args.indent), encoding="utf-8")
    print(f"[+] Wrote {len(board.blocks)} block(s) to {destination}")

    if args.trace:
        trace = BlockTraceLogger(args.trace)
        trace.record_board(board)
        trace.flush()
        print(f"[+] Block trace written to {args.trace}")

    if args.summary:
        for line in summarize_board(board):
            print(f"    {line}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
