#!/usr/bin/env python3
"""
List every step of the top-level block scan: padding, emitted blocks, skipped
tags and unknown tags, with their offsets. Useful for spotting where an
unknown tag desynchronises the stream.
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from pathlib import Path
from typing import Sequence

# Ensure project root on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pcbdecode import PCBDecodeError, read_board


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump the top-level block scan of a board file.")
    parser.add_argument("input", type=Path, help="Board file")
    parser.add_argument(
        "--kind",
        action="append",
        help="Only show events of this kind (ARC, VIA, SEGMENT, TEXT, DATA, PADDING, SKIPPED, UNKNOWN)",
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of events to print")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        board = read_board(args.input)
    except (OSError, PCBDecodeError) as exc:
        print(f"{args.input}: {exc}", file=sys.stderr)
        return 1

    header = board.header
    print(f"{args.input.name}: main blocks size={header.main_data_blocks_size} end=0x{board.end_offset:X}")
    if board.xor is not None and board.xor.applied:
        marker = "none" if board.xor.marker_offset is None else f"0x{board.xor.marker_offset:X}"
        print(f"  xor key=0x{board.xor.key:02X} length={board.xor.length} marker={marker}")

    wanted = {kind.upper() for kind in args.kind} if args.kind else None
    shown = 0
    for event in board.events:
        if wanted and event.kind not in wanted:
            continue
        if args.limit is not None and shown >= args.limit:
            break
        print(f"  {event.describe()}")
        shown += 1

    counts = Counter(event.kind for event in board.events)
    print("  totals: " + ", ".join(f"{kind}={count}" for kind, count in sorted(counts.items())))
    if board.stop_reason:
        print(f"  scan stopped early: {board.stop_reason}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
