#!/usr/bin/env python3
"""
Write the decrypted payload of every DATA block to its own file, named after
the part group so related footprints sort together:

    <part_group_name>_<board stem>_block_<n>.decrypted.dat
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Sequence

# Ensure project root on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pcbdecode import DecodeStatus, PCBDecodeError, read_board

UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def block_filename(label: str, stem: str, index: int) -> str:
    safe = UNSAFE_CHARS.sub("_", label).strip("_") or "unnamed"
    return f"{safe}_{stem}_block_{index}.decrypted.dat"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract decrypted DATA block payloads from a board file.")
    parser.add_argument("input", type=Path, help="Board file")
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Destination directory (default: <input stem>_decrypted_blocks next to the input)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        board = read_board(args.input)
    except (OSError, PCBDecodeError) as exc:
        print(f"{args.input}: {exc}", file=sys.stderr)
        return 1

    out_dir = args.output_dir or args.input.with_name(f"{args.input.stem}_decrypted_blocks")
    out_dir.mkdir(parents=True, exist_ok=True)
    written = 0
    for index, block in enumerate(board.data_blocks):
        if block.status is DecodeStatus.DEGRADED:
            print(f"  DATA[{index}] skipped: {block.reason}")
            continue
        label = block.parsed_data.header.part_group_name if block.parsed_data else ""
        (out_dir / block_filename(label, args.input.stem, index)).write_bytes(block.decrypted_data)
        written += 1
    print(f"[+] Wrote {written} decrypted block(s) to {out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
