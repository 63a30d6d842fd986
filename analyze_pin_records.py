#!/usr/bin/env python3
"""
Instrumentation for the pin records inside decrypted DATA blocks.

Usage:
    python analyze_pin_records.py boards/*.pcb

For every board it decodes the DATA blocks, slices the raw bytes of each pin
record out of the decrypted payload and groups records by size. Within each
group it reports which byte positions ever change, which is how the 23-byte
skipped region is being mapped. DATA blocks whose pin count disagrees with
the record-count formula are listed for manual review.
"""

from __future__ import annotations

import argparse
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import numpy as np

from pcbdecode import PCBDecodeError, PinArray, expected_pin_count, read_board

PIN_FIXED_PREFIX = 24  # five u32 fields plus the name length


def collect_pin_records(paths: Sequence[Path]) -> Tuple[Dict[int, List[bytes]], List[str]]:
    records: Dict[int, List[bytes]] = defaultdict(list)
    mismatches: List[str] = []
    for path in paths:
        try:
            board = read_board(path)
        except (OSError, PCBDecodeError) as exc:
            mismatches.append(f"{path.name}: unreadable ({exc})")
            continue
        for block_idx, block in enumerate(board.data_blocks):
            part = block.parsed_data
            if part is None:
                continue
            for sub in part.sub_blocks:
                if not isinstance(sub, PinArray) or not sub.pins:
                    continue
                expected = expected_pin_count(block.block_size, sub.pins[0].offset, sub.block_size)
                if expected != len(sub.pins):
                    mismatches.append(
                        f"{path.name}: DATA[{block_idx}] {part.header.part_group_name!r} "
                        f"parsed {len(sub.pins)} pin(s), formula expects {expected}"
                    )
                for pin in sub.pins:
                    # Align on the end of the name so the fixed tail lines up across pins.
                    tail_start = pin.offset + PIN_FIXED_PREFIX + pin.pin_name_size
                    record = block.decrypted_data[tail_start : pin.offset + sub.block_size]
                    records[len(record)].append(record)
    return records, mismatches


def summarize_variability(size: int, records: List[bytes]) -> None:
    matrix = np.frombuffer(b"".join(records), dtype=np.uint8).reshape(len(records), size)
    varying = np.where(matrix.max(axis=0) != matrix.min(axis=0))[0]
    print(f"{len(records)} pin tail(s) of {size} bytes, {len(varying)} varying position(s)")
    if len(varying) > 0:
        print("  varying offsets (from end of pin name):", varying.tolist())
    constant = np.where(matrix.max(axis=0) == matrix.min(axis=0))[0]
    if len(constant) > 0:
        print("  constant bytes:", " ".join(f"{pos}={int(matrix[0, pos]):02x}" for pos in constant[:32]))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report byte variability across decoded pin records.")
    parser.add_argument("inputs", type=Path, nargs="+", help="Board files to sample")
    parser.add_argument("--min-records", type=int, default=2, help="Skip size groups with fewer records")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    records, mismatches = collect_pin_records(args.inputs)
    if not records:
        print("No pin records were decoded from the given boards.")
    for size in sorted(records):
        group = records[size]
        if size == 0 or len(group) < args.min_records:
            continue
        summarize_variability(size, group)
    if mismatches:
        print(f"\n{len(mismatches)} DATA block(s) need manual review:")
        for line in mismatches:
            print(f"  {line}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
