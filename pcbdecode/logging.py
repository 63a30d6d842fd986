from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .entities import BoardFile, DecodeStatus, ScanEvent

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@dataclass
class BlockTraceLogger:
    """Collects one line per top-level scan step and writes them on ``flush``."""

    destination: Path

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def record_events(self, events: Sequence[ScanEvent]) -> None:
        for seq, event in enumerate(events, start=len(self._lines) + 1):
            self._lines.append(f"#{seq:05d} {event.describe()}")

    def record_board(self, board: BoardFile) -> None:
        self.record_events(board.events)
        for idx, block in enumerate(board.data_blocks):
            if block.status is DecodeStatus.OK:
                continue
            self._lines.append(f"  DATA[{idx}] status={block.status.value} reason={block.reason}")
        if board.stop_reason:
            self._lines.append(f"  scan stopped early at 0x{board.end_offset:X}: {board.stop_reason}")

    def flush(self) -> None:
        if not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        self.destination.write_text("\n".join(self._lines) + "\n", encoding="utf-8")
