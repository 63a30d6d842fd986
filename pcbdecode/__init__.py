"""
Decoder for the encrypted binary PCB board format: XOR de-obfuscation, the
top-level block scan, DES decryption of part blocks and the part payload
parser.
"""

from .blocks import HEADER_END, BoardParser, parse_board, read_board, read_file_header
from .cipher import MASTER_KEY, decrypt, encrypt
from .cursor import ByteCursor
from .entities import (
    ArcBlock,
    BoardFile,
    DataBlock,
    DecodeStatus,
    FileHeader,
    PartArc,
    PartHeader,
    PartLabel,
    PartLine,
    PartPayload,
    Pin,
    PinArray,
    ScanEvent,
    SegmentBlock,
    TextBlock,
    ViaBlock,
    board_from_dict,
)
from .errors import CipherInputError, HeaderError, OutOfBounds, PCBDecodeError, SubParseFailure
from .layers import (
    OUTLINE_LAYER,
    PART_OUTLINES_LAYER,
    SILKSCREEN_LAYER,
    board_bounds,
    board_layers,
    layer_display_map,
    layer_display_name,
    populated_copper_layers,
    via_layer_span,
)
from .logging import BlockTraceLogger, configure_logging
from .part import PIN_PADDING_BYTES, PIN_SKIP_BYTES, PartPayloadParser, expected_pin_count, parse_part_payload
from .xor import XOR_KEY_OFFSET, XOR_MARKER, XorInfo, deobfuscate, find_marker, xor_range

__all__ = [
    "HEADER_END",
    "BoardParser",
    "parse_board",
    "read_board",
    "read_file_header",
    "MASTER_KEY",
    "decrypt",
    "encrypt",
    "ByteCursor",
    "ArcBlock",
    "BoardFile",
    "DataBlock",
    "DecodeStatus",
    "FileHeader",
    "PartArc",
    "PartHeader",
    "PartLabel",
    "PartLine",
    "PartPayload",
    "Pin",
    "PinArray",
    "ScanEvent",
    "SegmentBlock",
    "TextBlock",
    "ViaBlock",
    "board_from_dict",
    "CipherInputError",
    "HeaderError",
    "OutOfBounds",
    "PCBDecodeError",
    "SubParseFailure",
    "OUTLINE_LAYER",
    "PART_OUTLINES_LAYER",
    "SILKSCREEN_LAYER",
    "board_bounds",
    "board_layers",
    "layer_display_map",
    "layer_display_name",
    "populated_copper_layers",
    "via_layer_span",
    "BlockTraceLogger",
    "configure_logging",
    "PIN_PADDING_BYTES",
    "PIN_SKIP_BYTES",
    "PartPayloadParser",
    "expected_pin_count",
    "parse_part_payload",
    "XOR_KEY_OFFSET",
    "XOR_MARKER",
    "XorInfo",
    "deobfuscate",
    "find_marker",
    "xor_range",
]
