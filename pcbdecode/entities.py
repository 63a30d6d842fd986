from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .xor import XorInfo


class DecodeStatus(enum.Enum):
    OK = "ok"
    # Cipher failed; decrypted_data holds the raw ciphertext.
    DEGRADED = "degraded"
    # Payload parsed but the sub-block scan stopped early.
    PARTIAL = "partial"
    # Payload header could not be read; parsed_data is None.
    FAILED = "failed"


@dataclass(frozen=True)
class FileHeader:
    header_addresses_size: int
    image_block_start: int
    net_block_start: int
    main_data_blocks_size: int


@dataclass(frozen=True)
class ArcBlock:
    layer: int
    x1: int
    y1: int
    r: int
    angle_start: int
    angle_end: int
    scale: int
    unknown_arc: int

    KIND = "ARC"

    def to_dict(self) -> dict:
        return {
            self.KIND: {
                "layer": self.layer,
                "x1": self.x1,
                "y1": self.y1,
                "r": self.r,
                "angle_start": self.angle_start,
                "angle_end": self.angle_end,
                "scale": self.scale,
                "unknown_arc": self.unknown_arc,
            }
        }

    @classmethod
    def from_dict(cls, body: dict) -> ArcBlock:
        return cls(**{name: body[name] for name in _field_names(cls)})


@dataclass(frozen=True)
class ViaBlock:
    x: int
    y: int
    outer_radius: int
    inner_radius: int
    layer_a_index: int
    layer_b_index: int
    net_index: int
    via_text: str

    KIND = "VIA"

    def to_dict(self) -> dict:
        return {
            self.KIND: {
                "x": self.x,
                "y": self.y,
                "outer_radius": self.outer_radius,
                "inner_radius": self.inner_radius,
                "layer_a_index": self.layer_a_index,
                "layer_b_index": self.layer_b_index,
                "net_index": self.net_index,
                "via_text": self.via_text,
            }
        }

    @classmethod
    def from_dict(cls, body: dict) -> ViaBlock:
        return cls(**{name: body[name] for name in _field_names(cls)})


@dataclass(frozen=True)
class SegmentBlock:
    layer: int
    x1: int
    y1: int
    x2: int
    y2: int
    scale: int
    trace_net_index: int

    KIND = "SEGMENT"

    def to_dict(self) -> dict:
        return {
            self.KIND: {
                "layer": self.layer,
                "x1": self.x1,
                "y1": self.y1,
                "x2": self.x2,
                "y2": self.y2,
                "scale": self.scale,
                "trace_net_index": self.trace_net_index,
            }
        }

    @classmethod
    def from_dict(cls, body: dict) -> SegmentBlock:
        return cls(**{name: body[name] for name in _field_names(cls)})


@dataclass(frozen=True)
class TextBlock:
    unknown_1: int
    pos_x: int
    pos_y: int
    text_size: int
    divider: int
    empty: int
    one: int
    text_length: int
    text: str

    KIND = "TEXT"

    def to_dict(self) -> dict:
        return {
            self.KIND: {
                "unknown_1": self.unknown_1,
                "pos_x": self.pos_x,
                "pos_y": self.pos_y,
                "text_size": self.text_size,
                "divider": self.divider,
                "empty": self.empty,
                "one": self.one,
                "text_length": self.text_length,
                "text": self.text,
            }
        }

    @classmethod
    def from_dict(cls, body: dict) -> TextBlock:
        return cls(**{name: body[name] for name in _field_names(cls)})


# --- decrypted part payload -------------------------------------------------


@dataclass(frozen=True)
class PartHeader:
    part_size: int
    part_x: int
    part_y: int
    part_rotation: int
    visibility: int
    part_group_name_size: int
    part_group_name: str

    def to_dict(self) -> dict:
        return {
            "part_size": self.part_size,
            "part_x": self.part_x,
            "part_y": self.part_y,
            "part_rotation": self.part_rotation,
            "visibility": self.visibility,
            "part_group_name_size": self.part_group_name_size,
            "part_group_name": self.part_group_name,
        }


@dataclass(frozen=True)
class PartArc:
    """Sub-type 0x01; only the anchor point is understood, the rest is skipped."""

    block_size: int
    layer: int
    x1: int
    y1: int
    padding_size: int

    TAG = 0x01

    def to_dict(self) -> dict:
        return {
            "type": "sub_type_01",
            "sub_type_identifier_01": self.TAG,
            "block_size": self.block_size,
            "layer": self.layer,
            "x1": self.x1,
            "y1": self.y1,
            "padding_size": self.padding_size,
        }


@dataclass(frozen=True)
class PartLine:
    block_size: int
    layer: int
    x1: int
    y1: int
    x2: int
    y2: int
    scale: int

    TAG = 0x05

    def to_dict(self) -> dict:
        return {
            "type": "sub_type_05",
            "sub_type_identifier_05": self.TAG,
            "block_size": self.block_size,
            "layer": self.layer,
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "scale": self.scale,
        }


@dataclass(frozen=True)
class PartLabel:
    block_size: int
    layer: int
    x: int
    y: int
    font_size: int
    font_scale: int
    visibility: int
    label_size: int
    label: str

    TAG = 0x06

    def to_dict(self) -> dict:
        return {
            "type": "sub_type_06",
            "sub_type_identifier_06": self.TAG,
            "block_size": self.block_size,
            "layer": self.layer,
            "x": self.x,
            "y": self.y,
            "font_size": self.font_size,
            "font_scale": self.font_scale,
            "visibility": self.visibility,
            "label_size": self.label_size,
            "label": self.label,
        }


@dataclass(frozen=True)
class Pin:
    un1: int
    x: int
    y: int
    un2: int
    pin_rotation: int
    pin_name_size: int
    pin_name: str
    width: int
    height: int
    pin_shape: int
    net_index: int
    # Start of the record inside the decrypted payload; not part of the wire shape.
    offset: int = field(default=0, compare=False)

    def to_dict(self) -> dict:
        return {
            "un1": self.un1,
            "x": self.x,
            "y": self.y,
            "un2": self.un2,
            "pin_rotation": self.pin_rotation,
            "pin_name_size": self.pin_name_size,
            "pin_name": self.pin_name,
            "height": self.height,
            "width": self.width,
            "pin_shape": self.pin_shape,
            "netIndex": self.net_index,
        }

    @classmethod
    def from_dict(cls, body: dict) -> Pin:
        return cls(
            un1=body["un1"],
            x=body["x"],
            y=body["y"],
            un2=body["un2"],
            pin_rotation=body["pin_rotation"],
            pin_name_size=body.get("pin_name_size", len(body["pin_name"].encode("utf-8"))),
            pin_name=body["pin_name"],
            width=body["width"],
            height=body["height"],
            pin_shape=body["pin_shape"],
            net_index=body.get("netIndex", body.get("net_index", 0)),
        )


@dataclass(frozen=True)
class PinArray:
    block_size: int
    pins: Tuple[Pin, ...]

    TAG = 0x09

    def to_dict(self) -> dict:
        return {
            "type": "sub_type_09",
            "sub_type_identifier_09": self.TAG,
            "block_size": self.block_size,
            "pins": [pin.to_dict() for pin in self.pins],
        }


SubBlock = Union[PartArc, PartLine, PartLabel, PinArray]


@dataclass(frozen=True)
class PartPayload:
    header: PartHeader
    sub_blocks: Tuple[SubBlock, ...]
    complete: bool = True
    stop_reason: Optional[str] = None

    @property
    def pins(self) -> List[Pin]:
        return [pin for block in self.sub_blocks if isinstance(block, PinArray) for pin in block.pins]

    @property
    def lines(self) -> List[PartLine]:
        return [block for block in self.sub_blocks if isinstance(block, PartLine)]

    @property
    def labels(self) -> List[PartLabel]:
        return [block for block in self.sub_blocks if isinstance(block, PartLabel)]

    def to_dict(self) -> dict:
        return {
            "header": self.header.to_dict(),
            "sub_blocks": [block.to_dict() for block in self.sub_blocks],
        }

    @classmethod
    def from_dict(cls, body: dict) -> PartPayload:
        raw_header = dict(body["header"])
        raw_header.setdefault(
            "part_group_name_size", len(raw_header.get("part_group_name", "").encode("utf-8"))
        )
        header = PartHeader(**{name: raw_header[name] for name in _field_names(PartHeader)})
        return cls(header=header, sub_blocks=tuple(_sub_block_from_dict(item) for item in body["sub_blocks"]))


@dataclass(frozen=True)
class DataBlock:
    block_size: int
    encrypted_data: bytes
    decrypted_data: bytes
    parsed_data: Optional[PartPayload]
    status: DecodeStatus = DecodeStatus.OK
    reason: Optional[str] = None

    KIND = "DATA"

    def to_dict(self) -> dict:
        return {
            self.KIND: {
                "block_size": self.block_size,
                "encrypted_data": list(self.encrypted_data),
                "decrypted_data": list(self.decrypted_data),
                "parsed_data": self.parsed_data.to_dict() if self.parsed_data is not None else None,
            }
        }

    @classmethod
    def from_dict(cls, body: dict) -> DataBlock:
        parsed = body.get("parsed_data")
        return cls(
            block_size=body["block_size"],
            encrypted_data=bytes(body.get("encrypted_data", [])),
            decrypted_data=bytes(body.get("decrypted_data", [])),
            parsed_data=PartPayload.from_dict(parsed) if parsed else None,
        )


TopLevelBlock = Union[ArcBlock, ViaBlock, SegmentBlock, TextBlock, DataBlock]

BLOCK_TYPES: Dict[str, Any] = {
    cls.KIND: cls for cls in (ArcBlock, ViaBlock, SegmentBlock, TextBlock, DataBlock)
}


@dataclass(frozen=True)
class ScanEvent:
    """One step of the top-level scan, emitted or not."""

    offset: int
    tag: Optional[int]
    kind: str
    size: Optional[int] = None
    note: Optional[str] = None

    def describe(self) -> str:
        tag = "--" if self.tag is None else f"{self.tag:02X}"
        parts = [f"off=0x{self.offset:06X}", f"tag={tag}", f"kind={self.kind}"]
        if self.size is not None:
            parts.append(f"size={self.size}")
        if self.note:
            parts.append(self.note)
        return " | ".join(parts)


@dataclass(frozen=True)
class BoardFile:
    header: Optional[FileHeader]
    blocks: Tuple[TopLevelBlock, ...]
    xor: Optional[XorInfo] = None
    end_offset: int = 0
    stop_reason: Optional[str] = None
    events: Tuple[ScanEvent, ...] = ()

    @property
    def status(self) -> DecodeStatus:
        if self.stop_reason is not None:
            return DecodeStatus.PARTIAL
        if any(block.status is not DecodeStatus.OK for block in self.data_blocks):
            return DecodeStatus.DEGRADED
        return DecodeStatus.OK

    def iter_kind(self, kind: str) -> Iterator[TopLevelBlock]:
        return (block for block in self.blocks if block.KIND == kind)

    @property
    def arcs(self) -> List[ArcBlock]:
        return list(self.iter_kind(ArcBlock.KIND))

    @property
    def vias(self) -> List[ViaBlock]:
        return list(self.iter_kind(ViaBlock.KIND))

    @property
    def segments(self) -> List[SegmentBlock]:
        return list(self.iter_kind(SegmentBlock.KIND))

    @property
    def texts(self) -> List[TextBlock]:
        return list(self.iter_kind(TextBlock.KIND))

    @property
    def data_blocks(self) -> List[DataBlock]:
        return list(self.iter_kind(DataBlock.KIND))

    @property
    def parts(self) -> List[PartPayload]:
        return [block.parsed_data for block in self.data_blocks if block.parsed_data is not None]

    def to_dict(self) -> dict:
        return {"main_data_block": [block.to_dict() for block in self.blocks]}


def board_from_dict(document: dict) -> BoardFile:
    """Rebuild a ``BoardFile`` from an already decoded ``{"main_data_block": [...]}`` document."""

    blocks: List[TopLevelBlock] = []
    for entry in document.get("main_data_block", []):
        for kind, body in entry.items():
            cls = BLOCK_TYPES.get(kind)
            if cls is None:
                continue
            blocks.append(cls.from_dict(body))
    return BoardFile(header=None, blocks=tuple(blocks))


def _field_names(cls) -> List[str]:
    return [name for name in cls.__dataclass_fields__]


def _sub_block_from_dict(body: dict) -> SubBlock:
    kind = body.get("type")
    if kind == "sub_type_01":
        return PartArc(
            block_size=body["block_size"],
            layer=body["layer"],
            x1=body["x1"],
            y1=body["y1"],
            padding_size=body.get("padding_size", max(0, body["block_size"] - 12)),
        )
    if kind == "sub_type_05":
        return PartLine(**{name: body[name] for name in _field_names(PartLine)})
    if kind == "sub_type_06":
        values = dict(body)
        values.setdefault("label_size", len(values.get("label", "").encode("utf-8")))
        return PartLabel(**{name: values[name] for name in _field_names(PartLabel)})
    if kind == "sub_type_09":
        return PinArray(block_size=body["block_size"], pins=tuple(Pin.from_dict(pin) for pin in body["pins"]))
    raise ValueError(f"unknown part sub-block type: {kind!r}")
