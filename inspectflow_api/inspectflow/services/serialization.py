"""
JSON (de)serialization of packet state.

Output uses the camelCase keys the client stores, is deterministic for a given
value, and re-serializing a deserialized document reproduces it exactly. Callers
decide when to write; nothing here knows about timers or debouncing.
"""

from __future__ import annotations

from typing import Dict, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

from inspectflow.schemas.gauges import GaugeUseRecord
from inspectflow.schemas.packets import InspectionReport, Packet, PacketMeta

ModelT = TypeVar("ModelT", bound=BaseModel)

_GAUGE_USES = TypeAdapter(Dict[str, GaugeUseRecord])


def dump(model: BaseModel) -> str:
    return model.model_dump_json(by_alias=True)


def load(model_cls: Type[ModelT], text: str | bytes) -> ModelT:
    """Raises pydantic.ValidationError on malformed documents."""
    return model_cls.model_validate_json(text)


# PUBLIC_INTERFACE
def serialize_packet(packet: Packet) -> str:
    return dump(packet)


# PUBLIC_INTERFACE
def deserialize_packet(text: str | bytes) -> Packet:
    return load(Packet, text)


def serialize_report(report: InspectionReport) -> str:
    return dump(report)


def deserialize_report(text: str | bytes) -> InspectionReport:
    return load(InspectionReport, text)


def serialize_meta(meta: PacketMeta) -> str:
    return dump(meta)


def deserialize_meta(text: str | bytes) -> PacketMeta:
    return load(PacketMeta, text)


def serialize_gauge_uses(uses: Dict[str, GaugeUseRecord]) -> str:
    return _GAUGE_USES.dump_json(uses, by_alias=True).decode("utf-8")


def deserialize_gauge_uses(text: str | bytes) -> Dict[str, GaugeUseRecord]:
    return _GAUGE_USES.validate_json(text)
