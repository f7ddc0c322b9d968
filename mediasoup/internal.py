"""Identifiers that address an entity inside the worker."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

_WIRE_NAMES = {
    "router_id": "routerId",
    "transport_id": "transportId",
    "producer_id": "producerId",
    "consumer_id": "consumerId",
    "data_producer_id": "dataProducerId",
    "data_consumer_id": "dataConsumerId",
    "rtp_observer_id": "rtpObserverId",
}
_FIELD_NAMES = {wire: name for name, wire in _WIRE_NAMES.items()}


@dataclass(frozen=True)
class InternalData:
    """The ``internal`` part of a worker request."""

    router_id: str = ""
    transport_id: str = ""
    producer_id: str = ""
    consumer_id: str = ""
    data_producer_id: str = ""
    data_consumer_id: str = ""
    rtp_observer_id: str = ""

    def to_dict(self) -> dict[str, str]:
        """Wire form with camelCase keys; empty identifiers are left out."""
        result = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value:
                result[_WIRE_NAMES[item.name]] = value
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InternalData:
        """Build from the wire form, ignoring unknown keys."""
        return cls(**{_FIELD_NAMES[key]: str(value) for key, value in data.items() if key in _FIELD_NAMES})