"""Server side producer of data messages."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Mapping

from mediasoup.data_consumer import (
    PPID_WEBRTC_BINARY,
    PPID_WEBRTC_STRING,
    PPID_WEBRTC_STRING_EMPTY,
    DataConsumerType,
    _prepare_message,
)
from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData
from mediasoup.log import new_logger

DataProducerType = DataConsumerType

__all__ = [
    "PPID_WEBRTC_BINARY",
    "PPID_WEBRTC_STRING",
    "DataProducer",
    "DataProducerOptions",
    "DataProducerStat",
    "DataProducerType",
]


@dataclass
class DataProducerOptions:
    """Options for producing data."""

    id: str = ""
    sctp_stream_parameters: Any = None
    label: str = ""
    protocol: str = ""
    app_data: Any = None


@dataclass
class DataProducerStat:
    """Statistics reported by the worker for a data producer."""

    type: str = ""
    timestamp: int = 0
    label: str = ""
    protocol: str = ""
    messages_received: int = 0
    bytes_received: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DataProducerStat:
        data = data or {}
        return cls(
            type=str(data.get("type", "")),
            timestamp=int(data.get("timestamp", 0)),
            label=str(data.get("label", "")),
            protocol=str(data.get("protocol", "")),
            messages_received=int(data.get("messagesReceived", 0)),
            bytes_received=int(data.get("bytesReceived", 0)),
        )


def _decode(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray, str)):
        return json.loads(data) if data else None
    return data


class DataProducer(EventEmitter):
    """A producer of data messages.

    Emits ``transportclose`` and ``@close``. Its observer emits ``close``.
    """

    def __init__(
        self,
        internal: InternalData,
        data_type: DataConsumerType | str,
        channel: Any,
        payload_channel: Any,
        sctp_stream_parameters: Any = None,
        label: str = "",
        protocol: str = "",
        app_data: Any = None,
    ) -> None:
        super().__init__()
        self._logger = new_logger("DataProducer")
        self._logger.debug("constructor()")

        self._internal = internal
        self._type = DataProducerType(data_type)
        self._sctp_stream_parameters = sctp_stream_parameters
        self._label = label
        self._protocol = protocol
        self._channel = channel
        self._payload_channel = payload_channel
        self._app_data = {} if app_data is None else app_data
        self._observer = EventEmitter()
        self._state_lock = threading.Lock()
        self._closed = False

    @property
    def id(self) -> str:
        return self._internal.data_producer_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def type(self) -> DataConsumerType:
        return self._type

    @property
    def sctp_stream_parameters(self) -> Any:
        return self._sctp_stream_parameters

    @property
    def label(self) -> str:
        return self._label

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def app_data(self) -> Any:
        return self._app_data

    @property
    def observer(self) -> EventEmitter:
        return self._observer

    def _mark_closed(self) -> bool:
        with self._state_lock:
            if self._closed:
                return False
            self._closed = True
            return True

    def close(self) -> None:
        """Close the data producer; a failing worker request is raised afterwards."""
        if not self._mark_closed():
            return
        self._logger.debug("close()")
        self._channel.remove_all_listeners(self.id)
        self._payload_channel.remove_all_listeners(self.id)

        error: Exception | None = None
        try:
            self._channel.request("dataProducer.close", self._internal)
        except Exception as exc:  # noqa: BLE001 - closing must complete first
            self._logger.error("dataProducer close error: %s", exc)
            error = exc

        self.emit("@close")
        self.remove_all_listeners()
        self._observer.safe_emit("close")
        self._observer.remove_all_listeners()

        if error is not None:
            raise error

    def transport_closed(self) -> None:
        """Called when the owning transport was closed."""
        if not self._mark_closed():
            return
        self._logger.debug("transportClosed()")
        self.safe_emit("transportclose")
        self.remove_all_listeners()
        self._observer.safe_emit("close")
        self._observer.remove_all_listeners()

    def dump(self) -> Any:
        """Return the worker's dump of this data producer."""
        self._logger.debug("dump()")
        return _decode(self._channel.request("dataProducer.dump", self._internal))

    def get_stats(self) -> list[DataProducerStat]:
        """Return the data producer's statistics."""
        self._logger.debug("getStats()")
        stats = _decode(self._channel.request("dataProducer.getStats", self._internal)) or []
        return [DataProducerStat.from_dict(item) for item in stats]

    def send(self, data: bytes, ppid: int | None = None) -> None:
        """Send a binary message; the PPID defaults to WebRTC binary (or binary empty)."""
        payload, ppid = _prepare_message(data, ppid)
        self._payload_channel.notify("dataProducer.send", self._internal, {"ppid": ppid}, payload)

    def send_text(self, message: str) -> None:
        """Send a text message."""
        ppid = PPID_WEBRTC_STRING if message else PPID_WEBRTC_STRING_EMPTY
        self.send(message.encode("utf-8"), ppid)