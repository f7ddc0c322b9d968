"""Server side consumer of a data producer's messages."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData
from mediasoup.log import new_logger

# SCTP payload protocol identifiers used for WebRTC data channels.
PPID_WEBRTC_STRING = 51
PPID_WEBRTC_BINARY = 53
PPID_WEBRTC_STRING_EMPTY = 56
PPID_WEBRTC_BINARY_EMPTY = 57

_EMPTY_PPIDS = frozenset({PPID_WEBRTC_STRING_EMPTY, PPID_WEBRTC_BINARY_EMPTY})


class DataConsumerType(str, Enum):
    """How data is carried: over SCTP or directly."""

    SCTP = "sctp"
    DIRECT = "direct"


@dataclass
class DataConsumerOptions:
    """Options for consuming a data producer.

    ``ordered``, ``max_packet_life_time`` and ``max_retransmits`` only apply
    when consuming over SCTP.
    """

    data_producer_id: str = ""
    ordered: bool | None = None
    max_packet_life_time: int = 0
    max_retransmits: int = 0
    app_data: Any = None


@dataclass
class DataConsumerStat:
    """Statistics reported by the worker for a data consumer."""

    type: str = ""
    timestamp: int = 0
    label: str = ""
    protocol: str = ""
    messages_sent: int = 0
    bytes_sent: int = 0
    buffered_amount: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DataConsumerStat:
        data = data or {}
        return cls(
            type=str(data.get("type", "")),
            timestamp=int(data.get("timestamp", 0)),
            label=str(data.get("label", "")),
            protocol=str(data.get("protocol", "")),
            messages_sent=int(data.get("messagesSent", 0)),
            bytes_sent=int(data.get("bytesSent", 0)),
            buffered_amount=int(data.get("bufferedAmount", 0)),
        )


def _decode(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray, str)):
        return json.loads(data) if data else None
    return data


def _buffered_amount(data: Any) -> int:
    decoded = _decode(data)
    if not isinstance(decoded, Mapping):
        return 0
    return int(decoded.get("bufferedAmount", decoded.get("bufferAmount", 0)))


def _prepare_message(data: bytes, ppid: int | None) -> tuple[bytes, int]:
    """Choose the PPID for ``data`` and replace empty messages by one byte."""
    if ppid is None:
        ppid = PPID_WEBRTC_BINARY if data else PPID_WEBRTC_BINARY_EMPTY
    if ppid in _EMPTY_PPIDS:
        data = b"\x00"
    return bytes(data), ppid


class DataConsumer(EventEmitter):
    """A consumer of a data producer's messages.

    Emits ``transportclose``, ``dataproducerclose``, ``message`` (payload,
    ppid), ``sctpsendbufferfull``, ``bufferedamountlow`` (amount),
    ``@close`` and ``@dataproducerclose``. Its observer emits ``close``.
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
        self._logger = new_logger("DataConsumer")
        self._logger.debug("constructor()")

        self._internal = internal
        self._type = DataConsumerType(data_type)
        self._sctp_stream_parameters = sctp_stream_parameters
        self._label = label
        self._protocol = protocol
        self._channel = channel
        self._payload_channel = payload_channel
        self._app_data = {} if app_data is None else app_data
        self._observer = EventEmitter()
        self._state_lock = threading.Lock()
        self._closed = False

        self._handle_worker_notifications()

    @property
    def id(self) -> str:
        return self._internal.data_consumer_id

    @property
    def data_producer_id(self) -> str:
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

    def _unsubscribe(self) -> None:
        self._channel.remove_all_listeners(self.id)
        self._payload_channel.remove_all_listeners(self.id)

    def _finish_observer(self) -> None:
        self._observer.safe_emit("close")
        self._observer.remove_all_listeners()

    def close(self) -> None:
        """Close the data consumer; a failing worker request is raised afterwards."""
        if not self._mark_closed():
            return
        self._logger.debug("close()")
        self._unsubscribe()

        error: Exception | None = None
        try:
            self._channel.request("dataConsumer.close", self._internal)
        except Exception as exc:  # noqa: BLE001 - closing must complete first
            self._logger.error("dataConsumer close error: %s", exc)
            error = exc

        self.emit("@close")
        self.remove_all_listeners()
        self._finish_observer()

        if error is not None:
            raise error

    def transport_closed(self) -> None:
        """Called when the owning transport was closed."""
        if not self._mark_closed():
            return
        self._logger.debug("transportClosed()")
        self._unsubscribe()
        self.safe_emit("transportclose")
        self.remove_all_listeners()
        self._finish_observer()

    def dump(self) -> Any:
        """Return the worker's dump of this data consumer."""
        self._logger.debug("dump()")
        return _decode(self._channel.request("dataConsumer.dump", self._internal))

    def get_stats(self) -> list[DataConsumerStat]:
        """Return the data consumer's statistics."""
        self._logger.debug("getStats()")
        stats = _decode(self._channel.request("dataConsumer.getStats", self._internal)) or []
        return [DataConsumerStat.from_dict(item) for item in stats]

    def set_buffered_amount_low_threshold(self, threshold: int) -> None:
        """Set the threshold below which 'bufferedamountlow' is emitted."""
        self._logger.debug("setBufferedAmountLowThreshold() [threshold:%s]", threshold)
        self._channel.request(
            "dataConsumer.setBufferedAmountLowThreshold", self._internal, {"threshold": threshold}
        )

    def send(self, data: bytes, ppid: int | None = None) -> None:
        """Send a binary message; the PPID defaults to WebRTC binary (or binary empty)."""
        payload, ppid = _prepare_message(data, ppid)
        self._payload_channel.request("dataConsumer.send", self._internal, {"ppid": ppid}, payload)

    def send_text(self, message: str) -> None:
        """Send a text message."""
        ppid = PPID_WEBRTC_STRING if message else PPID_WEBRTC_STRING_EMPTY
        self.send(message.encode("utf-8"), ppid)

    def get_buffered_amount(self) -> int:
        """Return the number of bytes buffered in the worker."""
        self._logger.debug("getBufferedAmount()")
        return _buffered_amount(self._channel.request("dataConsumer.getBufferedAmount", self._internal))

    def _handle_worker_notifications(self) -> None:
        self._channel.on(self.id, self._on_channel_event)
        self._payload_channel.on(self.id, self._on_payload_event)

    def _on_channel_event(self, event: str, data: Any = None) -> None:
        if event == "dataproducerclose":
            if self._mark_closed():
                self._unsubscribe()
                self.emit("@dataproducerclose")
                self.safe_emit("dataproducerclose")
                self.remove_all_listeners()
                self._finish_observer()
        elif event == "sctpsendbufferfull":
            self.safe_emit("sctpsendbufferfull")
        elif event == "bufferedamountlow":
            self.safe_emit("bufferedamountlow", _buffered_amount(data))
        else:
            self._logger.error('ignoring unknown event "%s" in channel listener', event)

    def _on_payload_event(self, event: str, data: Any = None, payload: bytes = b"") -> None:
        if event == "message":
            if self._closed:
                return
            decoded = _decode(data)
            ppid = int(decoded.get("ppid", 0)) if isinstance(decoded, Mapping) else 0
            self.safe_emit("message", payload, ppid)
        else:
            self._logger.error('ignoring unknown event "%s" in payload channel listener', event)