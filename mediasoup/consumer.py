"""Server side consumer of a producer's media."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData
from mediasoup.log import new_logger


class ConsumerType(str, Enum):
    """Kinds of consumer the worker creates."""

    SIMPLE = "simple"
    SIMULCAST = "simulcast"
    SVC = "svc"
    PIPE = "pipe"


class ConsumerTraceEventType(str, Enum):
    """Valid types for the 'trace' event."""

    RTP = "rtp"
    KEYFRAME = "keyframe"
    NACK = "nack"
    PLI = "pli"
    FIR = "fir"


@dataclass
class ConsumerScore:
    """Scores of the consumer's stream and of the producer's streams."""

    score: int = 0
    producer_score: int = 0
    producer_scores: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ConsumerScore:
        data = data or {}
        return cls(
            score=int(data.get("score", 0)),
            producer_score=int(data.get("producerScore", 0)),
            producer_scores=[int(value) for value in data.get("producerScores") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"score": self.score, "producerScore": self.producer_score}
        if self.producer_scores:
            result["producerScores"] = list(self.producer_scores)
        return result


@dataclass
class ConsumerLayers:
    """Spatial and temporal layer indexes (from 0 to N)."""

    spatial_layer: int = 0
    temporal_layer: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ConsumerLayers:
        data = data or {}
        return cls(
            spatial_layer=int(data.get("spatialLayer", 0)),
            temporal_layer=int(data.get("temporalLayer", 0)),
        )

    def to_dict(self) -> dict[str, int]:
        return {"spatialLayer": self.spatial_layer, "temporalLayer": self.temporal_layer}


@dataclass
class ConsumerTraceEventData:
    """Payload of the 'trace' event."""

    type: ConsumerTraceEventType | str = ""
    timestamp: int = 0
    direction: str = ""
    info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ConsumerTraceEventData:
        data = data or {}
        raw_type = data.get("type", "")
        try:
            trace_type: ConsumerTraceEventType | str = ConsumerTraceEventType(raw_type)
        except ValueError:
            trace_type = raw_type
        return cls(
            type=trace_type,
            timestamp=int(data.get("timestamp", 0)),
            direction=str(data.get("direction", "")),
            info=dict(data.get("info") or {}),
        )


@dataclass
class ConsumerOptions:
    """Options for consuming a producer."""

    producer_id: str = ""
    rtp_capabilities: Any = None
    paused: bool = False
    preferred_layers: ConsumerLayers | None = None
    pipe: bool = False
    app_data: Any = None


def _decode(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray, str)):
        return json.loads(data) if data else None
    return data


class Consumer(EventEmitter):
    """A consumer of a producer's RTP streams.

    Emits ``transportclose``, ``producerclose``, ``producerpause``,
    ``producerresume``, ``score``, ``layerschange``, ``rtp``, ``trace``,
    ``@close`` and ``@producerclose``. Its observer emits ``close``,
    ``pause``, ``resume``, ``score``, ``layerschange`` and ``trace``.
    """

    def __init__(
        self,
        internal: InternalData,
        kind: str,
        consumer_type: ConsumerType | str,
        rtp_parameters: Any,
        channel: Any,
        payload_channel: Any,
        app_data: Any = None,
        paused: bool = False,
        producer_paused: bool = False,
        score: ConsumerScore | None = None,
        preferred_layers: ConsumerLayers | None = None,
    ) -> None:
        super().__init__()
        self._logger = new_logger("Consumer")
        self._logger.debug("constructor()")

        if score is None or score == ConsumerScore():
            score = ConsumerScore(score=10, producer_score=10, producer_scores=[])

        self._internal = internal
        self._kind = kind
        self._type = ConsumerType(consumer_type)
        self._rtp_parameters = rtp_parameters
        self._channel = channel
        self._payload_channel = payload_channel
        self._app_data = {} if app_data is None else app_data
        self._paused = paused
        self._producer_paused = producer_paused
        self._priority = 1
        self._score = score
        self._preferred_layers = preferred_layers
        self._current_layers: ConsumerLayers | None = None
        self._observer = EventEmitter()
        self._state_lock = threading.RLock()
        self._closed = False

        self._handle_worker_notifications()

    @property
    def id(self) -> str:
        return self._internal.consumer_id

    @property
    def consumer_id(self) -> str:
        return self._internal.consumer_id

    @property
    def producer_id(self) -> str:
        return self._internal.producer_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def rtp_parameters(self) -> Any:
        return self._rtp_parameters

    @property
    def type(self) -> ConsumerType:
        return self._type

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def producer_paused(self) -> bool:
        return self._producer_paused

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def score(self) -> ConsumerScore:
        return self._score

    @property
    def preferred_layers(self) -> ConsumerLayers | None:
        return self._preferred_layers

    @property
    def current_layers(self) -> ConsumerLayers | None:
        return self._current_layers

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
        """Close the consumer; a failing worker request is raised afterwards."""
        if not self._mark_closed():
            return
        self._logger.debug("close()")
        self._unsubscribe()

        error: Exception | None = None
        try:
            self._channel.request("consumer.close", self._internal)
        except Exception as exc:  # noqa: BLE001 - closing must complete first
            self._logger.error("consumer close error: %s", exc)
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
        """Return the worker's dump of this consumer."""
        self._logger.debug("dump()")
        return self._channel.request("consumer.dump", self._internal)

    def get_stats(self) -> list[Any]:
        """Return the consumer's statistics."""
        self._logger.debug("getStats()")
        return list(self._channel.request("consumer.getStats", self._internal) or [])

    def pause(self) -> None:
        """Pause the consumer."""
        self._logger.debug("pause()")
        with self._state_lock:
            was_paused = self._paused or self._producer_paused
        self._channel.request("consumer.pause", self._internal)
        with self._state_lock:
            self._paused = True
        if not was_paused:
            self._observer.safe_emit("pause")

    def resume(self) -> None:
        """Resume the consumer."""
        self._logger.debug("resume()")
        with self._state_lock:
            was_paused = self._paused or self._producer_paused
        self._channel.request("consumer.resume", self._internal)
        with self._state_lock:
            self._paused = False
            producer_paused = self._producer_paused
        if was_paused and not producer_paused:
            self._observer.safe_emit("resume")

    def set_preferred_layers(self, layers: ConsumerLayers) -> None:
        """Set preferred video layers; the worker's effective choice is kept."""
        self._logger.debug("setPreferredLayers()")
        response = self._channel.request("consumer.setPreferredLayers", self._internal, layers.to_dict())
        response = _decode(response)
        self._preferred_layers = ConsumerLayers.from_dict(response) if response else None

    def set_priority(self, priority: int) -> None:
        """Set the consumer's priority."""
        self._logger.debug("setPriority()")
        response = self._channel.request("consumer.setPriority", self._internal, {"priority": priority})
        response = _decode(response)
        self._priority = int(response.get("priority", 0)) if isinstance(response, Mapping) else 0

    def unset_priority(self) -> None:
        """Reset the priority to 1."""
        self._logger.debug("unsetPriority()")
        self.set_priority(1)

    def request_key_frame(self) -> None:
        """Ask the producer for a key frame."""
        self._logger.debug("requestKeyFrame()")
        self._channel.request("consumer.requestKeyFrame", self._internal)

    def enable_trace_event(self, *args: ConsumerTraceEventType | str) -> None:
        """Enable the 'trace' event for the given types (none disables it)."""
        self._logger.debug("enableTraceEvent()")
        types = [item.value if isinstance(item, Enum) else str(item) for item in args]
        self._channel.request("consumer.enableTraceEvent", self._internal, {"types": types})

    def _handle_worker_notifications(self) -> None:
        self._channel.on(self.id, self._on_channel_event)
        self._payload_channel.on(self.id, self._on_payload_event)

    def _on_channel_event(self, event: str, data: Any = None) -> None:
        if event == "producerclose":
            if self._mark_closed():
                self._unsubscribe()
                self.emit("@producerclose")
                self.safe_emit("producerclose")
                self.remove_all_listeners()
                self._finish_observer()

        elif event == "producerpause":
            with self._state_lock:
                if self._producer_paused:
                    return
                was_paused = self._paused or self._producer_paused
                self._producer_paused = True
            self.safe_emit("producerpause")
            if not was_paused:
                self._observer.safe_emit("pause")

        elif event == "producerresume":
            with self._state_lock:
                if not self._producer_paused:
                    return
                was_paused = self._paused or self._producer_paused
                self._producer_paused = False
                paused = self._paused
            self.safe_emit("producerresume")
            if was_paused and not paused:
                self._observer.safe_emit("resume")

        elif event == "score":
            score = ConsumerScore.from_dict(_decode(data))
            self._score = score
            self.safe_emit("score", score)
            self._observer.safe_emit("score", score)

        elif event == "layerschange":
            decoded = _decode(data)
            layers = ConsumerLayers.from_dict(decoded) if decoded else None
            self._current_layers = layers
            self.safe_emit("layerschange", layers)
            self._observer.safe_emit("layerschange", layers)

        elif event == "trace":
            trace = ConsumerTraceEventData.from_dict(_decode(data))
            self.safe_emit("trace", trace)
            self._observer.safe_emit("trace", trace)

        else:
            self._logger.error('ignoring unknown event "%s" in channel listener', event)

    def _on_payload_event(self, event: str, data: Any = None, payload: bytes = b"") -> None:
        if event == "rtp":
            if self._closed:
                return
            self.safe_emit("rtp", payload)
        else:
            self._logger.error('ignoring unknown event "%s" in payload channel listener', event)