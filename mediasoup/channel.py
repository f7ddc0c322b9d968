"""Request/notification channel to a worker over a pair of sockets."""

from __future__ import annotations

import dataclasses
import enum
import json
import socket
import threading
from concurrent import futures
from dataclasses import dataclass, field
from typing import Any, Mapping

from mediasoup.errors import InvalidStateError, MediasoupError, MediasoupTypeError
from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData
from mediasoup.log import new_logger
from mediasoup.netstring import Decoder, encode

# Netstring length for a 4194304 bytes payload.
NS_MESSAGE_MAX_LEN = 4194313
NS_PAYLOAD_MAX_LEN = 4194304

_MAX_REQUEST_ID = 4294967295
_READ_CHUNK = 65536


@dataclass
class _Sent:
    id: int
    method: str
    future: futures.Future = field(default_factory=futures.Future)


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"cannot serialise {type(value).__name__}")


def _internal_to_wire(internal: InternalData | Mapping[str, Any] | None) -> Any:
    if internal is None:
        return None
    if isinstance(internal, InternalData):
        return internal.to_dict()
    return dict(internal)


class Channel(EventEmitter):
    """Sends JSON requests to a worker and dispatches its notifications.

    Notifications are emitted under their ``targetId`` with the arguments
    ``(event, data)``, where ``data`` is the decoded JSON value or None.
    """

    def __init__(self, producer_socket: socket.socket, consumer_socket: socket.socket, pid: int) -> None:
        super().__init__()
        self._logger = new_logger("Channel")
        self._logger.debug("constructor()")
        self._producer_socket = producer_socket
        self._consumer_socket = consumer_socket
        self._pid = pid
        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._closed = False
        self._next_id = 0
        self._sents: dict[int, _Sent] = {}
        self._reader = threading.Thread(target=self._read_loop, name=f"mediasoup-channel-{pid}", daemon=True)
        self._reader.start()

    @property
    def pid(self) -> int:
        return self._pid

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> Channel:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close both sockets and fail every pending request."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            pending = list(self._sents.values())

        self._logger.debug("close()")

        for sock in (self._producer_socket, self._consumer_socket):
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                sock.close()
            except OSError:
                pass

        for sent in pending:
            self._settle(sent, error=InvalidStateError("Channel closed"))

        self.remove_all_listeners()

    def request(
        self,
        method: str,
        internal: InternalData | Mapping[str, Any] | None = None,
        data: Any = None,
    ) -> Any:
        """Send a request and wait for the worker's answer.

        Returns the response data (None when there is none). Raises
        InvalidStateError when the channel is or becomes closed,
        MediasoupTypeError or MediasoupError when the worker rejects the
        request, and TimeoutError when no answer arrives in time.
        """
        with self._state_lock:
            if self._closed:
                raise InvalidStateError("Channel closed")
            if self._next_id < _MAX_REQUEST_ID:
                self._next_id += 1
            else:
                self._next_id = 1
            request_id = self._next_id
            sent = _Sent(request_id, method)
            self._sents[request_id] = sent
            size = len(self._sents)

        self._logger.debug("request() [method:%s, id:%d]", method, request_id)

        try:
            message: dict[str, Any] = {
                "id": request_id,
                "method": method,
                "internal": _internal_to_wire(internal),
            }
            if data is not None:
                message["data"] = data
            raw = json.dumps(message, separators=(",", ":"), default=_json_default).encode()
            ns = encode(raw)
            if len(ns) > NS_MESSAGE_MAX_LEN:
                raise MediasoupError("Channel request too big")

            with self._write_lock:
                self._producer_socket.sendall(ns)

            timeout = 15 + 0.1 * size
            try:
                return sent.future.result(timeout=timeout)
            except futures.TimeoutError:
                raise TimeoutError("Channel request timeout") from None
        finally:
            with self._state_lock:
                self._sents.pop(request_id, None)

    @staticmethod
    def _settle(sent: _Sent, *, result: Any = None, error: BaseException | None = None) -> None:
        try:
            if error is not None:
                sent.future.set_exception(error)
            else:
                sent.future.set_result(result)
        except futures.InvalidStateError:
            pass

    def _read_loop(self) -> None:
        decoder = Decoder()
        while True:
            try:
                chunk = self._consumer_socket.recv(_READ_CHUNK)
            except OSError as exc:
                if not self._closed:
                    self._logger.error("Channel error: %s", exc)
                break
            if not chunk:
                if not self._closed:
                    self._logger.error("Channel error: connection closed")
                break

            for payload in decoder.feed(chunk):
                try:
                    self._process_payload(payload)
                except Exception as exc:  # noqa: BLE001 - keep reading after a bad message
                    self._logger.error("processing payload failed: %s", exc)

            if decoder.length > NS_PAYLOAD_MAX_LEN:
                self._logger.error("receiving buffer is full, discarding all data into it")
                decoder.reset()

        self.close()

    def _process_payload(self, payload: bytes) -> None:
        if not payload:
            self._logger.warn("[pid:%d] unexpected empty data", self._pid)
            return
        kind = payload[:1]
        if kind == b"{":
            self._process_message(payload)
            return
        text = payload[1:].decode("utf-8", "replace")
        if kind == b"D":
            self._logger.debug("[pid:%d] %s", self._pid, text)
        elif kind == b"W":
            self._logger.warn("[pid:%d] %s", self._pid, text)
        elif kind == b"E":
            self._logger.error("[pid:%d] %s", self._pid, text)
        elif kind == b"X":
            print(text, flush=True)
        else:
            self._logger.warn("[pid:%d] unexpected data: %s", self._pid, text)

    def _process_message(self, payload: bytes) -> None:
        try:
            message = json.loads(payload)
        except ValueError:
            message = None
        if not isinstance(message, dict):
            message = {}

        message_id = message.get("id")
        if isinstance(message_id, int) and not isinstance(message_id, bool) and message_id > 0:
            with self._state_lock:
                sent = self._sents.get(message_id)
            if sent is None:
                self._logger.error("received response does not match any sent request [id:%d]", message_id)
                return

            if message.get("accepted"):
                self._logger.debug("request succeeded [method:%s, id:%d]", sent.method, sent.id)
                self._settle(sent, result=message.get("data"))
            elif message.get("error"):
                reason = str(message.get("reason") or "")
                self._logger.warn("request failed [method:%s, id:%d]: %s", sent.method, sent.id, reason)
                if message["error"] == "TypeError":
                    self._settle(sent, error=MediasoupTypeError(reason))
                else:
                    self._settle(sent, error=MediasoupError(reason))
            else:
                self._logger.error(
                    "received response is not accepted nor rejected [method:%s, id:%d]", sent.method, sent.id
                )
        elif message.get("targetId") and message.get("event"):
            self.safe_emit(str(message["targetId"]), message["event"], message.get("data"))
        else:
            self._logger.error("received message is not a response nor a notification")