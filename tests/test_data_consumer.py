import pytest

from mediasoup.data_consumer import (
    PPID_WEBRTC_BINARY,
    PPID_WEBRTC_BINARY_EMPTY,
    PPID_WEBRTC_STRING,
    PPID_WEBRTC_STRING_EMPTY,
    DataConsumer,
    DataConsumerStat,
    DataConsumerType,
)
from mediasoup.errors import InvalidStateError
from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData


class FakeChannel(EventEmitter):
    def __init__(self, responses=None, error=None):
        super().__init__()
        self.requests = []
        self.responses = responses or {}
        self.error = error

    def request(self, method, internal=None, data=None):
        self.requests.append((method, internal, data))
        if self.error is not None:
            raise self.error
        return self.responses.get(method)


class FakePayloadChannel(EventEmitter):
    def __init__(self):
        super().__init__()
        self.requests = []

    def request(self, method, internal, data, payload):
        self.requests.append((method, internal, data, payload))


INTERNAL = InternalData(
    router_id="router-a", transport_id="transport-a", data_producer_id="dp-a", data_consumer_id="dc-a"
)


def make(channel=None, payload_channel=None, **kwargs):
    channel = channel or FakeChannel()
    payload_channel = payload_channel or FakePayloadChannel()
    consumer = DataConsumer(INTERNAL, "sctp", channel, payload_channel, label="foo", protocol="bar", **kwargs)
    return consumer, channel, payload_channel


def test_properties():
    consumer, channel, payload_channel = make()
    assert consumer.id == "dc-a"
    assert consumer.data_producer_id == "dp-a"
    assert consumer.type is DataConsumerType.SCTP
    assert consumer.label == "foo"
    assert consumer.protocol == "bar"
    assert consumer.app_data == {}
    assert consumer.closed is False
    assert channel.listener_count("dc-a") == 1
    assert payload_channel.listener_count("dc-a") == 1


def test_close_sends_request_and_notifies():
    consumer, channel, payload_channel = make()
    closes = []
    internal_closes = []
    consumer.observer.once("close", lambda: closes.append(True))
    consumer.on("@close", lambda: internal_closes.append(True))
    consumer.close()
    consumer.close()
    assert consumer.closed is True
    assert channel.requests == [("dataConsumer.close", INTERNAL, None)]
    assert closes == [True]
    assert internal_closes == [True]
    assert channel.listener_count("dc-a") == 0
    assert payload_channel.listener_count("dc-a") == 0


def test_close_raises_worker_error_after_closing():
    channel = FakeChannel(error=InvalidStateError("Channel closed"))
    consumer, _, _ = make(channel=channel)
    closes = []
    consumer.observer.on("close", lambda: closes.append(True))
    with pytest.raises(InvalidStateError):
        consumer.close()
    assert consumer.closed is True
    assert closes == [True]


def test_transport_closed_emits_without_request():
    consumer, channel, _ = make()
    events = []
    consumer.on("transportclose", lambda: events.append("transportclose"))
    consumer.observer.on("close", lambda: events.append("close"))
    consumer.transport_closed()
    assert events == ["transportclose", "close"]
    assert channel.requests == []
    assert consumer.closed is True


def test_dataproducerclose_notification():
    consumer, channel, _ = make()
    events = []
    consumer.on("@dataproducerclose", lambda: events.append("@dataproducerclose"))
    consumer.on("dataproducerclose", lambda: events.append("dataproducerclose"))
    consumer.observer.on("close", lambda: events.append("close"))
    channel.emit("dc-a", "dataproducerclose", None)
    assert events == ["@dataproducerclose", "dataproducerclose", "close"]
    assert consumer.closed is True
    assert channel.listener_count("dc-a") == 0


def test_send_binary_uses_binary_ppid():
    consumer, _, payload_channel = make()
    consumer.send(b"hello")
    assert payload_channel.requests == [
        ("dataConsumer.send", INTERNAL, {"ppid": PPID_WEBRTC_BINARY}, b"hello")
    ]


def test_send_empty_binary_sends_one_byte():
    consumer, _, payload_channel = make()
    consumer.send(b"")
    _, _, data, payload = payload_channel.requests[0]
    assert data == {"ppid": PPID_WEBRTC_BINARY_EMPTY}
    assert payload == b"\x00"


def test_send_text_ppids():
    consumer, _, payload_channel = make()
    consumer.send_text("hi")
    consumer.send_text("")
    assert payload_channel.requests[0][2:] == ({"ppid": PPID_WEBRTC_STRING}, b"hi")
    assert payload_channel.requests[1][2:] == ({"ppid": PPID_WEBRTC_STRING_EMPTY}, b"\x00")


def test_send_explicit_ppid_is_kept():
    consumer, _, payload_channel = make()
    consumer.send(b"abc", PPID_WEBRTC_STRING)
    assert payload_channel.requests[0][2:] == ({"ppid": PPID_WEBRTC_STRING}, b"abc")


def test_get_stats():
    stat = {
        "type": "data-consumer",
        "timestamp": 1234,
        "label": "foo",
        "protocol": "bar",
        "messagesSent": 200,
        "bytesSent": 492,
    }
    channel = FakeChannel(responses={"dataConsumer.getStats": [stat]})
    consumer, _, _ = make(channel=channel)
    assert consumer.get_stats() == [
        DataConsumerStat(
            type="data-consumer", timestamp=1234, label="foo", protocol="bar", messages_sent=200, bytes_sent=492
        )
    ]


def test_get_buffered_amount_and_threshold():
    channel = FakeChannel(responses={"dataConsumer.getBufferedAmount": {"bufferedAmount": 2048}})
    consumer, _, _ = make(channel=channel)
    assert consumer.get_buffered_amount() == 2048
    consumer.set_buffered_amount_low_threshold(512)
    assert channel.requests[-1] == ("dataConsumer.setBufferedAmountLowThreshold", INTERNAL, {"threshold": 512})


def test_message_event_and_closed_ignore():
    consumer, _, payload_channel = make()
    received = []
    consumer.on("message", lambda payload, ppid: received.append((payload, ppid)))
    payload_channel.emit("dc-a", "message", {"ppid": PPID_WEBRTC_STRING}, b"1")
    assert received == [(b"1", PPID_WEBRTC_STRING)]


def test_bufferedamountlow_and_sctpsendbufferfull():
    consumer, channel, _ = make()
    events = []
    consumer.on("bufferedamountlow", lambda amount: events.append(amount))
    consumer.on("sctpsendbufferfull", lambda: events.append("full"))
    channel.emit("dc-a", "bufferedamountlow", {"bufferedAmount": 100})
    channel.emit("dc-a", "sctpsendbufferfull", None)
    assert events == [100, "full"]


def test_requests_fail_when_channel_fails():
    channel = FakeChannel(error=InvalidStateError("Channel closed"))
    consumer, _, _ = make(channel=channel)
    with pytest.raises(InvalidStateError):
        consumer.dump()
    with pytest.raises(InvalidStateError):
        consumer.get_stats()