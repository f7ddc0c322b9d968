import pytest

from mediasoup.data_producer import (
    PPID_WEBRTC_BINARY,
    PPID_WEBRTC_STRING,
    DataProducer,
    DataProducerStat,
    DataProducerType,
)
from mediasoup.errors import InvalidStateError
from mediasoup.events import EventEmitter
from mediasoup.internal import InternalData


class FakeChannel(EventEmitter):
    def __init__(self, responses=None):
        super().__init__()
        self.requests = []
        self.responses = responses or {}
        self.closed = False

    def request(self, method, internal=None, data=None):
        if self.closed:
            raise InvalidStateError("Channel closed")
        self.requests.append((method, internal, data))
        if method.endswith(".close"):
            self.closed = True
        return self.responses.get(method)


class FakePayloadChannel(EventEmitter):
    def __init__(self):
        super().__init__()
        self.notifications = []

    def notify(self, method, internal, data, payload):
        self.notifications.append((method, internal, data, payload))


INTERNAL = InternalData(router_id="router-a", transport_id="transport-a", data_producer_id="dp-a")


def make(channel=None):
    channel = channel or FakeChannel()
    payload_channel = FakePayloadChannel()
    producer = DataProducer(
        INTERNAL, "direct", channel, payload_channel, label="foo", protocol="bar", app_data={"foo": "bar"}
    )
    return producer, channel, payload_channel


def test_properties():
    producer, _, _ = make()
    assert producer.id == "dp-a"
    assert producer.type is DataProducerType.DIRECT
    assert producer.label == "foo"
    assert producer.protocol == "bar"
    assert producer.app_data == {"foo": "bar"}
    assert producer.closed is False


def test_send_messages_with_ppids_and_stats():
    num_messages = 200
    producer, channel, payload_channel = make()
    sent_bytes = 0
    for message_id in range(1, num_messages + 1):
        data = str(message_id).encode()
        if message_id < num_messages // 2:
            producer.send_text(data.decode())
        else:
            producer.send(data)
        sent_bytes += len(data)

    notes = payload_channel.notifications
    assert len(notes) == num_messages
    assert all(method == "dataProducer.send" for method, *_ in notes)
    for message_id, (_, _, data, payload) in enumerate(notes, start=1):
        assert int(payload) == message_id
        expected = PPID_WEBRTC_STRING if message_id < num_messages // 2 else PPID_WEBRTC_BINARY
        assert data == {"ppid": expected}
    assert sum(len(payload) for *_, payload in notes) == sent_bytes

    channel.responses["dataProducer.getStats"] = [
        {
            "type": "data-producer",
            "timestamp": 99,
            "label": "foo",
            "protocol": "bar",
            "messagesReceived": num_messages,
            "bytesReceived": sent_bytes,
        }
    ]
    stats = producer.get_stats()
    assert stats == [
        DataProducerStat(
            type="data-producer",
            timestamp=99,
            label=producer.label,
            protocol=producer.protocol,
            messages_received=num_messages,
            bytes_received=sent_bytes,
        )
    ]


def test_send_empty_uses_single_byte():
    producer, _, payload_channel = make()
    producer.send(b"")
    producer.send_text("")
    assert [note[3] for note in payload_channel.notifications] == [b"\x00", b"\x00"]
    assert [note[2]["ppid"] for note in payload_channel.notifications] == [57, 56]


def test_close_then_requests_fail():
    producer, channel, _ = make()
    closes = []
    producer.observer.once("close", lambda: closes.append(True))
    producer.close()
    assert closes == [True]
    assert producer.closed is True
    assert channel.requests == [("dataProducer.close", INTERNAL, None)]
    with pytest.raises(InvalidStateError):
        producer.get_stats()


def test_transport_closed_emits_once():
    producer, channel, _ = make()
    events = []
    producer.on("transportclose", lambda: events.append("transportclose"))
    producer.observer.on("close", lambda: events.append("close"))
    producer.transport_closed()
    producer.transport_closed()
    assert events == ["transportclose", "close"]
    assert channel.requests == []


def test_dump_returns_worker_data():
    dump = {"id": "dp-a", "type": "direct", "label": "foo", "protocol": "bar"}
    producer, _, _ = make(FakeChannel(responses={"dataProducer.dump": dump}))
    assert producer.dump() == dump