import dataclasses

import pytest

from mediasoup.internal import InternalData


def test_to_dict_uses_wire_names_and_omits_empty():
    internal = InternalData(router_id="r1", transport_id="t1", consumer_id="c1")
    assert internal.to_dict() == {"routerId": "r1", "transportId": "t1", "consumerId": "c1"}


def test_empty_internal_serialises_to_empty_dict():
    assert InternalData().to_dict() == {}


def test_all_fields_round_trip():
    internal = InternalData(
        router_id="r",
        transport_id="t",
        producer_id="p",
        consumer_id="c",
        data_producer_id="dp",
        data_consumer_id="dc",
        rtp_observer_id="o",
    )
    wire = internal.to_dict()
    assert set(wire) == {
        "routerId",
        "transportId",
        "producerId",
        "consumerId",
        "dataProducerId",
        "dataConsumerId",
        "rtpObserverId",
    }
    assert InternalData.from_dict(wire) == internal


def test_from_dict_ignores_unknown_keys():
    internal = InternalData.from_dict({"routerId": "r1", "somethingElse": "x"})
    assert internal == InternalData(router_id="r1")


def test_is_immutable():
    internal = InternalData(router_id="r1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        internal.router_id = "r2"
    assert internal.router_id == "r1"
    assert internal.to_dict() == {"routerId": "r1"}