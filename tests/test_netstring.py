from mediasoup.netstring import Decoder, encode

TEST_BYTES = b"we are test string"


def test_encode_format():
    assert encode(b"hello") == b"5:hello,"
    assert encode(b"") == b"0:,"


def test_netstring_many_messages():
    decoder = Decoder()
    results = []
    for _ in range(1024):
        results.extend(decoder.feed(encode(TEST_BYTES)))
    assert len(results) == 1024
    assert all(result == TEST_BYTES for result in results)


def test_concatenated_messages_in_one_feed():
    decoder = Decoder()
    stream = encode(b"one") + encode(b"two") + encode(b"three")
    assert decoder.feed(stream) == [b"one", b"two", b"three"]


def test_byte_by_byte_feed():
    decoder = Decoder()
    results = []
    for byte in encode(TEST_BYTES):
        results.extend(decoder.feed(bytes([byte])))
    assert results == [TEST_BYTES]


def test_empty_payload():
    decoder = Decoder()
    assert decoder.feed(encode(b"")) == [b""]


def test_length_tracks_remaining():
    decoder = Decoder()
    assert decoder.feed(b"12:") == []
    assert decoder.length == 12
    decoder.feed(b"abc")
    assert decoder.length == 9


def test_bad_separator_recovers():
    decoder = Decoder()
    assert decoder.feed(b"5xhello,") == []
    assert decoder.feed(encode(b"ok")) == [b"ok"]


def test_bad_end_symbol_drops_message():
    decoder = Decoder()
    assert decoder.feed(b"2:abX") == []
    assert decoder.feed(encode(b"ok")) == [b"ok"]


def test_reset_discards_partial():
    decoder = Decoder()
    decoder.feed(b"10:abc")
    decoder.reset()
    assert decoder.length == 0
    assert decoder.feed(encode(b"fresh")) == [b"fresh"]