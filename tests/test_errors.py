import pytest

from mediasoup.errors import (
    InvalidStateError,
    MediasoupError,
    MediasoupTypeError,
    UnsupportedError,
)


def test_unsupported_error_message():
    error = UnsupportedError("feature")
    assert str(error) == "UnsupportedError:feature"
    assert error.message == "feature"


def test_invalid_state_error_message():
    error = InvalidStateError("Channel closed")
    assert str(error) == "InvalidStateError:Channel closed"
    assert error.message == "Channel closed"


def test_type_error_message_is_plain():
    error = MediasoupTypeError("bad priority")
    assert str(error) == "bad priority"
    assert error.message == "bad priority"


def test_type_error_caught_as_builtin_type_error():
    error = MediasoupTypeError("bad priority")
    with pytest.raises(TypeError, match="bad priority") as info:
        raise error
    assert info.value is error
    assert str(info.value) == "bad priority"


@pytest.mark.parametrize("cls", [MediasoupTypeError, UnsupportedError, InvalidStateError])
def test_all_errors_share_base(cls):
    error = cls("boom")
    with pytest.raises(MediasoupError) as info:
        raise error
    assert info.value is error
    assert error.message == "boom"


def test_invalid_state_not_unsupported():
    error = InvalidStateError("x")
    assert not isinstance(error, UnsupportedError)
    assert error.name == "InvalidStateError"
    assert UnsupportedError("x").name == "UnsupportedError"