"""Netstring framing: ``<length>:<payload>,``."""

from __future__ import annotations

from enum import Enum, auto

SEPARATOR_SYMBOL = ord(":")
END_SYMBOL = ord(",")


def encode(payload: bytes) -> bytes:
    """Wrap ``payload`` in a netstring."""
    return b"%d:%s," % (len(payload), payload)


class _State(Enum):
    LENGTH = auto()
    SEPARATOR = auto()
    DATA = auto()
    END = auto()


class Decoder:
    """Incremental netstring decoder that tolerates and skips malformed input."""

    def __init__(self) -> None:
        self._parsed = bytearray()
        self._length = 0
        self._state = _State.LENGTH

    @property
    def length(self) -> int:
        """Bytes still expected for the payload being decoded."""
        return self._length

    def reset(self) -> None:
        """Drop any partial message and wait for a new length prefix."""
        self._length = 0
        self._parsed = bytearray()
        self._state = _State.LENGTH

    def feed(self, data: bytes) -> list[bytes]:
        """Consume ``data`` and return every payload completed by it."""
        results: list[bytes] = []
        view = memoryview(data)
        position = 0
        while position < len(view):
            position = self._step(view, position, results)
        return results

    def _step(self, data: memoryview, position: int, results: list[bytes]) -> int:
        state = self._state
        if state is _State.LENGTH:
            symbol = data[position]
            if 0x30 <= symbol <= 0x39:
                self._length = self._length * 10 + (symbol - 0x30)
                return position + 1
            self._state = _State.SEPARATOR
            return position

        if state is _State.SEPARATOR:
            if data[position] != SEPARATOR_SYMBOL:
                # Malformed input: look for the next valid message.
                self.reset()
            else:
                self._state = _State.DATA
            return position + 1

        if state is _State.DATA:
            take = min(self._length, len(data) - position)
            self._parsed += data[position : position + take]
            self._length -= take
            if self._length == 0:
                self._state = _State.END
            return position + take

        # END: the symbol is not consumed; after a reset it is reparsed.
        if data[position] == END_SYMBOL:
            results.append(bytes(self._parsed))
        self.reset()
        return position