"""Exceptions raised by the library."""


class MediasoupError(Exception):
    """Base class for library errors."""

    name = "MediasoupError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.name}:{self.message}"


class MediasoupTypeError(MediasoupError, TypeError):
    """A value of the wrong type or out of range was given."""

    name = "TypeError"

    def __str__(self) -> str:
        return self.message


class UnsupportedError(MediasoupError):
    """Something is not supported."""

    name = "UnsupportedError"


class InvalidStateError(MediasoupError):
    """A method was called in a state that does not allow it."""

    name = "InvalidStateError"