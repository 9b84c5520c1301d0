class MultipartError(Exception):
    """Base error class for multipart message handling."""


class UnknownContentLength(MultipartError):
    """Raised when the length of a message cannot be computed because one of
    its parts has no known ``content_length``.
    """

    def __init__(self, index: int) -> None:
        super().__init__(f"Part at index {index} has no content_length")
        #: Zero-based position of the offending part.
        self.index = index


class MalformedInput(MultipartError, ValueError):
    """Raised by the decoder for any structural mismatch in the input."""

    def __init__(self, message: str, offset: int = -1) -> None:
        super().__init__(message)
        #: Position in the input buffer at which decoding failed, or -1.
        self.offset = offset


class MessageTooLarge(MultipartError):
    pass


class BodyConsumedError(MultipartError, RuntimeError):
    """Raised when a single-pass body is iterated a second time."""


class AsyncBodyError(MultipartError, TypeError):
    """Raised when a part with an async body is serialized synchronously.
    Such messages must be streamed with ``aiter_body``.
    """
