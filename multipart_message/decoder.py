import logging
from typing import List, NoReturn, Optional, Union

from multipart_message.constants import HEADER_SEPARATOR, LINE_BREAK, SEPARATOR, State
from multipart_message.datastructures import Header, Part
from multipart_message.exceptions import MalformedInput, MessageTooLarge
from multipart_message.message import Multipart
from multipart_message.utils import parse_options_header, to_bytes

logger = logging.getLogger(__name__)


class MultipartDecoder:
    __slots__ = (
        "buffer",
        "headers",
        "max_size",
        "message_boundary",
        "parts",
        "position",
        "processing_stage",
    )

    def __init__(self, boundary: Union[str, bytes], max_size: Optional[int] = None) -> None:
        """A decoder for complete multipart messages.

        The input must be framed the way :class:`~multipart_message.Multipart`
        frames it: a line break, then a delimiter before every part, then the
        final delimiter. Anything following the final delimiter is ignored.

        Boundary occurrences inside a body are not detected: a body containing
        a line break followed by ``--`` ends at that point, RFC2046.

        Args:
            boundary: The message boundary as specified by [RFC2046][https://www.rfc-editor.org/rfc/rfc2046]
            max_size: Maximum number of bytes allowed for the message.
        """
        self.message_boundary = to_bytes(boundary)
        self.max_size = max_size
        self._reset(b"")

    def _reset(self, data: bytes) -> None:
        self.buffer = data
        self.position = 0
        self.processing_stage = State.START
        self.parts: List[Part] = []
        self.headers: List[Header] = []

    def _fail(self, message: str) -> NoReturn:
        logger.warning("Rejecting multipart input in stage %s at %d: %s", self.processing_stage, self.position, message)
        raise MalformedInput(message, offset=self.position)

    def _process_start(self) -> None:
        if not self.buffer.startswith(LINE_BREAK, self.position):
            self._fail("Expected a line break before the first delimiter")
        self.position += len(LINE_BREAK)
        self.processing_stage = State.PARTS

    def _process_parts(self) -> None:
        dash_boundary = SEPARATOR + self.message_boundary
        if not self.buffer.startswith(dash_boundary, self.position):
            self._fail("Expected a delimiter")
        end = self.position + len(dash_boundary)
        if self.buffer.startswith(SEPARATOR, end):
            self.position = end + len(SEPARATOR)
            self.processing_stage = State.COMPLETE
        elif self.buffer.startswith(LINE_BREAK, end):
            self.position = end + len(LINE_BREAK)
            self.headers = []
            self.processing_stage = State.HEADERS
        else:
            self.position = end
            self._fail("Expected a line break or '--' after the delimiter")

    def _process_headers(self) -> None:
        while True:
            end = self.buffer.find(LINE_BREAK, self.position)
            if end == -1:
                self._fail("Unterminated header block")
            if end == self.position:
                self.position += len(LINE_BREAK)
                self.processing_stage = State.BODY
                return
            name, separator, value = self.buffer[self.position : end].partition(HEADER_SEPARATOR)
            if not separator:
                self._fail("Header line without a ': ' separator")
            self.headers.append((name, value))
            self.position = end + len(LINE_BREAK)

    def _process_body(self) -> None:
        # The body ends right before a line break followed by '--', which opens
        # either the next delimiter or the final one.
        end = self.buffer.find(LINE_BREAK + SEPARATOR, self.position)
        if end == -1:
            self._fail("Unterminated body")
        body = self.buffer[self.position : end]
        self.parts.append(Part(headers=self.headers, body=body, content_length=len(body)))
        logger.debug("Decoded part %d: %d headers, %d bytes", len(self.parts) - 1, len(self.headers), len(body))
        self.position = end + len(LINE_BREAK)
        self.processing_stage = State.PARTS

    def next_state(self) -> None:
        """Processes the buffer according to the decoder's processing_stage,
        advancing the cursor and the processing_stage.

        Raises:
            MalformedInput: If the buffer does not match what the current stage expects.
        """
        if self.processing_stage == State.START:
            self._process_start()
        elif self.processing_stage == State.PARTS:
            self._process_parts()
        elif self.processing_stage == State.HEADERS:
            self._process_headers()
        elif self.processing_stage == State.BODY:
            self._process_body()

    def decode(self, data: bytes) -> Multipart:
        """Decodes a complete multipart message.

        Args:
            data: The message body.

        Raises:
            MalformedInput: If the message is malformed. No partial result is returned.
            MessageTooLarge: If the message exceeds ``max_size``.

        Returns:
            A message whose parts hold their bodies in memory.
        """
        if self.max_size is not None and len(data) > self.max_size:
            raise MessageTooLarge(f"Message of {len(data)} bytes exceeds the limit of {self.max_size} bytes")
        self._reset(bytes(data))
        while self.processing_stage != State.COMPLETE:
            self.next_state()
        return Multipart(self.message_boundary, self.parts)


def decode(boundary: Union[str, bytes], data: bytes, max_size: Optional[int] = None) -> Multipart:
    return MultipartDecoder(boundary, max_size=max_size).decode(data)


def decode_with_content_type(content_type: str, data: bytes, max_size: Optional[int] = None) -> Multipart:
    """Decodes a message using the boundary of its 'Content-Type' header value.

    Args:
        content_type: A header value such as ``multipart/form-data; boundary="==abc=="``.
        data: The message body.
        max_size: Maximum number of bytes allowed for the message.

    Raises:
        MalformedInput: If the header has no boundary or the message is malformed.

    Returns:
        The decoded message.
    """
    _, options = parse_options_header(content_type)
    boundary = options.get("boundary")
    if not boundary:
        raise MalformedInput(f"No boundary in content type {content_type!r}")
    return decode(boundary, data, max_size=max_size)
