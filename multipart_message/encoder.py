import logging
from typing import AsyncIterator, Iterable, Iterator

from multipart_message.constants import LINE_BREAK
from multipart_message.datastructures import Part
from multipart_message.exceptions import UnknownContentLength
from multipart_message.utils import encode_header_line, final_delimiter, part_delimiter

logger = logging.getLogger(__name__)


class MultipartEncoder:
    __slots__ = ("message_boundary",)

    def __init__(self, message_boundary: bytes) -> None:
        """Encodes parts into the framing of a multipart message.

        Args:
            message_boundary: The message boundary.
        """
        self.message_boundary = message_boundary

    def part_header_block(self, part: Part) -> bytes:
        """Encodes everything preceding the body of a part: the delimiter, one
        line per header in insertion order, and the blank line ending the headers.

        Args:
            part: A part instance.

        Returns:
            An encoded byte string.
        """
        data = part_delimiter(self.message_boundary)
        data += b"".join(encode_header_line(name, value) for name, value in part.headers)
        return data + LINE_BREAK

    def epilogue(self) -> bytes:
        return final_delimiter(self.message_boundary)

    def framed_length(self, part: Part, index: int = 0) -> int:
        """Computes the encoded length of a part without reading its body.

        Args:
            part: A part instance.
            index: Position of the part in its message, reported on failure.

        Raises:
            UnknownContentLength: If the part has no known ``content_length``.

        Returns:
            The length of the header block plus the length of the body.
        """
        if part.content_length is None:
            raise UnknownContentLength(index)
        return len(self.part_header_block(part)) + part.content_length

    def iter_part(self, part: Part) -> Iterator[bytes]:
        yield self.part_header_block(part)
        yield from part.iter_body()

    async def aiter_part(self, part: Part) -> AsyncIterator[bytes]:
        yield self.part_header_block(part)
        async for chunk in part.aiter_body():
            yield chunk

    def iter_message(self, parts: Iterable[Part]) -> Iterator[bytes]:
        """Encodes a sequence of parts into a stream of byte chunks.

        Parts and their bodies are pulled on demand, nothing is read ahead.

        Args:
            parts: The parts of the message, in output order.

        Returns:
            An iterator of byte strings ending with the final delimiter.
        """
        for index, part in enumerate(parts):
            logger.debug("Encoding part %d with %d headers", index, len(part.headers))
            yield from self.iter_part(part)
        yield self.epilogue()

    async def aiter_message(self, parts: Iterable[Part]) -> AsyncIterator[bytes]:
        for index, part in enumerate(parts):
            logger.debug("Encoding part %d with %d headers", index, len(part.headers))
            async for chunk in self.aiter_part(part):
                yield chunk
        yield self.epilogue()
