from typing import Any, AsyncIterator, Iterable, Iterator, List, Optional, Tuple, Union

from multipart_message.datastructures import Part
from multipart_message.encoder import MultipartEncoder
from multipart_message.exceptions import UnknownContentLength
from multipart_message.utils import final_delimiter, generate_boundary, to_bytes


class Multipart:
    """A multipart message: an ordered sequence of parts and a boundary.

    Messages are values: :meth:`add_part` returns a new message and leaves the
    original untouched, so several messages may share a common prefix of parts.

    Messages whose parts all have in-memory bodies can be serialized any number
    of times. Lazy bodies (files, generators) are consumed by the first
    serialization; serializing such a message again is a caller error.
    """

    __slots__ = ("boundary", "parts")

    def __init__(self, boundary: Optional[Union[str, bytes]] = None, parts: Iterable[Part] = ()) -> None:
        """Creates a message.

        Args:
            boundary: The message boundary. A random token padded with ``==`` is generated if omitted.
                It must not contain quote characters, as it is not escaped in the 'Content-Type' header.
            parts: Initial parts.
        """
        self.boundary = to_bytes(boundary) if boundary is not None else generate_boundary()
        self.parts: Tuple[Part, ...] = tuple(parts)

    def __repr__(self) -> str:
        return f"Multipart(boundary={self.boundary!r}, parts={list(self.parts)!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Multipart):
            return NotImplemented
        return self.boundary == other.boundary and self.parts == other.parts

    def __len__(self) -> int:
        return len(self.parts)

    def __iter__(self) -> Iterator[Part]:
        return iter(self.parts)

    @property
    def encoder(self) -> MultipartEncoder:
        return MultipartEncoder(self.boundary)

    def add_part(self, part: Part) -> "Multipart":
        """Appends a part.

        Args:
            part: A part instance.

        Returns:
            A new message with ``part`` as its last part.
        """
        return Multipart(self.boundary, self.parts + (part,))

    def body_stream(self) -> Iterator[bytes]:
        """Returns a lazy, single-pass stream of the message body.

        Parts with async bodies raise :class:`AsyncBodyError` when reached,
        use :meth:`aiter_body` for those.

        Returns:
            An iterator of byte strings.
        """
        return self.encoder.iter_message(self.parts)

    def aiter_body(self) -> AsyncIterator[bytes]:
        """Returns the message body as an async stream, suitable for ASGI
        responses or async HTTP clients.

        Returns:
            An async iterator of byte strings.
        """
        return self.encoder.aiter_message(self.parts)

    def body_binary(self) -> bytes:
        """Returns the whole message body. This materializes every part in memory.

        Returns:
            A byte string.
        """
        return b"".join(self.body_stream())

    def content_type(self, mime_type: str) -> str:
        """Returns the 'Content-Type' header value for the message.

        Args:
            mime_type: A multipart MIME type, e.g. ``multipart/form-data``.

        Returns:
            The header value, e.g. ``multipart/mixed; boundary="==abc123=="``.
        """
        return f'{mime_type}; boundary="{self.boundary.decode("latin-1")}"'

    def content_length(self) -> int:
        """Returns the length of the message body in bytes without reading any
        part body, using the ``content_length`` of each part.

        Raises:
            UnknownContentLength: If a part has no ``content_length``.

        Returns:
            The length of the body :meth:`body_stream` produces.
        """
        encoder = self.encoder
        total = sum(encoder.framed_length(part, index) for index, part in enumerate(self.parts))
        return total + len(final_delimiter(self.boundary))

    def headers(self, mime_type: str = "multipart/form-data") -> List[Tuple[str, str]]:
        """Returns request headers describing the message.

        'Content-Length' is included only when every part has a known length.

        Args:
            mime_type: A multipart MIME type.

        Returns:
            A list of header name / value tuples.
        """
        headers = [("Content-Type", self.content_type(mime_type))]
        try:
            headers.append(("Content-Length", str(self.content_length())))
        except UnknownContentLength:
            pass
        return headers
