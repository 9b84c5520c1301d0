"""The contents of this file incorporate code adapted from
https://github.com/encode/starlette.

Copyright © 2018, [Encode OSS Ltd](https://www.encode.io/).
All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

* Redistributions of source code must retain the above copyright notice, this
  list of conditions and the following disclaimer.

* Redistributions in binary form must reproduce the above copyright notice,
  this list of conditions and the following disclaimer in the documentation
  and/or other materials provided with the distribution.

* Neither the name of the copyright holder nor the names of its
  contributors may be used to endorse or promote products derived from
  this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

import logging
import os
from dataclasses import dataclass
from typing import (
    AsyncIterable,
    AsyncIterator,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

from anyio.to_thread import run_sync

from multipart_message.constants import (
    CONTENT_DISPOSITION,
    CONTENT_TYPE,
    DEFAULT_CHUNK_SIZE,
)
from multipart_message.exceptions import AsyncBodyError, BodyConsumedError
from multipart_message.utils import parse_options_header, to_bytes

logger = logging.getLogger(__name__)

Header = Tuple[bytes, bytes]
Body = Union[bytes, Iterable[bytes], AsyncIterable[bytes]]

_EXHAUSTED = object()


class FileStream:
    __slots__ = ("path", "chunk_size", "consumed")

    def __init__(self, path: Union[str, "os.PathLike[str]"], chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """A lazy, single-pass body reading a file from disk in binary mode.

        The file is opened when iteration starts and closed once it is
        exhausted. No newline or encoding translation is applied.

        Args:
            path: Path of the file.
            chunk_size: Number of bytes to read per chunk.
        """
        self.path = path
        self.chunk_size = chunk_size
        self.consumed = False

    def __repr__(self) -> str:
        return f"FileStream({os.fspath(self.path)!r})"

    def _claim(self) -> None:
        if self.consumed:
            raise BodyConsumedError(f"{self!r} has already been consumed")
        self.consumed = True

    def __iter__(self) -> Iterator[bytes]:
        self._claim()
        return self._read_chunks()

    def __aiter__(self) -> AsyncIterator[bytes]:
        self._claim()
        return self._aread_chunks()

    def _read_chunks(self) -> Iterator[bytes]:
        logger.debug("Opening file: %r", self.path)
        with open(self.path, "rb") as file:
            while True:
                chunk = file.read(self.chunk_size)
                if not chunk:
                    return
                yield chunk

    async def _aread_chunks(self) -> AsyncIterator[bytes]:
        logger.debug("Opening file in a worker thread: %r", self.path)
        file = await run_sync(open, self.path, "rb")
        try:
            while True:
                chunk = await run_sync(file.read, self.chunk_size)
                if not chunk:
                    return
                yield chunk
        finally:
            await run_sync(file.close)


@dataclass
class Part:
    """A single section of a multipart message.

    ``body`` is either an owned byte string or a lazy producer of byte chunks.
    Lazy producers are consumed by serialization and are generally not
    replayable: serializing a message twice with the same lazy part is not
    supported.

    ``content_length`` is the exact byte length of the body alone, or ``None``
    when it cannot be known without consuming the body.
    """

    __slots__ = ("headers", "body", "content_length")

    headers: List[Header]
    body: Body
    content_length: Optional[int]

    def __post_init__(self) -> None:
        self.headers = [(to_bytes(name), to_bytes(value)) for name, value in self.headers]
        if isinstance(self.body, (str, bytearray, memoryview)):
            self.body = to_bytes(self.body)

    @property
    def is_lazy(self) -> bool:
        return not isinstance(self.body, bytes)

    def iter_body(self) -> Iterator[bytes]:
        """Yields the body chunks. Owned bytes are yielded as a single chunk.

        Raises:
            AsyncBodyError: If the body is only async iterable.

        Returns:
            An iterator of byte strings.
        """
        if isinstance(self.body, bytes):
            yield self.body
        elif not hasattr(self.body, "__iter__"):
            raise AsyncBodyError("Part has an async body, stream the message with aiter_body")
        else:
            yield from self.body  # type: ignore[misc]

    async def aiter_body(self) -> AsyncIterator[bytes]:
        """Async version of :meth:`iter_body`.

        Async iterables are awaited chunk by chunk, any other producer is
        pulled in a worker thread so blocking reads do not stall the event loop.

        Returns:
            An async iterator of byte strings.
        """
        if isinstance(self.body, bytes):
            yield self.body
        elif hasattr(self.body, "__aiter__"):
            async for chunk in self.body:  # type: ignore[union-attr]
                yield chunk
        else:
            iterator = iter(self.body)  # type: ignore[arg-type]
            while True:
                chunk = await run_sync(next, iterator, _EXHAUSTED)
                if chunk is _EXHAUSTED:
                    return
                yield chunk

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Returns the value of the first header matching ``name``, case-insensitively.

        Args:
            name: Header name.

        Returns:
            The header value, or ``None``.
        """
        lookup = to_bytes(name).lower()
        for header_name, value in self.headers:
            if header_name.lower() == lookup:
                return value
        return None

    @property
    def content_type(self) -> Optional[str]:
        value = self.get_header(CONTENT_TYPE)
        return value.decode("utf-8") if value is not None else None

    @property
    def name(self) -> Optional[str]:
        """The form field name from the 'Content-Disposition' header."""
        _, options = parse_options_header(self.get_header(CONTENT_DISPOSITION))
        return options.get("name")

    @property
    def filename(self) -> Optional[str]:
        _, options = parse_options_header(self.get_header(CONTENT_DISPOSITION))
        return options.get("filename")
