import errno
import logging
import mimetypes
import os
import stat
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from multipart_message.constants import (
    CONTENT_DISPOSITION,
    CONTENT_TYPE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MIME_TYPE,
    FORM_DATA,
)
from multipart_message.datastructures import Body, FileStream, Header, Part
from multipart_message.utils import format_content_disposition, to_bytes

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]
HeadersType = Optional[Sequence[Tuple[Union[str, bytes], Union[str, bytes]]]]


def _copy_headers(headers: HeadersType) -> List[Header]:
    return [(to_bytes(name), to_bytes(value)) for name, value in headers or ()]


def mime_type_for_path(path: PathType) -> str:
    """Guesses a MIME type from the extension of ``path``.

    Args:
        path: A file path.

    Returns:
        The guessed MIME type, or ``application/octet-stream`` when unknown.
    """
    mime_type, _ = mimetypes.guess_type(os.fspath(path))
    return mime_type or DEFAULT_MIME_TYPE


def _form_data_headers(
    headers: HeadersType,
    name: str,
    path: Optional[PathType] = None,
    content_type: Union[bool, str] = False,
    filename: Union[bool, str] = False,
) -> List[Header]:
    result = _copy_headers(headers)

    if content_type is True:
        result.append((CONTENT_TYPE, to_bytes(mime_type_for_path(path))))  # type: ignore[arg-type]
    elif isinstance(content_type, str):
        result.append((CONTENT_TYPE, to_bytes(content_type)))

    directives = [("name", name)]
    if filename is True:
        directives.append(("filename", os.path.basename(os.fspath(path))))  # type: ignore[arg-type]
    elif isinstance(filename, str):
        directives.append(("filename", filename))

    result.append((CONTENT_DISPOSITION, to_bytes(format_content_disposition(FORM_DATA, directives))))
    return result


def binary_body(body: Union[str, bytes], headers: HeadersType = None) -> Part:
    """Builds a part with an in-memory body.

    Args:
        body: The body. Strings are encoded as UTF-8.
        headers: Optional part headers.

    Returns:
        A part whose ``content_length`` is the byte length of the body.
    """
    data = to_bytes(body)
    return Part(headers=_copy_headers(headers), body=data, content_length=len(data))


def file_body(path: PathType, headers: HeadersType = None, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Part:
    """Builds a part streaming a file from disk.

    The file is opened once to check it is readable and to read its size.
    An ``OSError`` is raised if it does not exist, cannot be read or is not
    a regular file.

    Args:
        path: Path of the file.
        headers: Optional part headers.
        chunk_size: Number of bytes read per chunk while streaming.

    Returns:
        A part whose ``content_length`` is the size of the file.
    """
    with open(path, "rb") as file:
        file_stat = os.fstat(file.fileno())
    if not stat.S_ISREG(file_stat.st_mode):
        raise OSError(errno.EINVAL, "Not a regular file", os.fspath(path))
    size = file_stat.st_size
    logger.debug("Streaming %r (%d bytes)", path, size)
    return Part(headers=_copy_headers(headers), body=FileStream(path, chunk_size=chunk_size), content_length=size)


def stream_body(
    stream: Union[Iterable[bytes], Body], headers: HeadersType = None, content_length: Optional[int] = None
) -> Part:
    """Builds a part with a lazy body.

    The length of a stream is generally not known up front, so unless
    ``content_length`` is given, computing the message length will fail.

    Args:
        stream: An iterable of byte chunks. Async iterables are accepted too, but
            such messages can only be streamed with ``Multipart.aiter_body``.
        headers: Optional part headers.
        content_length: The exact number of bytes ``stream`` yields, if known.

    Returns:
        A part.
    """
    return Part(headers=_copy_headers(headers), body=stream, content_length=content_length)


def text_field(body: Union[str, bytes], name: str, headers: HeadersType = None) -> Part:
    return binary_body(body, _form_data_headers(headers, name))


def file_field(
    path: PathType,
    name: str,
    headers: HeadersType = None,
    content_type: Union[bool, str] = True,
    filename: Union[bool, str] = True,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Part:
    """Builds a form-data part streaming a file from disk.

    Args:
        path: Path of the file.
        name: Name of the form field.
        headers: Optional extra headers, emitted before the generated ones.
        content_type: ``True`` guesses the 'Content-Type' header from the file extension,
            a string is used verbatim and ``False`` omits the header.
        filename: ``True`` adds the base name of ``path`` as the ``filename`` directive,
            a string is used verbatim and ``False`` omits the directive.
        chunk_size: Number of bytes read per chunk while streaming.

    Returns:
        A part whose ``content_length`` is the size of the file.
    """
    headers = _form_data_headers(headers, name, path, content_type=content_type, filename=filename)
    return file_body(path, headers, chunk_size=chunk_size)


def file_content_field(
    path: PathType,
    body: Union[str, bytes],
    name: str,
    headers: HeadersType = None,
    content_type: Union[bool, str] = True,
    filename: Union[bool, str] = True,
) -> Part:
    """Builds a form-data part carrying in-memory content with the headers
    :func:`file_field` would generate for ``path``. The path is never accessed.
    """
    headers = _form_data_headers(headers, name, path, content_type=content_type, filename=filename)
    return binary_body(body, headers)


def stream_field(
    stream: Union[Iterable[bytes], Body],
    name: str,
    headers: HeadersType = None,
    content_length: Optional[int] = None,
) -> Part:
    return stream_body(stream, _form_data_headers(headers, name), content_length=content_length)
