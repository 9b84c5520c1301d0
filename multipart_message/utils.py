"""The contents of this file incorporate code adapted from
https://github.com/pallets/werkzeug.

Copyright 2007 Pallets

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are
met:

1.  Redistributions of source code must retain the above copyright
    notice, this list of conditions and the following disclaimer.

2.  Redistributions in binary form must reproduce the above copyright
    notice, this list of conditions and the following disclaimer in the
    documentation and/or other materials provided with the distribution.

3.  Neither the name of the copyright holder nor the names of its
    contributors may be used to endorse or promote products derived from
    this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
"AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A
PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT
HOLDER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL,
SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED
TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR
PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

import re
import secrets
from typing import Dict, Optional, Sequence, Tuple, Union

from multipart_message.constants import (
    BOUNDARY_PAD,
    BOUNDARY_RANDOM_BYTES,
    HEADER_SEPARATOR,
    LINE_BREAK,
    SEPARATOR,
)

# A ``; key=value`` piece of a header with options. The value is either a
# quoted string (which may contain semicolons) or a bare token.
OPTION_PIECE_RE = re.compile(
    r';\s*(?P<key>[^\s;=]+)\s*(?:=\s*(?P<value>"[^"\\]*(?:\\.[^"\\]*)*"|[^;]*))?',
)


def to_bytes(value: Union[str, bytes]) -> bytes:
    """Normalizes a header name, header value or boundary to a byte string.

    Args:
        value: A string or a byte string. Strings are encoded as UTF-8.

    Returns:
        A byte string.
    """
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def generate_boundary() -> bytes:
    """Generates a random boundary token.

    Returns:
        16 random bytes encoded as lowercase hex and padded with ``==`` on either side.
    """
    return BOUNDARY_PAD + secrets.token_hex(BOUNDARY_RANDOM_BYTES).encode("ascii") + BOUNDARY_PAD


def part_delimiter(boundary: bytes) -> bytes:
    """The delimiter preceding every part, RFC2046."""
    return LINE_BREAK + SEPARATOR + boundary + LINE_BREAK


def final_delimiter(boundary: bytes) -> bytes:
    """The delimiter closing the message, RFC2046."""
    return LINE_BREAK + SEPARATOR + boundary + SEPARATOR + LINE_BREAK


def encode_header_line(name: bytes, value: bytes) -> bytes:
    return name + HEADER_SEPARATOR + value + LINE_BREAK


def format_content_disposition(disposition: str, directives: Sequence[Tuple[str, str]]) -> str:
    """Formats a 'Content-Disposition' header value.

    Args:
        disposition: The disposition type, e.g. ``form-data``.
        directives: Ordered key/value pairs, each rendered as ``key="value"``.

    Returns:
        The header value, e.g. ``form-data; name="field1"; filename="a.txt"``.
    """
    return "; ".join([disposition, *(f'{key}="{value}"' for key, value in directives)])


def unquote_header_value(value: str, is_filename: bool = False) -> str:
    """Unquotes a header value. This does not use the real unquoting but what
    browsers are actually using for quoting.

    Args:
        value: Value to unquote.
        is_filename: Boolean flag dictating whether the value is a filename.

    Returns:
        The unquoted value.
    """
    if len(value) > 1 and value[0] == value[-1] == '"':
        value = value[1:-1]
        if not is_filename or value[:2] != "\\\\":
            return value.replace("\\\\", "\\").replace('\\"', '"')
    return value


def parse_options_header(value: Optional[Union[str, bytes]]) -> Tuple[str, Dict[str, str]]:
    """Parses a header with options, such as 'Content-Disposition' or
    'Content-Type', returning the main value and the options as a dictionary.

    Args:
        value: An optional header value.

    Returns:
        A tuple with the lowercased main value and a dictionary of options keyed by lowercased option name.
    """
    if not value:
        return "", {}
    if isinstance(value, bytes):
        value = value.decode("utf-8")

    main_value, _, rest = value.partition(";")
    options: Dict[str, str] = {}
    for match in OPTION_PIECE_RE.finditer(";" + rest if rest else ""):
        key = match.group("key").lower()
        option_value = (match.group("value") or "").strip()
        options[key] = unquote_header_value(option_value, key == "filename")
    return main_value.strip().lower(), options
