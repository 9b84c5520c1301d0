from multipart_message.datastructures import FileStream, Part
from multipart_message.decoder import MultipartDecoder, decode, decode_with_content_type
from multipart_message.encoder import MultipartEncoder
from multipart_message.exceptions import (
    AsyncBodyError,
    BodyConsumedError,
    MalformedInput,
    MessageTooLarge,
    MultipartError,
    UnknownContentLength,
)
from multipart_message.message import Multipart
from multipart_message.parts import (
    binary_body,
    file_body,
    file_content_field,
    file_field,
    mime_type_for_path,
    stream_body,
    stream_field,
    text_field,
)
from multipart_message.utils import (
    final_delimiter,
    generate_boundary,
    parse_options_header,
    part_delimiter,
)

__all__ = [
    "AsyncBodyError",
    "BodyConsumedError",
    "FileStream",
    "MalformedInput",
    "MessageTooLarge",
    "Multipart",
    "MultipartDecoder",
    "MultipartEncoder",
    "MultipartError",
    "Part",
    "UnknownContentLength",
    "binary_body",
    "decode",
    "decode_with_content_type",
    "file_body",
    "file_content_field",
    "file_field",
    "final_delimiter",
    "generate_boundary",
    "mime_type_for_path",
    "parse_options_header",
    "part_delimiter",
    "stream_body",
    "stream_field",
    "text_field",
]
