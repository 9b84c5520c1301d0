from enum import Enum

LINE_BREAK = b"\r\n"
SEPARATOR = b"--"
HEADER_SEPARATOR = b": "

BOUNDARY_PAD = b"=="
BOUNDARY_RANDOM_BYTES = 16

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"
FORM_DATA = "form-data"

CONTENT_TYPE = b"content-type"
CONTENT_DISPOSITION = b"content-disposition"


class State(str, Enum):
    START = "START"
    PARTS = "PARTS"
    HEADERS = "HEADERS"
    BODY = "BODY"
    COMPLETE = "COMPLETE"
