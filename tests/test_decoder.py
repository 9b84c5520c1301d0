import pytest

from multipart_message import (
    MalformedInput,
    MessageTooLarge,
    Multipart,
    MultipartDecoder,
    Part,
    binary_body,
    decode,
    decode_with_content_type,
    stream_body,
    text_field,
)
from multipart_message.constants import State

BOUNDARY = b"==testboundary=="


def test_decode_simple() -> None:
    data = (
        b"\r\n--==testboundary==\r\n"
        b'content-disposition: form-data; name="fname"\r\n'
        b"content-type: text/plain\r\n"
        b"\r\n"
        b"first\r\nbody"
        b"\r\n--==testboundary==\r\n"
        b"\r\n"
        b"second"
        b"\r\n--==testboundary==--\r\n"
    )
    multipart = decode(BOUNDARY, data)
    assert multipart.boundary == BOUNDARY
    assert list(multipart) == [
        Part(
            headers=[(b"content-disposition", b'form-data; name="fname"'), (b"content-type", b"text/plain")],
            body=b"first\r\nbody",
            content_length=11,
        ),
        Part(headers=[], body=b"second", content_length=6),
    ]
    assert multipart.parts[0].name == "fname"


def test_decode_empty_message() -> None:
    assert decode(BOUNDARY, b"\r\n--==testboundary==--\r\n") == Multipart(BOUNDARY)


def test_decode_ignores_epilogue() -> None:
    data = b"\r\n--==testboundary==\r\n\r\nbody\r\n--==testboundary==--\r\ntrailing garbage"
    assert decode(BOUNDARY, data).parts == (binary_body(b"body"),)


def test_decode_empty_body() -> None:
    data = b"\r\n--==testboundary==\r\na: b\r\n\r\n\r\n--==testboundary==--\r\n"
    assert decode(BOUNDARY, data).parts == (Part(headers=[(b"a", b"b")], body=b"", content_length=0),)


def test_header_split_on_first_separator() -> None:
    data = b"\r\n--==testboundary==\r\nx-time: 12: 30\r\n\r\nbody\r\n--==testboundary==--\r\n"
    assert decode(BOUNDARY, data).parts[0].headers == [(b"x-time", b"12: 30")]


@pytest.mark.parametrize(
    "data",
    [
        b"--==testboundary==\r\nbad-header-line\r\n\r\nbody\r\n--==testboundary==--\r\n",
        b"\r\n--==testboundary==\r\nbad-header-line\r\n\r\nbody\r\n--==testboundary==--\r\n",
        b"\r\n--==otherboundary==\r\n\r\nbody\r\n--==otherboundary==--\r\n",
        b"\r\n--==testboundary==xx\r\n\r\nbody\r\n--==testboundary==--\r\n",
        b"\r\n--==testboundary==\r\na: b\r\n",
        b"\r\n--==testboundary==\r\na: b\r\n\r\nunterminated body",
        b"\r\n--==testboundary==\r\n\r\nbody\r\n--not the boundary\r\n--==testboundary==--\r\n",
        b"",
        b"\r\n",
    ],
)
def test_decode_malformed(data: bytes) -> None:
    with pytest.raises(MalformedInput):
        decode(BOUNDARY, data)


def test_malformed_input_reports_offset() -> None:
    with pytest.raises(MalformedInput) as exc_info:
        decode(BOUNDARY, b"\r\n--==testboundary==\r\nno separator\r\n\r\n")
    assert exc_info.value.offset == len(b"\r\n--==testboundary==\r\n")
    assert isinstance(exc_info.value, ValueError)


def test_max_size() -> None:
    data = Multipart(BOUNDARY).add_part(binary_body(b"x" * 100)).body_binary()
    with pytest.raises(MessageTooLarge):
        decode(BOUNDARY, data, max_size=50)
    assert len(decode(BOUNDARY, data, max_size=len(data)).parts) == 1


def test_decoder_can_be_reused() -> None:
    decoder = MultipartDecoder(BOUNDARY)
    first = Multipart(BOUNDARY).add_part(binary_body(b"one")).body_binary()
    second = Multipart(BOUNDARY).add_part(binary_body(b"two")).add_part(binary_body(b"three")).body_binary()
    assert [part.body for part in decoder.decode(first)] == [b"one"]
    assert [part.body for part in decoder.decode(second)] == [b"two", b"three"]
    assert decoder.processing_stage == State.COMPLETE


def test_decoder_state_transitions() -> None:
    decoder = MultipartDecoder(BOUNDARY)
    decoder._reset(b"\r\n--==testboundary==\r\na: b\r\n\r\nbody\r\n--==testboundary==--\r\n")
    stages = [decoder.processing_stage]
    while decoder.processing_stage != State.COMPLETE:
        decoder.next_state()
        stages.append(decoder.processing_stage)
    assert stages == [State.START, State.PARTS, State.HEADERS, State.BODY, State.PARTS, State.COMPLETE]


def test_round_trip() -> None:
    original = (
        Multipart(BOUNDARY)
        .add_part(text_field("é", "accent", [("x-first", "1"), ("x-first", "2")]))
        .add_part(binary_body(b"\x00\x01\r\n\xff", [("content-type", "application/octet-stream")]))
        .add_part(Part(headers=[("x-unset", "length")], body=b"no length", content_length=None))
        .add_part(binary_body(b""))
    )
    decoded = decode(BOUNDARY, original.body_binary())
    assert decoded.boundary == original.boundary
    assert [part.headers for part in decoded] == [part.headers for part in original]
    assert [part.body for part in decoded] == [part.body for part in original]
    assert [part.content_length for part in decoded] == [len(part.body) for part in original]


def test_round_trip_from_stream() -> None:
    original = Multipart(BOUNDARY).add_part(stream_body(iter([b"ab", b"cd"]), [("x", "y")]))
    decoded = decode(BOUNDARY, original.body_binary())
    assert decoded.parts == (Part(headers=[(b"x", b"y")], body=b"abcd", content_length=4),)


def test_decode_with_content_type() -> None:
    original = Multipart(BOUNDARY).add_part(text_field("abc", "field1"))
    decoded = decode_with_content_type(original.content_type("multipart/form-data"), original.body_binary())
    assert decoded == original

    with pytest.raises(MalformedInput):
        decode_with_content_type("multipart/form-data", original.body_binary())
