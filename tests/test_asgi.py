"""Streams encoded messages through Starlette's form parser."""

from typing import TYPE_CHECKING, AsyncIterator, Dict, List

import pytest
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.testclient import TestClient

from multipart_message import (
    BodyConsumedError,
    Multipart,
    binary_body,
    file_body,
    file_field,
    final_delimiter,
    stream_body,
    stream_field,
    text_field,
)

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send

BOUNDARY = b"==testboundary=="


async def form_app(scope: "Scope", receive: "Receive", send: "Send") -> None:
    request = Request(scope, receive)
    data = await request.form()
    output: Dict[str, List[dict]] = {}
    for key, value in data.multi_items():
        if isinstance(value, UploadFile):
            content = await value.read()
            output.setdefault(key, []).append(
                {
                    "filename": value.filename,
                    "content": content.decode(),
                    "content_type": value.content_type,
                }
            )
        else:
            output.setdefault(key, []).append({"value": value})
    await request.close()
    response = JSONResponse(output)
    await response(scope, receive, send)


def test_starlette_parses_encoded_message(tmp_path) -> None:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"file contents")
    multipart = (
        Multipart()
        .add_part(text_field("data", "some"))
        .add_part(text_field("more data", "some"))
        .add_part(file_field(path, "upload"))
    )
    client = TestClient(form_app)
    response = client.post("/", content=multipart.body_binary(), headers=dict(multipart.headers()))
    assert response.json() == {
        "some": [{"value": "data"}, {"value": "more data"}],
        "upload": [{"filename": "notes.txt", "content": "file contents", "content_type": "text/plain"}],
    }


@pytest.mark.anyio
async def test_aiter_body_matches_body_binary(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"\x00file\r\n")

    async def producer() -> AsyncIterator[bytes]:
        yield b"async "
        yield b"chunks"

    multipart = (
        Multipart(BOUNDARY)
        .add_part(text_field("abc", "field1"))
        .add_part(file_body(path))
        .add_part(stream_body(producer()))
        .add_part(stream_field(iter([b"sync ", b"chunks"]), "field2"))
    )
    chunks = [chunk async for chunk in multipart.aiter_body()]
    assert chunks[-1] == final_delimiter(BOUNDARY)

    expected = (
        Multipart(BOUNDARY)
        .add_part(text_field("abc", "field1"))
        .add_part(binary_body(b"\x00file\r\n"))
        .add_part(binary_body(b"async chunks"))
        .add_part(text_field("sync chunks", "field2"))
        .body_binary()
    )
    assert b"".join(chunks) == expected


@pytest.mark.anyio
async def test_async_file_stream_is_single_pass(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"abc")
    part = file_body(path, chunk_size=2)
    assert [chunk async for chunk in part.aiter_body()] == [b"ab", b"c"]
    with pytest.raises(BodyConsumedError):
        [chunk async for chunk in part.aiter_body()]
