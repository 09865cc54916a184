from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest


class ChunkedStream(httpx.SyncByteStream):
    """
    Response body served chunk by chunk, optionally failing after the last chunk.
    """

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self._chunks = chunks
        self._error = error
        self.served = 0
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            self.served += 1
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def html_transport() -> Callable[..., httpx.MockTransport]:
    def _make(
        body: bytes = b"",
        *,
        status_code: int = 200,
        content_type: str | None = "text/html; charset=utf-8",
        stream: httpx.SyncByteStream | None = None,
    ) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            headers = {"content-type": content_type} if content_type else {}
            if stream is not None:
                return httpx.Response(status_code, headers=headers, stream=stream)
            return httpx.Response(status_code, headers=headers, content=body)

        return httpx.MockTransport(handler)

    return _make


@pytest.fixture()
def chunked_stream() -> type[ChunkedStream]:
    return ChunkedStream
