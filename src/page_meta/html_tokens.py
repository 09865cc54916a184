from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from html import unescape
from html.parser import HTMLParser

import httpx


class TokenizeError(RuntimeError):
    pass


class TokenKind(Enum):
    START_TAG = "start_tag"
    END_TAG = "end_tag"
    SELF_CLOSING_TAG = "self_closing_tag"
    TEXT = "text"
    COMMENT = "comment"
    DOCTYPE = "doctype"


_TAG_KINDS = frozenset({TokenKind.START_TAG, TokenKind.END_TAG, TokenKind.SELF_CLOSING_TAG})

# Newer parsers tokenize <title> as RCDATA themselves.
_NATIVE_RCDATA_TITLE = "title" in getattr(HTMLParser, "RCDATA_CONTENT_ELEMENTS", ())

# Failures of the underlying stream. Malformed markup never raises.
_STREAM_ERRORS = (OSError, UnicodeError, httpx.RequestError, httpx.StreamError)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    data: str
    attrs: tuple[tuple[str, str], ...] = ()

    @property
    def is_tag(self) -> bool:
        return self.kind in _TAG_KINDS


class _TokenCollector(HTMLParser):
    """
    Turns HTMLParser callbacks into queued tokens.

    Text is held back until the next non-text event so that a run of text split across
    fed chunks comes out as a single token.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._ready: deque[Token] = deque()
        self._text: list[str] = []
        self._raw_title = False

    @staticmethod
    def _attrs(attrs: list[tuple[str, str | None]]) -> tuple[tuple[str, str], ...]:
        return tuple((k, v or "") for k, v in attrs)

    def _emit(self, token: Token) -> None:
        self.flush_text()
        self._ready.append(token)

    def flush_text(self) -> None:
        if self._text:
            text = "".join(self._text)
            if self._raw_title:
                text = unescape(text)
            self._ready.append(Token(TokenKind.TEXT, text))
            self._text.clear()

    def drain(self) -> Iterator[Token]:
        while self._ready:
            yield self._ready.popleft()

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._emit(Token(TokenKind.START_TAG, tag, self._attrs(attrs)))
        if tag == "title" and not _NATIVE_RCDATA_TITLE:
            # Everything up to </title> is text; charrefs are left to flush_text.
            self.set_cdata_mode(tag)
            self._raw_title = True

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._emit(Token(TokenKind.SELF_CLOSING_TAG, tag, self._attrs(attrs)))

    def handle_endtag(self, tag: str) -> None:
        self._emit(Token(TokenKind.END_TAG, tag))
        self._raw_title = False

    def handle_data(self, data: str) -> None:
        self._text.append(data)

    def close(self) -> None:
        if self.cdata_elem == "title":
            # Unterminated <title>: let the parser hand over what is left as plain data.
            self.clear_cdata_mode()
            self._raw_title = False
        super().close()

    def handle_comment(self, data: str) -> None:
        self._emit(Token(TokenKind.COMMENT, data))

    def handle_decl(self, decl: str) -> None:
        self._emit(Token(TokenKind.DOCTYPE, decl))


def iter_tokens(chunks: Iterable[str]) -> Iterator[Token]:
    """
    Lazily tokenize decoded HTML text.

    Chunks are pulled one at a time; a consumer that stops early never causes the rest of
    the stream to be read. A read failure of the underlying stream raises `TokenizeError`.
    """
    parser = _TokenCollector()
    it = iter(chunks)
    while True:
        try:
            chunk = next(it, None)
        except _STREAM_ERRORS as e:
            raise TokenizeError(f"error tokenizing HTML: {e}") from e
        if chunk is None:
            break
        parser.feed(chunk)
        yield from parser.drain()

    parser.close()
    parser.flush_text()
    yield from parser.drain()
