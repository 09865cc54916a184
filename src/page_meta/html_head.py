from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from page_meta.encoding import DEFAULT_PEEK_SIZE, normalize_stream
from page_meta.html_tokens import Token, TokenKind, iter_tokens


@dataclass(frozen=True)
class ExtractionResult:
    title: str
    metas: dict[str, str]


class _Step(Enum):
    HEAD_END = "head_end"
    TITLE = "title"
    META = "meta"
    SKIP = "skip"


_KEY_ATTRS = frozenset({"property", "name", "itemprop"})


def _step(token: Token) -> _Step:
    kind, name = token.kind, token.data
    if kind is TokenKind.END_TAG and name == "head":
        return _Step.HEAD_END
    if kind is TokenKind.START_TAG and name == "title":
        return _Step.TITLE
    if name == "meta" and token.is_tag:
        return _Step.META
    return _Step.SKIP


def _meta_entry(attrs: Iterable[tuple[str, str]]) -> tuple[str, str]:
    key = ""
    value = ""
    charset: str | None = None
    for name, val in attrs:
        if name in _KEY_ATTRS:
            key = val.replace(":", "_")
        elif name == "content":
            value = val
        elif name == "charset":
            charset = val
    if charset is not None:
        return "charset", charset
    return key, value


def extract_head_metadata(tokens: Iterable[Token]) -> ExtractionResult:
    """
    Collect the page title and `<meta>` tags from a token stream.

    Stops pulling tokens at `</head>`; a stream that ends earlier yields whatever was
    collected so far. Tokenizer errors propagate.
    """
    title = ""
    metas: dict[str, str] = {}

    stream = iter(tokens)
    for token in stream:
        step = _step(token)
        if step is _Step.HEAD_END:
            break
        if step is _Step.TITLE:
            content = next(stream, None)
            if content is not None:
                title = content.data if content.kind is TokenKind.TEXT else ""
        elif step is _Step.META:
            key, value = _meta_entry(token.attrs)
            metas[key] = value

    return ExtractionResult(title=title, metas=metas)


def extract_stream_metadata(
    chunks: Iterable[bytes],
    content_type: str | None = None,
    *,
    peek_size: int = DEFAULT_PEEK_SIZE,
    decode_errors: str = "replace",
) -> ExtractionResult:
    text = normalize_stream(chunks, content_type, peek_size=peek_size, errors=decode_errors)
    return extract_head_metadata(iter_tokens(text))


def extract_html_head_metadata(body: bytes, content_type: str | None = None) -> ExtractionResult:
    """
    Title and meta extraction for a document already held in memory.
    """
    return extract_stream_metadata([body], content_type)
