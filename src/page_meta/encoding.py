from __future__ import annotations

import codecs
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

DEFAULT_PEEK_SIZE = 4096

# Labels follow the WHATWG Encoding Standard. Anything missing here is looked up
# in Python's codec registry afterwards.
_WEB_ENCODINGS: dict[str, tuple[str, ...]] = {
    "utf-8": ("unicode-1-1-utf-8", "utf-8", "utf8"),
    "cp1252": (
        "ansi_x3.4-1968",
        "ascii",
        "cp1252",
        "cp819",
        "csisolatin1",
        "ibm819",
        "iso-8859-1",
        "iso-ir-100",
        "iso8859-1",
        "iso88591",
        "iso_8859-1",
        "l1",
        "latin1",
        "us-ascii",
        "windows-1252",
        "x-cp1252",
    ),
    "iso8859_2": ("csisolatin2", "iso-8859-2", "iso8859-2", "l2", "latin2"),
    "iso8859_5": ("csisolatincyrillic", "cyrillic", "iso-8859-5", "iso8859-5"),
    "iso8859_7": ("csisolatingreek", "greek", "iso-8859-7", "iso8859-7"),
    "iso8859_8": ("csisolatinhebrew", "hebrew", "iso-8859-8", "iso-8859-8-i", "visual"),
    "iso8859_15": ("csisolatin9", "iso-8859-15", "iso8859-15", "l9", "latin9"),
    "cp874": ("dos-874", "iso-8859-11", "tis-620", "windows-874"),
    "cp1250": ("cp1250", "windows-1250", "x-cp1250"),
    "cp1251": ("cp1251", "windows-1251", "x-cp1251"),
    "cp1253": ("cp1253", "windows-1253", "x-cp1253"),
    "cp1254": ("cp1254", "iso-8859-9", "l5", "latin5", "windows-1254", "x-cp1254"),
    "cp1255": ("cp1255", "windows-1255", "x-cp1255"),
    "cp1256": ("cp1256", "windows-1256", "x-cp1256"),
    "cp1257": ("cp1257", "windows-1257", "x-cp1257"),
    "cp1258": ("cp1258", "windows-1258", "x-cp1258"),
    "koi8_r": ("cskoi8r", "koi", "koi8", "koi8-r", "koi8_r"),
    "koi8_u": ("koi8-ru", "koi8-u"),
    "mac_roman": ("csmacintosh", "mac", "macintosh", "x-mac-roman"),
    "mac_cyrillic": ("x-mac-cyrillic", "x-mac-ukrainian"),
    "gb18030": ("chinese", "csgb2312", "gb18030", "gb2312", "gb_2312-80", "gbk", "iso-ir-58", "x-gbk"),
    "big5hkscs": ("big5", "big5-hkscs", "cn-big5", "csbig5", "x-x-big5"),
    "euc_jp": ("cseucpkdfmtjapanese", "euc-jp", "x-euc-jp"),
    "iso2022_jp": ("csiso2022jp", "iso-2022-jp"),
    "cp932": ("csshiftjis", "ms932", "ms_kanji", "shift-jis", "shift_jis", "sjis", "windows-31j", "x-sjis"),
    "cp949": ("csksc56011987", "euc-kr", "korean", "ks_c_5601-1987", "ksc5601", "windows-949"),
    "utf_16_be": ("unicodefffe", "utf-16be"),
    "utf_16_le": ("csunicode", "iso-10646-ucs-2", "ucs-2", "unicode", "unicodefeff", "utf-16", "utf-16le"),
}

_LABELS: dict[str, str] = {
    label: codec for codec, labels in _WEB_ENCODINGS.items() for label in labels
}

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?\s*([^\"';\s]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(rb"<meta[^>]+?charset\s*=\s*[\"']?\s*([\w:.\-]+)", re.IGNORECASE)

# Text codecs in Python's registry that are not document character sets.
_NOT_CHARSETS = frozenset(
    {
        "idna",
        "punycode",
        "undefined",
        "unicode-escape",
        "unicode_escape",
        "raw-unicode-escape",
        "raw_unicode_escape",
    }
)


@dataclass(frozen=True)
class EncodingDecision:
    """
    How a byte stream gets decoded.

    `encoding` is a Python codec name, or None for pass-through (UTF-8).
    `label` is the charset label as it was declared, when there was one.
    """

    encoding: str | None
    label: str | None
    source: str


def lookup_label(label: str) -> str | None:
    return _LABELS.get(label.strip().lower())


def _bom_encoding(sample: bytes) -> str | None:
    for bom, codec in _BOMS:
        if sample.startswith(bom):
            return codec
    return None


def _header_charset(content_type: str | None) -> str | None:
    m = _HEADER_CHARSET_RE.search(content_type or "")
    return m.group(1) if m else None


def _meta_charset(sample: bytes) -> str | None:
    m = _META_CHARSET_RE.search(sample)
    return m.group(1).decode("ascii", errors="ignore") if m else None


def _detect(sample: bytes) -> str | None:
    try:
        # final=False tolerates a multi-byte sequence cut off by the peek window.
        codecs.getincrementaldecoder("utf-8")().decode(sample)
        return "utf-8"
    except UnicodeDecodeError:
        pass
    best = from_bytes(sample).best()
    return best.encoding if best is not None else None


def sniff_encoding(sample: bytes, content_type: str | None = None) -> EncodingDecision:
    """
    Guess the encoding of an HTML document from its leading bytes.

    Precedence: byte-order mark, `charset=` of the declared content-type, a
    `<meta>` charset declaration in the sample, then statistical detection.
    A declared label missing from the web label table comes back with
    `encoding=None` so the caller can try a broader registry.
    """
    bom = _bom_encoding(sample)
    if bom:
        return EncodingDecision(encoding=bom, label=None, source="bom")

    for source, label in (("header", _header_charset(content_type)), ("meta", _meta_charset(sample))):
        if not label:
            continue
        codec = lookup_label(label)
        if codec is None:
            return EncodingDecision(encoding=None, label=label, source=source)
        if source == "meta" and codec.startswith("utf_16"):
            # A meta tag that could be read as ASCII cannot be UTF-16.
            codec = "utf-8"
        return EncodingDecision(encoding=codec, label=label, source=source)

    return EncodingDecision(encoding=_detect(sample), label=None, source="detected")


def _from_sniff(sniffed: EncodingDecision, sample: bytes) -> EncodingDecision | None:
    return sniffed if sniffed.encoding else None


def _from_registry(sniffed: EncodingDecision, sample: bytes) -> EncodingDecision | None:
    if not sniffed.label:
        return None
    try:
        info = codecs.lookup(sniffed.label)
    except LookupError:
        return None
    if not getattr(info, "_is_text_encoding", True) or info.name in _NOT_CHARSETS:
        return None
    try:
        codecs.getincrementaldecoder(info.name)(errors="replace").decode(sample)
    except (LookupError, UnicodeError, ValueError, AssertionError):
        return None
    return EncodingDecision(encoding=info.name, label=sniffed.label, source="registry")


_RESOLVERS = (_from_sniff, _from_registry)


def resolve_encoding(sample: bytes, content_type: str | None = None) -> EncodingDecision:
    try:
        sniffed = sniff_encoding(sample, content_type)
    except Exception:  # noqa: BLE001
        logger.debug("encoding sniffing failed; passing bytes through", exc_info=True)
        return EncodingDecision(encoding=None, label=None, source="passthrough")

    for resolver in _RESOLVERS:
        decision = resolver(sniffed, sample)
        if decision is not None:
            return decision
    return EncodingDecision(encoding=None, label=sniffed.label, source="passthrough")


def _peek(chunks: Iterator[bytes], size: int) -> tuple[bytes, Exception | None]:
    buf = bytearray()
    try:
        for chunk in chunks:
            buf += chunk
            if len(buf) >= size:
                break
    except Exception as e:  # noqa: BLE001
        return bytes(buf), e
    return bytes(buf), None


def normalize_stream(
    chunks: Iterable[bytes],
    content_type: str | None = None,
    *,
    peek_size: int = DEFAULT_PEEK_SIZE,
    errors: str = "replace",
) -> Iterator[str]:
    """
    Decode a byte stream into text, sniffing the encoding from the first `peek_size` bytes.

    The peeked bytes are replayed ahead of the rest of the stream. If reading the peek
    window fails, the stream is passed through as UTF-8 and the read error is raised
    again once the bytes read so far have been yielded.
    """
    if peek_size <= 0:
        raise ValueError("peek_size must be > 0")

    it = iter(chunks)
    head, peek_error = _peek(it, peek_size)
    if peek_error is not None:
        decision = EncodingDecision(encoding=None, label=None, source="passthrough")
    else:
        decision = resolve_encoding(head[:peek_size], content_type)
    logger.debug(
        "decoding stream as %s (label=%r source=%s)",
        decision.encoding or "utf-8",
        decision.label,
        decision.source,
    )

    decoder = codecs.getincrementaldecoder(decision.encoding or "utf-8")(errors=errors)
    if head:
        text = decoder.decode(head)
        if text:
            yield text
    if peek_error is not None:
        raise peek_error

    for chunk in it:
        text = decoder.decode(chunk)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail
