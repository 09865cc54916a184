from page_meta.config import Settings, load_settings
from page_meta.encoding import EncodingDecision, normalize_stream, resolve_encoding, sniff_encoding
from page_meta.fetch import FetchedPage, FetchError, fetch_page
from page_meta.html_head import (
    ExtractionResult,
    extract_head_metadata,
    extract_html_head_metadata,
    extract_stream_metadata,
)
from page_meta.html_tokens import Token, TokenizeError, TokenKind, iter_tokens

__all__ = [
    "__version__",
    "EncodingDecision",
    "ExtractionResult",
    "FetchError",
    "FetchedPage",
    "Settings",
    "Token",
    "TokenKind",
    "TokenizeError",
    "extract_head_metadata",
    "extract_html_head_metadata",
    "extract_stream_metadata",
    "fetch_page",
    "iter_tokens",
    "load_settings",
    "normalize_stream",
    "resolve_encoding",
    "sniff_encoding",
]

__version__ = "0.1.0"
