from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from page_meta.encoding import DEFAULT_PEEK_SIZE
from page_meta.html_head import extract_stream_metadata

logger = logging.getLogger(__name__)


_ALLOWED_SCHEMES = {"http", "https"}


class FetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class FetchedPage:
    url: str
    host: str
    protocol: str
    status_code: int
    status_text: str
    content_type: str | None
    title: str
    metas: dict[str, str] = field(default_factory=dict)


def _check_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise FetchError(str(e)) from e
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise FetchError(f"unsupported protocol in URL {url!r}")
    if not parsed.host:
        raise FetchError(f"missing host in URL {url!r}")
    return parsed


def fetch_page(
    url: str,
    *,
    timeout_s: float = 20.0,
    follow_redirects: bool = True,
    user_agent: str | None = None,
    peek_size: int = DEFAULT_PEEK_SIZE,
    decode_errors: str = "replace",
    transport: httpx.BaseTransport | None = None,
) -> FetchedPage:
    """
    GET `url` and extract title/meta tags from the streamed body.

    Only the part of the body up to `</head>` is read. Non-2xx responses are extracted like
    any other; invalid URLs and transport failures raise `FetchError`. Stream failures while
    reading the body surface as `TokenizeError`.
    """
    target = _check_url(url)
    headers: dict[str, str] = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    try:
        with httpx.Client(
            timeout=timeout_s,
            follow_redirects=follow_redirects,
            headers=headers,
            transport=transport,
        ) as client:
            with client.stream("GET", target) as r:
                ct = r.headers.get("content-type")
                result = extract_stream_metadata(
                    r.iter_bytes(),
                    ct,
                    peek_size=peek_size,
                    decode_errors=decode_errors,
                )
                request = r.history[0].request if r.history else r.request
                status_code = r.status_code
                status_text = f"{r.status_code} {r.reason_phrase}".strip()
                protocol = r.http_version
    except (httpx.InvalidURL, httpx.HTTPError) as e:
        raise FetchError(str(e) or e.__class__.__name__) from e

    logger.info("fetched %s status=%s metas=%d", url, status_code, len(result.metas))
    return FetchedPage(
        url=str(request.url),
        host=request.url.netloc.decode("ascii"),
        protocol=protocol,
        status_code=status_code,
        status_text=status_text,
        content_type=ct,
        title=result.title,
        metas=result.metas,
    )
