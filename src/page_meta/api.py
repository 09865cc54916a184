from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from page_meta import __version__
from page_meta.config import Settings, load_settings
from page_meta.fetch import FetchedPage, FetchError, fetch_page
from page_meta.html_tokens import TokenizeError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json;charset=UTF-8"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET,OPTIONS",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Max-Age": "86400",
}


def error_response(status_code: int, msg: str) -> JSONResponse:
    return JSONResponse({"msg": msg, "success": False}, status_code=status_code)


def page_payload(page: FetchedPage) -> dict[str, Any]:
    return {
        "host": page.host,
        "metas": page.metas,
        "protocol": page.protocol,
        "status_code": page.status_code,
        "status_text": page.status_text,
        "success": True,
        "title": page.title,
        "url": page.url,
    }


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    cfg = settings or load_settings()
    app = FastAPI(title="page-meta", version=__version__)

    @app.get("/")
    def get_page_meta(request: Request) -> Response:
        if not request.url.query:
            return error_response(400, "no query")
        url = request.query_params.get("url")
        if url is None:
            return error_response(400, "need url query")

        try:
            page = fetch_page(
                url,
                timeout_s=cfg.fetch_timeout_s,
                follow_redirects=cfg.follow_redirects,
                user_agent=cfg.user_agent,
                peek_size=cfg.peek_size,
                decode_errors=cfg.decode_errors,
                transport=transport,
            )
        except (FetchError, TokenizeError) as e:
            logger.warning("failed to extract %s: %s", url, e)
            return error_response(500, str(e))

        return JSONResponse(page_payload(page), headers=CORS_HEADERS, media_type=JSON_CONTENT_TYPE)

    @app.options("/")
    def preflight() -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    return app
