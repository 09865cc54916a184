from __future__ import annotations

import uvicorn

from page_meta.api import create_app
from page_meta.config import load_settings
from page_meta.log import configure_logging


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
