# /postino/__main__.py
from __future__ import annotations

import logging

import uvicorn

from postino.config import settings

LOG = logging.getLogger("postino")


def main() -> None:
    from postino.adapters.api.fastapi_app import app

    LOG.info("postino.starting", extra={"extra": {"host": settings.HOST, "port": settings.PORT}})
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
