# inventario/__main__.py
from __future__ import annotations

import logging
import sys

import uvicorn

from inventario.core.logging import setup_logging
from inventario.core.settings import get_settings

logger = logging.getLogger("inventario")


def main() -> None:
    """Pornește serverul pe HOST:PORT; eșecul la startup închide procesul cu status != 0."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting %s %s on http://%s:%s", settings.APP_TITLE, settings.APP_VERSION, settings.HOST, settings.PORT)
    config = uvicorn.Config(
        "inventario.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        lifespan="on",
    )
    server = uvicorn.Server(config)
    server.run()
    if not server.started:
        logger.error("Server failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
