"""Run the relay with uvicorn: ``python -m rendezvous``."""
from __future__ import annotations

import logging

import uvicorn

from .core.config import settings

logger = logging.getLogger("rendezvous")


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting signaling relay on %s:%s", settings.host, settings.port)
    uvicorn.run("rendezvous.main:app", host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
