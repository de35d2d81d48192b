"""Entrypoint: python -m mesa_chat"""
from __future__ import annotations

import logging

import uvicorn

from mesa_chat.api.middleware.correlation_id import CorrelationIdFilter
from mesa_chat.config import settings


def main() -> None:
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s",
        handlers=[handler],
    )
    uvicorn.run(
        "mesa_chat.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
