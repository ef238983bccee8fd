from __future__ import annotations

import logging

from fastapi import FastAPI

from ..config import Settings, config
from .routes import upload

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Создать приложение FastAPI с маршрутами загрузки.

    При заданном ``random_route`` все маршруты живут под этим префиксом.
    """
    settings = settings or config
    app = FastAPI(title="dropserve")
    app.state.settings = settings
    app.include_router(upload.router, prefix=settings.route_prefix)
    if settings.uses_random_route:
        logger.info("Serving under random route %s", settings.route_prefix)
    return app


app = create_app()
