"""Входная точка для запуска dropserve.

Запускает сервер FastAPI, определённый в модуле ``web_app.server``.
Параметры сервера задаются через переменные окружения, настройки загрузки
(``ROOT_DIR``, ``OVERWRITE_FILES`` и т.д.) читает ``config.Settings``.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from .config import config
from .logging_config import setup_logging
from .web_app.server import app

logger = logging.getLogger(__name__)


def main() -> None:
    """Точка входа для запуска сервера.

    Значения берутся из переменных окружения:
    ``HOST`` (по умолчанию ``0.0.0.0``),
    ``PORT`` (по умолчанию ``8080``)
    и ``RELOAD`` (``true``/``false``, по умолчанию ``false``).
    """
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8080"))
    reload = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes"}

    setup_logging(config.log_level, config.log_file)
    logger.info(
        "Serving %s on %s:%s (overwrite_files=%s)",
        config.root_dir,
        host,
        port,
        config.overwrite_files,
    )

    try:
        if reload:
            uvicorn.run(
                "dropserve.web_app.server:app", host=host, port=port, reload=True
            )
        else:
            uvicorn.run(app, host=host, port=port)
    except Exception:
        logger.exception("Не удалось запустить сервер")
        sys.exit(1)


if __name__ == "__main__":
    main()
