from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from ...config import Settings
from ...models import QueryParameters, UploadRequest
from ...rendering import templates
from ...upload import handle_upload

router = APIRouter()

logger = logging.getLogger(__name__)


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def build_upload_request(request: Request, settings: Settings) -> UploadRequest:
    """Собрать ``UploadRequest`` из HTTP-запроса и настроек сервера."""
    return UploadRequest(
        return_path=request.headers.get("referer") or "/",
        query=QueryParameters.from_query(request.query_params),
        content_type=request.headers.get("content-type", ""),
        body=request.stream(),
        root_dir=Path(settings.root_dir),
        overwrite_files=settings.overwrite_files,
        default_color_scheme=settings.default_color_scheme,
        uses_random_route=settings.uses_random_route,
    )


@router.post("/upload")
async def upload_file(request: Request):
    """Принять multipart-тело и сохранить файлы в каталог из параметра ``path``.

    Ответ: ``303`` на страницу, с которой пришёл запрос, либо HTML-страница
    с описанием ошибки.
    """
    settings = _settings(request)
    upload_request = build_upload_request(request, settings)
    logger.debug(
        "Upload request from %s, path=%r",
        request.client.host if request.client else "-",
        upload_request.query.path,
    )
    return await handle_upload(upload_request, settings.strict_status_codes)


@router.get("/", response_class=HTMLResponse)
async def serve_index(request: Request):
    """Отдать форму загрузки в корневой каталог."""
    settings = _settings(request)
    theme = QueryParameters.from_query(request.query_params).theme
    template = templates.get_template("index.html")
    return HTMLResponse(
        template.render(
            action=f"{settings.route_prefix}/upload?path=/",
            theme=(theme or settings.default_color_scheme).value,
        )
    )
