from __future__ import annotations

import logging
from contextlib import aclosing

from fastapi.responses import HTMLResponse, RedirectResponse

from .errors import UploadError, log_error_chain
from .models import UploadOutcome, UploadRequest
from .multipart import iter_parts
from .paths import resolve_target
from .rendering import create_error_response
from .writer import save_part

logger = logging.getLogger(__name__)

# Status sent with every error page unless strict status codes are enabled.
COMPAT_ERROR_STATUS = 400


async def process_upload(request: UploadRequest) -> UploadOutcome:
    """Save every file of ``request`` below the requested directory.

    Parts are handled strictly in body order and processing stops at the
    first failure; files written before it are left on disk.
    """
    outcome = UploadOutcome()
    try:
        target = resolve_target(request.root_dir, request.query.path)
        parts = iter_parts(request.body, request.content_type, target)
        async with aclosing(parts):
            async for part in parts:
                logger.debug("Receiving %s into %s", part.filename, target.directory)
                written = await save_part(
                    part.path, part.stream, request.overwrite_files
                )
                outcome.written.append(written)
    except UploadError as exc:
        log_error_chain(exc)
        outcome.error = exc
        return outcome

    logger.info(
        "Uploaded %d file(s) to %s", len(outcome.written), target.directory
    )
    outcome.redirect_to = request.return_path
    return outcome


def build_response(
    request: UploadRequest,
    outcome: UploadOutcome,
    strict_status_codes: bool = False,
) -> HTMLResponse | RedirectResponse:
    """Turn an upload outcome into the HTTP response for the browser."""
    if outcome.error is None:
        return RedirectResponse(
            url=outcome.redirect_to or request.return_path, status_code=303
        )

    error = outcome.error
    return create_error_response(
        str(error),
        error.status_code,
        request.return_path,
        request.query.sort,
        request.query.order,
        request.color_scheme,
        request.default_color_scheme,
        request.uses_random_route,
        status_code=error.status_code if strict_status_codes else COMPAT_ERROR_STATUS,
    )


async def handle_upload(
    request: UploadRequest, strict_status_codes: bool = False
) -> HTMLResponse | RedirectResponse:
    outcome = await process_upload(request)
    return build_response(request, outcome, strict_status_codes)
