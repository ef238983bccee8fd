from __future__ import annotations

import html
from http import HTTPStatus
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from markupsafe import Markup

from .models import ColorScheme, SortingMethod, SortingOrder

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _escape_text(value: str) -> Markup:
    """Escape for an HTML text node; quotes stay readable."""
    return Markup(html.escape(value, quote=False))


templates.env.filters["text"] = _escape_text


def parametrized_link(
    link: str,
    sort: Optional[SortingMethod],
    order: Optional[SortingOrder],
    color_scheme: ColorScheme,
    default_color_scheme: ColorScheme,
) -> str:
    """Append the current view settings to ``link``.

    ``sort`` and ``order`` are only kept as a pair; the theme only when it
    differs from the server default.
    """
    params: list[tuple[str, str]] = []
    if sort is not None and order is not None:
        params += [("sort", sort.value), ("order", order.value)]
    if color_scheme != default_color_scheme:
        params.append(("theme", color_scheme.value))
    if not params:
        return link
    separator = "&" if "?" in link else "?"
    return f"{link}{separator}{urlencode(params)}"


def render_error(
    description: str,
    error_code: int,
    return_path: str,
    sort: Optional[SortingMethod],
    order: Optional[SortingOrder],
    color_scheme: ColorScheme,
    default_color_scheme: ColorScheme,
    has_referer: bool,
    display_root_link: bool,
) -> str:
    """Render the HTML error page."""
    try:
        phrase = HTTPStatus(error_code).phrase
    except ValueError:
        phrase = ""
    template = templates.get_template("error.html")
    return template.render(
        lines=description.splitlines() or [description],
        error_code=error_code,
        phrase=phrase,
        theme=color_scheme.value,
        back_link=parametrized_link(
            return_path, sort, order, color_scheme, default_color_scheme
        ),
        root_link=parametrized_link(
            "/", sort, order, color_scheme, default_color_scheme
        ),
        has_referer=has_referer,
        display_root_link=display_root_link,
    )


def create_error_response(
    description: str,
    error_code: int,
    return_path: str,
    sort: Optional[SortingMethod],
    order: Optional[SortingOrder],
    color_scheme: ColorScheme,
    default_color_scheme: ColorScheme,
    uses_random_route: bool,
    status_code: int = 400,
) -> HTMLResponse:
    """Build the response shown when an upload fails.

    ``error_code`` is the status printed on the page; ``status_code`` is the
    one sent on the wire. Only formatting happens here.
    """
    body = render_error(
        description,
        error_code,
        return_path,
        sort,
        order,
        color_scheme,
        default_color_scheme,
        has_referer=True,
        display_root_link=not uses_random_route,
    )
    return HTMLResponse(
        content=body,
        status_code=status_code,
        media_type="text/html; charset=utf-8",
    )
