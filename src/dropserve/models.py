from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import UploadError


class SortingMethod(str, Enum):
    NAME = "name"
    SIZE = "size"
    DATE = "date"


class SortingOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class ColorScheme(str, Enum):
    ARCHLINUX = "archlinux"
    ZENBURN = "zenburn"
    MONOKAI = "monokai"
    SQUIRREL = "squirrel"


def _parse_enum(enum_cls, value: Optional[str]):
    if value is None:
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


class QueryParameters(BaseModel):
    """Query parameters of a listing/upload URL.

    Only ``path`` matters to the upload itself; the rest is passed through
    to the error page so that its links keep the user's view settings.
    """

    path: Optional[str] = None
    sort: Optional[SortingMethod] = None
    order: Optional[SortingOrder] = None
    theme: Optional[ColorScheme] = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "QueryParameters":
        """Build parameters from a raw query mapping, ignoring unknown values."""
        return cls(
            path=query.get("path"),
            sort=_parse_enum(SortingMethod, query.get("sort")),
            order=_parse_enum(SortingOrder, query.get("order")),
            theme=_parse_enum(ColorScheme, query.get("theme")),
        )


class ResolvedTarget(BaseModel):
    """Canonical upload directory, always the served root or inside it."""

    model_config = ConfigDict(frozen=True)

    root: Path
    directory: Path

    @model_validator(mode="after")
    def _inside_root(self) -> "ResolvedTarget":
        if not self.directory.is_relative_to(self.root):
            raise ValueError(f"{self.directory} is outside of {self.root}")
        return self

    def join(self, filename: str) -> Path:
        return self.directory / filename


class UploadRequest(BaseModel):
    """Everything the upload core needs from one HTTP request.

    ``body`` is the single-pass async byte stream of the request.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    return_path: str = "/"
    query: QueryParameters = Field(default_factory=QueryParameters)
    content_type: str = ""
    body: Any = None
    root_dir: Path
    overwrite_files: bool = False
    default_color_scheme: ColorScheme = ColorScheme.SQUIRREL
    uses_random_route: bool = False

    @property
    def color_scheme(self) -> ColorScheme:
        return self.query.theme or self.default_color_scheme


class UploadPart(BaseModel):
    """One leaf part of a multipart body, ready to be written."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    filename: str
    path: Path
    content_type: Optional[str] = None
    stream: Any = None


class WriteOutcome(BaseModel):
    path: Path
    size: int


class UploadOutcome(BaseModel):
    """Result of a whole upload request.

    Exactly one of ``redirect_to`` and ``error`` is set.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    written: List[WriteOutcome] = Field(default_factory=list)
    redirect_to: Optional[str] = None
    error: Optional[UploadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
