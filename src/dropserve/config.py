from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ColorScheme


class Settings(BaseSettings):
    """Configuration settings for the server.

    Values are read from the environment and from a ``.env`` file in the
    working directory; environment variables win.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None
    root_dir: str = "."
    overwrite_files: bool = False
    default_color_scheme: ColorScheme = ColorScheme.SQUIRREL
    random_route: Optional[str] = None
    strict_status_codes: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def uses_random_route(self) -> bool:
        return bool(self.random_route)

    @property
    def route_prefix(self) -> str:
        if not self.random_route:
            return ""
        return "/" + self.random_route.strip("/")


config = Settings()

__all__ = ["Settings", "config"]
