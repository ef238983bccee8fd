from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict

import yaml


FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULTS: Dict[str, Any] = {
    "max_bytes": 1024 * 1024,
    "backup_count": 3,
    "format": FORMAT,
}


def load_logging_config() -> Dict[str, Any]:
    """Read the ``logging`` section of the YAML config file, if there is one.

    The file path can be overridden via the ``DROPSERVE_CONFIG`` environment
    variable.
    """
    config_path = Path(os.environ.get("DROPSERVE_CONFIG", "config.yml"))
    try:
        with config_path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        return {}
    section = data.get("logging", {}) if isinstance(data, dict) else {}
    return section if isinstance(section, dict) else {}


def setup_logging(level: str, log_file: Path | str | None) -> None:
    """Configure logging for console and optional file output.

    Parameters
    ----------
    level:
        Log level name (e.g., "INFO", "DEBUG"). Overridden by ``logging.level``
        from the YAML config.
    log_file:
        If provided, logs are also written to this file, rotated by size.
        Overridden by ``logging.file`` from the YAML config.
    """
    cfg = {**DEFAULTS, **load_logging_config()}
    level_name = str(cfg.get("level", level)).upper()
    log_file = cfg.get("file", log_file)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(cfg["max_bytes"]),
                backupCount=int(cfg["backup_count"]),
            )
        )

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=cfg["format"],
        handlers=handlers,
        force=True,
    )
