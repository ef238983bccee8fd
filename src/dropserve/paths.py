from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from .errors import (
    InsufficientPermissionsError,
    InvalidPathError,
    ServerMisconfiguredError,
    TargetNotDirectoryError,
)
from .models import ResolvedTarget

logger = logging.getLogger(__name__)


def _strip_root(requested: str) -> str:
    """Treat ``/foo`` from the client as ``foo`` below the served root."""
    return requested.lstrip("/")


def resolve_root(root_dir: str | Path) -> Path:
    """Canonicalize the served root directory."""
    try:
        return Path(root_dir).resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ServerMisconfiguredError(
            "Failed to resolve path served by dropserve"
        ) from exc


def resolve_target(root_dir: str | Path, requested: str | None) -> ResolvedTarget:
    """Validate ``requested`` against ``root_dir`` and return the upload directory.

    Both the root and the joined candidate are canonicalized (``..`` and
    symlinks resolved) before they are compared, so a symlink pointing out
    of the root is rejected just like a literal ``../``.

    Raises
    ------
    InvalidPathError
        ``requested`` is missing or resolves outside the root.
    ServerMisconfiguredError
        The root itself cannot be resolved.
    TargetNotDirectoryError, InsufficientPermissionsError
        The directory exists but cannot receive files.
    """
    if requested is None:
        raise InvalidPathError("Missing query parameter 'path'")

    root = resolve_root(root_dir)
    try:
        candidate = (root / _strip_root(requested)).resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        candidate = None
    if candidate is None or not candidate.is_relative_to(root):
        logger.warning("Rejected upload path %r (root %s)", requested, root)
        raise InvalidPathError("Invalid value for 'path' parameter")

    try:
        mode = os.stat(candidate).st_mode
    except OSError as exc:
        raise InsufficientPermissionsError(str(candidate)) from exc
    if not stat.S_ISDIR(mode):
        raise TargetNotDirectoryError(str(candidate))
    if not os.access(candidate, os.W_OK):
        raise InsufficientPermissionsError(str(candidate))

    return ResolvedTarget(root=root, directory=candidate)
