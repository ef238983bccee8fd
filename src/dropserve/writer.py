from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path
from typing import AsyncIterator, BinaryIO

from .errors import AlreadyExistsError, FileWriteError
from .models import WriteOutcome

logger = logging.getLogger(__name__)


def _open(path: Path, overwrite_files: bool) -> BinaryIO:
    # "xb" keeps a file created between the existence check and here intact
    return open(path, "wb" if overwrite_files else "xb")


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as exc:
        raise FileWriteError(f"Failed to create {path}", str(path)) from exc


async def save_part(
    path: Path, stream: AsyncIterator[bytes], overwrite_files: bool
) -> WriteOutcome:
    """Write ``stream`` to a new file at ``path`` chunk by chunk.

    Chunk writes run in a worker thread, so other requests keep being served
    while the disk is busy. On failure the partially written file stays
    where it is.

    Raises
    ------
    AlreadyExistsError
        ``path`` exists and ``overwrite_files`` is off; nothing is opened.
    FileWriteError
        The file could not be created or a chunk could not be written.
    """
    if not overwrite_files and _exists(path):
        raise AlreadyExistsError(str(path))

    try:
        handle = _open(path, overwrite_files)
    except FileExistsError as exc:
        raise AlreadyExistsError(str(path)) from exc
    except OSError as exc:
        raise FileWriteError(f"Failed to create {path}", str(path)) from exc

    size = 0
    try:
        async for chunk in stream:
            try:
                await asyncio.to_thread(handle.write, chunk)
            except OSError as exc:
                raise FileWriteError("Failed to write to file", str(path)) from exc
            size += len(chunk)
    except BaseException:
        # the error already in flight is the one to report
        with suppress(OSError):
            handle.close()
        raise

    try:
        await asyncio.to_thread(handle.close)
    except OSError as exc:
        raise FileWriteError("Failed to write to file", str(path)) from exc

    logger.info("Saved %s (%d bytes)", path, size)
    return WriteOutcome(path=path, size=size)
