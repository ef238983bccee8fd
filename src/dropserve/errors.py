from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Base class for every failure an upload request can end with.

    Subclasses form a closed set; each one carries a ``kind`` tag and the
    HTTP status that best describes it. ``str(error)`` yields the text shown
    to the user: the message followed by one ``caused by:`` line for the
    optional detail and for every link of the exception chain.
    """

    kind = "UploadError"
    status_code = 500

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def causes(self) -> list[str]:
        """Return the message of this error followed by all of its causes."""
        lines = [self.message]
        if self.detail:
            lines.append(self.detail)
        cause = self.__cause__
        while cause is not None:
            if isinstance(cause, UploadError):
                lines.extend(cause.causes())
                break
            lines.append(str(cause) or type(cause).__name__)
            cause = cause.__cause__
        return lines

    def __str__(self) -> str:
        head, *rest = self.causes()
        return "\n".join([head, *(f"caused by: {line}" for line in rest)])


class InvalidPathError(UploadError):
    """Destination is outside the served root, or ``path`` is missing."""

    kind = "InvalidPath"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__("Invalid HTTP request", detail)


class TargetNotDirectoryError(UploadError):
    kind = "NotADirectory"
    status_code = 400

    def __init__(self, path: str) -> None:
        super().__init__(
            "Invalid path",
            f"cannot upload file to {path}, since it's not a directory",
        )
        self.path = path


class InsufficientPermissionsError(UploadError):
    kind = "InsufficientPermissions"
    status_code = 403

    def __init__(self, path: str) -> None:
        super().__init__(f"Insufficient permissions to create file in {path}")
        self.path = path


class ServerMisconfiguredError(UploadError):
    """The served root itself cannot be resolved."""

    kind = "ServerMisconfigured"
    status_code = 500


class ParseError(UploadError):
    kind = "ParseError"
    status_code = 400

    def __init__(self, what: str, detail: str) -> None:
        super().__init__(f"Failed to parse {what}", detail)


class AlreadyExistsError(UploadError):
    kind = "AlreadyExists"
    status_code = 409

    def __init__(self, path: str) -> None:
        super().__init__(
            "File already exists, and the overwrite_files option has not been set"
        )
        self.path = path


class FileWriteError(UploadError):
    """Creating or writing a destination file failed.

    The underlying ``OSError`` is expected as ``__cause__``.
    """

    kind = "IOError"
    status_code = 500

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class TransportError(UploadError):
    """The multipart body is malformed or the client went away mid-read."""

    kind = "TransportError"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__("Failed to process multipart request", detail)


def log_error_chain(error: BaseException) -> None:
    """Log ``error`` line by line, one entry per cause."""
    for line in str(error).splitlines():
        logger.error("%s", line)
