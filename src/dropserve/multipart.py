"""Streaming extraction of uploaded files from a ``multipart/form-data`` body.

``python-multipart`` is a push parser: it invokes callbacks while bytes are
written into it. The upload code wants the opposite, a lazy sequence of parts
whose bodies are pulled chunk by chunk. ``_EventReader`` bridges the two: it
feeds one body chunk at a time into the parser and hands out the queued
callback events on demand, so at most one body chunk is held in memory.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import AsyncIterator, Deque, Dict, Optional, Tuple

from python_multipart import MultipartParser
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header
from starlette.requests import ClientDisconnect

from .errors import ParseError, TransportError
from .models import ResolvedTarget, UploadPart

logger = logging.getLogger(__name__)

# Upper bound for the headers of a single part.
MAX_HEADER_BYTES = 16 * 1024


class _Event(Enum):
    HEADERS = "headers"
    DATA = "data"
    END = "end"


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def parse_boundary(content_type: str | None) -> bytes:
    """Return the multipart boundary declared by ``content_type``."""
    if not content_type:
        raise TransportError("Missing Content-Type header")
    mime, options = parse_options_header(content_type)
    if not mime.lower().startswith(b"multipart/"):
        raise TransportError(f"Unsupported content type {mime.decode('latin-1')}")
    boundary = options.get(b"boundary")
    if not boundary:
        raise TransportError("No boundary in multipart Content-Type")
    return boundary


def _nested_boundary(content_type: Optional[str]) -> Optional[bytes]:
    if not content_type:
        return None
    mime, _ = parse_options_header(content_type)
    if not mime.lower().startswith(b"multipart/"):
        return None
    return parse_boundary(content_type)


def safe_filename(raw: str) -> str:
    """Reduce a declared filename to its last path component.

    Browsers may send full client paths (``C:\\Users\\me\\a.txt``) and a
    hostile client may send ``../../a.txt``; only ``a.txt`` is kept.
    """
    name = raw.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if name in {"", ".", ".."} or "\x00" in name:
        raise ParseError("HTTP header", f"Invalid name of the file to upload: {raw!r}")
    return name


def part_filename(headers: Dict[str, str]) -> str:
    """Extract the filename from a part's ``Content-Disposition`` header."""
    disposition = headers.get("content-disposition")
    filename = None
    if disposition:
        try:
            _, options = parse_options_header(disposition)
        except ValueError:
            options = {}
        filename = options.get(b"filename")
    if not filename:
        raise ParseError(
            "HTTP header", "Failed to retrieve the name of the file to upload"
        )
    return _decode(filename)


class _EventReader:
    """Pull-style access to the callback events of a ``MultipartParser``."""

    def __init__(self, source: AsyncIterator[bytes], boundary: bytes) -> None:
        self._source = source.__aiter__()
        self._events: Deque[Tuple[_Event, object]] = deque()
        self._exhausted = False
        self._complete = False
        self._header_size = 0
        self._headers: Dict[str, str] = {}
        self._field = bytearray()
        self._value = bytearray()
        self._parser = MultipartParser(
            boundary,
            {
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._header_size = 0

    def _grow_header(self, buf: bytearray, data: bytes, start: int, end: int) -> None:
        self._header_size += end - start
        if self._header_size > MAX_HEADER_BYTES:
            raise TransportError("Multipart part headers are too large")
        buf.extend(data[start:end])

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._grow_header(self._field, data, start, end)

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._grow_header(self._value, data, start, end)

    def _on_header_end(self) -> None:
        if self._field:
            name = self._field.decode("latin-1").strip().lower()
            self._headers[name] = self._value.decode("latin-1").strip()
        self._field = bytearray()
        self._value = bytearray()

    def _on_headers_finished(self) -> None:
        self._events.append((_Event.HEADERS, self._headers))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append((_Event.DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((_Event.END, None))

    def _on_end(self) -> None:
        self._complete = True

    async def _feed(self) -> None:
        try:
            chunk = await self._source.__anext__()
        except StopAsyncIteration:
            self._exhausted = True
            self._parser.finalize()
            if not self._complete:
                raise TransportError("Incomplete multipart body") from None
            return
        except ClientDisconnect as exc:
            raise TransportError("Client disconnected during upload") from exc
        try:
            self._parser.write(chunk)
        except MultipartParseError as exc:
            raise TransportError(str(exc)) from exc

    async def next_event(self) -> Optional[Tuple[_Event, object]]:
        """Return the next parser event, or ``None`` once the body is done."""
        while not self._events:
            if self._exhausted:
                return None
            await self._feed()
        return self._events.popleft()


class PartBody:
    """Async byte stream of one part; reading past the part is impossible."""

    def __init__(self, reader: _EventReader) -> None:
        self._reader = reader
        self._ended = False

    def __aiter__(self) -> "PartBody":
        return self

    async def __anext__(self) -> bytes:
        if self._ended:
            raise StopAsyncIteration
        event = await self._reader.next_event()
        if event is None:
            raise TransportError("Unexpected end of multipart body")
        kind, payload = event
        if kind is _Event.DATA:
            return payload  # type: ignore[return-value]
        if kind is _Event.END:
            self._ended = True
            raise StopAsyncIteration
        raise TransportError("Unexpected part headers inside part data")

    async def drain(self) -> None:
        """Skip whatever the consumer left unread."""
        async for _ in self:
            pass


async def _iter_parts(
    reader: _EventReader, target: ResolvedTarget
) -> AsyncIterator[UploadPart]:
    while True:
        event = await reader.next_event()
        if event is None:
            return
        kind, payload = event
        if kind is not _Event.HEADERS or not isinstance(payload, dict):
            raise TransportError("Part data outside of a part")
        headers: Dict[str, str] = payload
        body = PartBody(reader)

        nested = _nested_boundary(headers.get("content-type"))
        if nested is not None:
            logger.debug("Descending into nested multipart part")
            async for part in _iter_parts(_EventReader(body, nested), target):
                yield part
            await body.drain()
            continue

        declared = part_filename(headers)
        name = safe_filename(declared)
        yield UploadPart(
            filename=declared,
            path=target.join(name),
            content_type=headers.get("content-type"),
            stream=body,
        )
        await body.drain()


async def iter_parts(
    body: AsyncIterator[bytes], content_type: str | None, target: ResolvedTarget
) -> AsyncIterator[UploadPart]:
    """Lazily yield the file parts of a multipart ``body`` in body order.

    Nested ``multipart/*`` parts are flattened into the same sequence. Each
    yielded part must be consumed (or abandoned) before the next one is
    requested; the body stream is single-pass.

    Raises
    ------
    ParseError
        A part has no usable filename.
    TransportError
        The body is not well-formed multipart data or the client disconnected.
    """
    boundary = parse_boundary(content_type)
    async for part in _iter_parts(_EventReader(body, boundary), target):
        yield part
