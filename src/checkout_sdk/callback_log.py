"""Append-only sinks for callback records."""

import os
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union

from fastapi import Request

from .errors import LoggingError

logger = logging.getLogger(__name__)

CALLBACK_ROUTES = ("success", "cancel", "redirect")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CallbackRecorder(Protocol):
    """Anything that can durably record a callback event."""

    def record(self, event: Dict[str, Any]) -> None:
        ...


class JsonLinesRecorder:
    """Appends one JSON object per line to a file.

    Each record goes out in a single ``os.write`` on an ``O_APPEND``
    descriptor, so concurrent writers interleave whole lines only.
    Nothing is ever rewritten or truncated.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def record(self, event: Dict[str, Any]) -> None:
        line = (json.dumps(event, default=str) + "\n").encode("utf-8")
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        except OSError as e:
            raise LoggingError(f"Cannot open {self.path}: {e}") from e
        try:
            written = os.write(fd, line)
        except OSError as e:
            raise LoggingError(f"Cannot append to {self.path}: {e}") from e
        finally:
            os.close(fd)
        if written != len(line):
            raise LoggingError(f"Short write to {self.path}: {written} of {len(line)} bytes")


class MemoryRecorder:
    """Keeps records in a list."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def record(self, event: Dict[str, Any]) -> None:
        self.records.append(event)


def file_recorders(log_dir: Union[str, Path]) -> Dict[str, JsonLinesRecorder]:
    """One ``<route>.log`` recorder per callback route under ``log_dir``."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return {route: JsonLinesRecorder(directory / f"{route}.log") for route in CALLBACK_ROUTES}


async def request_metadata(request: Request, include_body: bool = True) -> Dict[str, Any]:
    """Base record describing an inbound callback request."""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    entry: Dict[str, Any] = {
        "timestamp": utc_timestamp(),
        "method": request.method,
        "url": url,
        "headers": dict(request.headers),
        "query": dict(request.query_params),
    }
    if include_body:
        raw = await request.body()
        if not raw:
            entry["body"] = {}
        else:
            try:
                entry["body"] = json.loads(raw)
            except ValueError:
                entry["body"] = raw.decode("utf-8", errors="replace")
    return entry
