"""Media ingestion.

Turns user-selected image and video files into ``MediaDescriptor`` objects
carrying a base64 data URI, since the inference endpoint only accepts inline
media. Videos additionally get a still-frame preview captured with ffmpeg.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import random
import string
import subprocess
import time
from pathlib import Path
from typing import Iterable

from videogen.models import MediaDescriptor

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 100 * 1024 * 1024
ACCEPTED_TYPES = ("image/*", "video/*")
_PREVIEW_TIMEOUT = 30.0


class MediaIngestionError(ValueError):
    """Raised when a file cannot be turned into a media descriptor."""


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as ``data:<mime>;base64,<payload>``."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (mime type, bytes)."""
    if not uri.startswith("data:") or ";base64," not in uri:
        raise ValueError("Not a base64 data URI")
    header, payload = uri[5:].split(";base64,", 1)
    return header, base64.b64decode(payload)


def generate_media_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{int(time.time() * 1000)}_{suffix}"


def matches_accepted_type(mime_type: str, accepted: Iterable[str] = ACCEPTED_TYPES) -> bool:
    for pattern in accepted:
        if pattern.endswith("/*"):
            if mime_type.startswith(pattern[:-1]):
                return True
        elif mime_type == pattern:
            return True
    return False


def capture_video_preview(
    data: bytes,
    source_path: str | Path | None = None,
    at_seconds: float = 1.0,
) -> str | None:
    """Grab one JPEG frame at ``at_seconds`` and return it as a data URI.

    Best effort: returns None when ffmpeg is missing or cannot decode the input.
    """
    source = str(source_path) if source_path else "pipe:0"
    cmd = [
        "ffmpeg", "-v", "error", "-ss", str(at_seconds), "-i", source,
        "-frames:v", "1", "-q:v", "5", "-f", "image2", "-c:v", "mjpeg", "pipe:1",
    ]
    try:
        result = subprocess.run(
            cmd,
            input=None if source_path else data,
            check=True,
            capture_output=True,
            timeout=_PREVIEW_TIMEOUT,
        )
    except FileNotFoundError:
        logger.warning("ffmpeg not found; skipping video preview")
        return None
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        logger.warning("Could not capture video preview: %s", exc)
        return None
    if not result.stdout:
        logger.warning("ffmpeg produced no preview frame")
        return None
    return encode_data_uri(result.stdout, "image/jpeg")


def ingest_bytes(
    data: bytes,
    filename: str,
    mime_type: str | None = None,
    source_path: str | Path | None = None,
    max_size: int = MAX_FILE_SIZE,
    preview_at: float = 1.0,
) -> MediaDescriptor:
    """Build a descriptor from raw bytes.

    Raises:
        MediaIngestionError: If the type is not image/* or video/*, or the
            payload is larger than ``max_size``.
    """
    mime = mime_type or mimetypes.guess_type(filename)[0] or ""
    if not matches_accepted_type(mime):
        raise MediaIngestionError(
            f"{filename}: unsupported file type {mime or 'unknown'!r} (expected image/* or video/*)"
        )
    if len(data) > max_size:
        raise MediaIngestionError(
            f"{filename}: file is {len(data) / (1024 * 1024):.1f} MB, "
            f"limit is {max_size / (1024 * 1024):.0f} MB"
        )

    kind = "image" if mime.startswith("image/") else "video"
    preview = capture_video_preview(data, source_path, preview_at) if kind == "video" else None
    source_url = Path(source_path).resolve().as_uri() if source_path else None

    descriptor = MediaDescriptor(
        id=generate_media_id(),
        kind=kind,
        filename=filename,
        mime_type=mime,
        data_uri=encode_data_uri(data, mime),
        size=len(data),
        preview=preview,
        source_url=source_url,
    )
    logger.debug("Ingested %s as %s (%d bytes)", filename, kind, len(data))
    return descriptor


def ingest_file(
    path: str | Path,
    mime_type: str | None = None,
    max_size: int = MAX_FILE_SIZE,
    preview_at: float = 1.0,
) -> MediaDescriptor:
    """Read a file from disk and ingest it."""
    file_path = Path(path)
    try:
        size = file_path.stat().st_size
        if size > max_size:
            raise MediaIngestionError(
                f"{file_path.name}: file is {size / (1024 * 1024):.1f} MB, "
                f"limit is {max_size / (1024 * 1024):.0f} MB"
            )
        data = file_path.read_bytes()
    except OSError as exc:
        raise MediaIngestionError(f"{file_path.name}: could not read file: {exc}") from exc
    return ingest_bytes(
        data,
        file_path.name,
        mime_type=mime_type,
        source_path=file_path,
        max_size=max_size,
        preview_at=preview_at,
    )


class MediaQueue:
    """Pending uploads awaiting submission, capped at ``max_files``.

    Usage::

        queue = MediaQueue(max_files=3)
        added, errors = await queue.add_files(["cat.png", "clip.mp4"])
    """

    def __init__(
        self,
        max_files: int = 3,
        max_size: int = MAX_FILE_SIZE,
        preview_at: float = 1.0,
    ) -> None:
        self.max_files = max_files
        self.max_size = max_size
        self.preview_at = preview_at
        self._items: list[MediaDescriptor] = []

    @property
    def items(self) -> list[MediaDescriptor]:
        return list(self._items)

    @property
    def remaining_slots(self) -> int:
        return max(0, self.max_files - len(self._items))

    def __len__(self) -> int:
        return len(self._items)

    async def add_files(self, paths: Iterable[str | Path]) -> tuple[list[MediaDescriptor], list[str]]:
        """Ingest files into the free slots; files past the cap are ignored.

        Returns:
            (descriptors added, one error string per file that failed).
        """
        paths = list(paths)
        selected = paths[: self.remaining_slots]
        if len(selected) < len(paths):
            logger.info("Ignoring %d file(s) beyond the %d-file limit", len(paths) - len(selected), self.max_files)

        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self._ingest_one, path) for path in selected)
        )

        added: list[MediaDescriptor] = []
        errors: list[str] = []
        for outcome in outcomes:
            if isinstance(outcome, MediaDescriptor):
                added.append(outcome)
            else:
                errors.append(outcome)
        self._items.extend(added)
        return added, errors

    def _ingest_one(self, path: str | Path) -> MediaDescriptor | str:
        try:
            return ingest_file(path, max_size=self.max_size, preview_at=self.preview_at)
        except MediaIngestionError as exc:
            logger.warning("Rejected %s: %s", path, exc)
            return str(exc)

    def remove(self, media_id: str) -> bool:
        """Drop a pending descriptor. Returns False if the id is unknown."""
        before = len(self._items)
        self._items = [m for m in self._items if m.id != media_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []
