"""Downloads generated videos from their CDN URLs to local files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import httpx

logger = logging.getLogger(__name__)

_DOWNLOAD_TIMEOUT = httpx.Timeout(300.0, connect=10.0)
_CHUNK_SIZE = 8192

ProgressCallback = Callable[[int, int | None], None]


class DownloadError(Exception):
    """Raised when a video cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def video_filename(video_id: str) -> str:
    return f"ai-video-{video_id}.mp4"


async def _stream_to(
    client: httpx.AsyncClient,
    url: str,
    target: Path,
    on_progress: ProgressCallback | None,
) -> None:
    async with client.stream("GET", url) as response:
        if response.is_error:
            raise DownloadError(
                f"Download failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        length = response.headers.get("Content-Length")
        total = int(length) if length and length.isdigit() else None
        received = 0
        with open(target, "wb") as f:
            async for chunk in response.aiter_bytes(chunk_size=_CHUNK_SIZE):
                f.write(chunk)
                received += len(chunk)
                if on_progress is not None:
                    on_progress(received, total)


async def download_video(
    url: str,
    output_path: str | Path,
    on_progress: ProgressCallback | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """Stream ``url`` to ``output_path``.

    The body is written to a ``.part`` file first and moved into place once
    complete, so a failed download never leaves a truncated video behind.

    Args:
        url: Video URL.
        output_path: Destination file.
        on_progress: Called with (bytes received, total bytes or None).
        transport: Optional httpx transport.

    Raises:
        DownloadError: On an error status or a transport failure.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    partial = output.with_name(output.name + ".part")

    logger.info("Downloading %s -> %s", url, output)
    try:
        async with httpx.AsyncClient(
            timeout=_DOWNLOAD_TIMEOUT,
            transport=transport,
            follow_redirects=True,
        ) as client:
            await _stream_to(client, url, partial, on_progress)
    except httpx.HTTPError as exc:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Download failed for {url}: {exc}") from exc

    partial.replace(output)
    logger.info("Downloaded: %s (%.1f KB)", output, output.stat().st_size / 1024)
    return output
