"""Tests for downloading generated videos."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import httpx

from videogen.downloader import DownloadError, download_video, video_filename

VIDEO_URL = "https://cdn.test/generated/cat.mp4"
PAYLOAD = b"\x00\x00\x00\x18ftypmp42" + b"x" * 20000


class DownloadVideoTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_filename(self) -> None:
        self.assertEqual(video_filename("video_1_abc"), "ai-video-video_1_abc.mp4")

    async def test_streams_body_to_file(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=PAYLOAD, headers={"Content-Length": str(len(PAYLOAD))})

        seen: list[tuple[int, int | None]] = []
        output = self.dir / "nested" / video_filename("v1")

        path = await download_video(
            VIDEO_URL, output, on_progress=lambda r, t: seen.append((r, t)), transport=httpx.MockTransport(handler)
        )

        self.assertEqual(path, output)
        self.assertEqual(output.read_bytes(), PAYLOAD)
        self.assertEqual(requested, [VIDEO_URL])
        self.assertEqual(seen[-1], (len(PAYLOAD), len(PAYLOAD)))
        self.assertEqual(list(output.parent.iterdir()), [output])

    async def test_error_status(self) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(404))
        output = self.dir / "v1.mp4"

        with self.assertRaises(DownloadError) as ctx:
            await download_video(VIDEO_URL, output, transport=transport)

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(str(ctx.exception), "Download failed: 404 Not Found")
        self.assertEqual(list(self.dir.iterdir()), [])

    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(DownloadError) as ctx:
            await download_video(VIDEO_URL, self.dir / "v1.mp4", transport=httpx.MockTransport(handler))

        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("connection refused", str(ctx.exception))
        self.assertEqual(list(self.dir.iterdir()), [])
