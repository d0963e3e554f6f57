"""Tests for the command line interface."""

from __future__ import annotations

import asyncio
import functools
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import httpx
import yaml
from click.testing import CliRunner

from videogen.client import InferenceClient
from videogen.config import DEFAULTS
from videogen.downloader import download_video
from videogen.models import GeneratedVideoRecord
from videogen.orchestrator import CANCELLED_MESSAGE
from videogen.runner import cli
from videogen.store import JsonFileRepository


def _record(video_id: str, prompt: str) -> GeneratedVideoRecord:
    return GeneratedVideoRecord(
        id=video_id,
        prompt=prompt,
        model="replicate/google/veo-3",
        video_url=f"https://cdn.test/{video_id}.mp4",
        created_at="2026-01-01T00:00:00+00:00",
    )


class _CliCase(unittest.TestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.storage = self.root / "store"
        self.config_path = self.root / "config.yaml"
        self.config_path.write_text(yaml.safe_dump({
            "storage": {"dir": str(self.storage)},
            "progress": {"success_reset_seconds": None, "failure_reset_seconds": None, "cancel_reset_seconds": None},
        }), encoding="utf-8")
        self.runner = CliRunner()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def invoke(self, *args: str, **kwargs):
        return self.runner.invoke(cli, ["--config", str(self.config_path), *args], **kwargs)

    def _seed(self, *records: GeneratedVideoRecord) -> None:
        JsonFileRepository(self.storage).save_videos(list(records))

    def _saved_ids(self) -> list[str]:
        path = self.storage / "generated-videos.json"
        return [v["id"] for v in json.loads(path.read_text(encoding="utf-8"))]


class CliTest(_CliCase):

    def test_missing_config_file(self) -> None:
        result = self.runner.invoke(cli, ["--config", str(self.root / "nope.yaml"), "models"])
        self.assertEqual(result.exit_code, 1)

    def test_models(self) -> None:
        result = self.invoke("models")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("300s", result.output)
        self.assertIn("600s", result.output)
        self.assertNotIn("120s", result.output)

    def test_history_empty_and_seeded(self) -> None:
        result = self.invoke("history")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("No videos yet", result.output)

        self._seed(_record("v1", "A cat"), _record("v2", "Ocean"))
        result = self.invoke("history", "--search", "ocean")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("v2", result.output)
        self.assertIn("2 total", result.output)

        result = self.invoke("history", "--search", "zebra")
        self.assertIn("No videos match", result.output)

    def test_delete_and_clear(self) -> None:
        self._seed(_record("v1", "A cat"), _record("v2", "Ocean"))

        result = self.invoke("delete", "v1")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self._saved_ids(), ["v2"])

        result = self.invoke("delete", "v1")
        self.assertEqual(result.exit_code, 1)

        result = self.invoke("clear", "--yes")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self._saved_ids(), [])

    def test_history_changes_persist_with_auto_save_off(self) -> None:
        self._seed(_record("v1", "A cat"), _record("v2", "Ocean"))
        self.assertEqual(self.invoke("settings", "set", "auto_save", "false").exit_code, 0)

        result = self.invoke("delete", "v1")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self._saved_ids(), ["v2"])

        self.assertEqual(self.invoke("clear", "--yes").exit_code, 0)
        self.assertEqual(self._saved_ids(), [])

    def test_clear_declined(self) -> None:
        self._seed(_record("v1", "A cat"))
        result = self.invoke("clear", input="n\n")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self._saved_ids(), ["v1"])

    def test_settings(self) -> None:
        result = self.invoke("settings", "set", "video_quality", "ultra")
        self.assertEqual(result.exit_code, 0)
        saved = json.loads((self.storage / "app-settings.json").read_text(encoding="utf-8"))
        self.assertEqual(saved["videoQuality"], "ultra")

        result = self.invoke("settings", "set", "auto_save", "false")
        self.assertEqual(result.exit_code, 0)
        saved = json.loads((self.storage / "app-settings.json").read_text(encoding="utf-8"))
        self.assertFalse(saved["autoSave"])

        result = self.invoke("settings", "show")
        self.assertIn("ultra", result.output)

        self.assertEqual(self.invoke("settings", "set", "video_quality", "potato").exit_code, 1)
        self.assertEqual(self.invoke("settings", "set", "colour", "red").exit_code, 1)

        result = self.invoke("settings", "reset")
        self.assertEqual(result.exit_code, 0)
        saved = json.loads((self.storage / "app-settings.json").read_text(encoding="utf-8"))
        self.assertEqual(saved["videoQuality"], "high")
        self.assertTrue(saved["autoSave"])


class GenerateCommandTest(_CliCase):

    def setUp(self) -> None:
        super().setUp()
        self.sent: list[dict] = []
        self.interrupt_upstream = False

        def handler(req: httpx.Request) -> httpx.Response:
            self.sent.append(json.loads(req.content))
            if self.interrupt_upstream:
                raise asyncio.CancelledError()
            return httpx.Response(200, json={
                "choices": [{"message": {"role": "assistant", "content": "https://cdn.test/out.mp4"}}],
            })

        transport = httpx.MockTransport(handler)
        patcher = mock.patch.object(
            InferenceClient,
            "from_config",
            side_effect=lambda config: InferenceClient("https://inference.test/chat/completions", transport=transport),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_generate_saves_record(self) -> None:
        result = self.invoke("generate", "A cat on a skateboard")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(self.sent), 1)
        self.assertEqual(self.sent[0]["model"], "replicate/google/veo-3")
        saved = json.loads((self.storage / "generated-videos.json").read_text(encoding="utf-8"))
        self.assertEqual(saved[0]["videoUrl"], "https://cdn.test/out.mp4")
        self.assertEqual(saved[0]["prompt"], "A cat on a skateboard")
        self.assertEqual(saved[0]["metadata"]["format"], "mp4")

    def test_generate_with_image(self) -> None:
        image = self.root / "cat.png"
        image.write_bytes(b"\x89PNG\r\n\x1a\nfake")

        result = self.invoke("generate", "--media", str(image), "--model", "custom/video-model-pro")

        self.assertEqual(result.exit_code, 0, result.output)
        content = self.sent[0]["messages"][0]["content"]
        self.assertEqual([item["type"] for item in content], ["text", "image_url"])
        self.assertEqual(self.sent[0]["model"], "custom/video-model-pro")

    def test_generate_rejects_empty_request(self) -> None:
        result = self.invoke("generate")

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(self.sent, [])
        self.assertFalse((self.storage / "generated-videos.json").exists())

    def test_generate_interrupted(self) -> None:
        self.interrupt_upstream = True

        result = self.invoke("generate", "A cat on a skateboard")

        self.assertEqual(result.exit_code, 130)
        self.assertIn(CANCELLED_MESSAGE, result.output)
        self.assertFalse((self.storage / "generated-videos.json").exists())


class DownloadCommandTest(_CliCase):

    def setUp(self) -> None:
        super().setUp()
        self.status = 200

        def handler(req: httpx.Request) -> httpx.Response:
            if self.status != 200:
                return httpx.Response(self.status)
            return httpx.Response(200, content=b"mp4-bytes")

        patcher = mock.patch(
            "videogen.runner.download_video",
            functools.partial(download_video, transport=httpx.MockTransport(handler)),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.out = self.root / "downloads"

    def test_download_saves_file(self) -> None:
        self._seed(_record("v1", "A cat"))

        result = self.invoke("download", "v1", "--output", str(self.out))

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual((self.out / "ai-video-v1.mp4").read_bytes(), b"mp4-bytes")

    def test_unknown_video(self) -> None:
        result = self.invoke("download", "nope", "--output", str(self.out))
        self.assertEqual(result.exit_code, 1)
        self.assertFalse(self.out.exists())

    def test_placeholder_reference(self) -> None:
        placeholder = GeneratedVideoRecord(
            id="v1", prompt="A cat", model="m",
            video_url=DEFAULTS["fallback"]["reply_placeholder_url"],
            created_at="2026-01-01T00:00:00+00:00",
        )
        self._seed(placeholder)

        result = self.invoke("download", "v1", "--output", str(self.out))

        self.assertEqual(result.exit_code, 1)
        self.assertIn("placeholder", result.output)
        self.assertFalse(self.out.exists())

    def test_http_error(self) -> None:
        self.status = 404
        self._seed(_record("v1", "A cat"))

        result = self.invoke("download", "v1", "--output", str(self.out))

        self.assertEqual(result.exit_code, 1)
        self.assertIn("404", result.output)
        self.assertFalse((self.out / "ai-video-v1.mp4").exists())
