"""Tests for history search, filtering and sorting."""

from __future__ import annotations

import unittest

from videogen.gallery import filter_videos, status_counts
from videogen.models import GeneratedVideoRecord


def _video(video_id: str, prompt: str, model: str, created_at: str, status: str = "completed") -> GeneratedVideoRecord:
    return GeneratedVideoRecord(
        id=video_id, prompt=prompt, model=model, video_url="https://cdn.test/v.mp4",
        created_at=created_at, status=status,
    )


VIDEOS = [
    _video("1", "A cat on a skateboard", "replicate/google/veo-3", "2026-01-02T10:00:00+00:00"),
    _video("2", "Ocean waves", "custom/video-model-pro", "2026-01-03T10:00:00+00:00", status="failed"),
    _video("3", "Dog chasing a CAT", "replicate/black-forest-labs/flux-schnell", "2026-01-01T10:00:00Z"),
]


class FilterVideosTest(unittest.TestCase):

    def test_search_prompt_and_model(self) -> None:
        self.assertEqual([v.id for v in filter_videos(VIDEOS, search="cat")], ["1", "3"])
        self.assertEqual([v.id for v in filter_videos(VIDEOS, search="FLUX")], ["3"])

    def test_status_filter(self) -> None:
        self.assertEqual([v.id for v in filter_videos(VIDEOS, status="failed")], ["2"])

    def test_sorting(self) -> None:
        self.assertEqual([v.id for v in filter_videos(VIDEOS)], ["2", "1", "3"])
        self.assertEqual([v.id for v in filter_videos(VIDEOS, sort_by="oldest")], ["3", "1", "2"])
        self.assertEqual([v.id for v in filter_videos(VIDEOS, sort_by="model")], ["2", "3", "1"])
        self.assertEqual([v.id for v in filter_videos(VIDEOS, sort_by="status")], ["1", "3", "2"])

    def test_invalid_options(self) -> None:
        with self.assertRaises(ValueError):
            filter_videos(VIDEOS, sort_by="random")
        with self.assertRaises(ValueError):
            filter_videos(VIDEOS, status="deleted")

    def test_status_counts(self) -> None:
        self.assertEqual(status_counts(VIDEOS), {"generating": 0, "completed": 2, "failed": 1})
