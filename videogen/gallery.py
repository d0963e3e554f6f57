"""Search, filter and sort helpers for the video history."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable

from videogen.models import VIDEO_STATUSES, GeneratedVideoRecord

SORT_OPTIONS = ("newest", "oldest", "model", "status")


def _timestamp(video: GeneratedVideoRecord) -> float:
    try:
        return datetime.fromisoformat(video.created_at.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def filter_videos(
    videos: Iterable[GeneratedVideoRecord],
    search: str = "",
    status: str = "all",
    sort_by: str = "newest",
) -> list[GeneratedVideoRecord]:
    """Return the videos matching ``search`` and ``status``, sorted by ``sort_by``.

    ``search`` matches the prompt or model name, case-insensitively.
    ``status`` is "all" or one of the record statuses.
    """
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}, got {sort_by!r}")
    if status != "all" and status not in VIDEO_STATUSES:
        raise ValueError(f"status must be 'all' or one of {', '.join(VIDEO_STATUSES)}, got {status!r}")

    query = search.lower()
    matches = [
        v for v in videos
        if (not query or query in v.prompt.lower() or query in v.model.lower())
        and (status == "all" or v.status == status)
    ]

    if sort_by == "newest":
        matches.sort(key=_timestamp, reverse=True)
    elif sort_by == "oldest":
        matches.sort(key=_timestamp)
    elif sort_by == "model":
        matches.sort(key=lambda v: v.model)
    else:
        matches.sort(key=lambda v: v.status)
    return matches


def status_counts(videos: Iterable[GeneratedVideoRecord]) -> dict[str, int]:
    """Count videos per status; every status is present."""
    counts = Counter(v.status for v in videos)
    return {s: counts.get(s, 0) for s in VIDEO_STATUSES}
