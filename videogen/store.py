"""Application state: video history, settings and current progress.

State changes go through typed actions dispatched to ``AppStore``. Video
history and settings are persisted through a ``StateRepository`` whenever
they change, so the storage backend can be swapped without touching the
orchestration code.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Protocol, Union

from videogen.models import (
    DEFAULT_MODEL,
    VIDEO_QUALITIES,
    AppSettings,
    GeneratedVideoRecord,
    ProgressState,
)

logger = logging.getLogger(__name__)

VIDEOS_FILE = "generated-videos.json"
SETTINGS_FILE = "app-settings.json"


@dataclass(frozen=True)
class AppState:
    videos: tuple[GeneratedVideoRecord, ...] = ()
    current_generation: ProgressState | None = None
    settings: AppSettings = field(default_factory=AppSettings)
    selected_model: str = DEFAULT_MODEL


@dataclass
class PersistedState:
    """The part of the state that survives restarts."""
    videos: list[GeneratedVideoRecord] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)


# ----------------------------------------------------------------------
# Actions
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class SetVideos:
    videos: tuple[GeneratedVideoRecord, ...]


@dataclass(frozen=True)
class AddVideo:
    video: GeneratedVideoRecord


@dataclass(frozen=True)
class RemoveVideo:
    video_id: str


@dataclass(frozen=True)
class UpdateProgress:
    progress: ProgressState


@dataclass(frozen=True)
class ClearProgress:
    pass


@dataclass(frozen=True)
class UpdateSettings:
    changes: dict[str, Any]


@dataclass(frozen=True)
class SelectModel:
    model_id: str


Action = Union[SetVideos, AddVideo, RemoveVideo, UpdateProgress, ClearProgress, UpdateSettings, SelectModel]


def _apply_settings(settings: AppSettings, changes: dict[str, Any]) -> AppSettings:
    unknown = set(changes) - set(AppSettings.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    quality = changes.get("video_quality", settings.video_quality)
    if quality not in VIDEO_QUALITIES:
        raise ValueError(f"video_quality must be one of {', '.join(VIDEO_QUALITIES)}, got {quality!r}")
    if not isinstance(changes.get("auto_save", settings.auto_save), bool):
        raise ValueError(f"auto_save must be true or false, got {changes['auto_save']!r}")
    return replace(settings, **changes)


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state after ``action``; ``state`` is left untouched."""
    if isinstance(action, SetVideos):
        return replace(state, videos=tuple(action.videos))
    if isinstance(action, AddVideo):
        return replace(state, videos=(action.video, *state.videos))
    if isinstance(action, RemoveVideo):
        return replace(state, videos=tuple(v for v in state.videos if v.id != action.video_id))
    if isinstance(action, UpdateProgress):
        return replace(state, current_generation=action.progress)
    if isinstance(action, ClearProgress):
        return replace(state, current_generation=None)
    if isinstance(action, UpdateSettings):
        return replace(state, settings=_apply_settings(state.settings, action.changes))
    if isinstance(action, SelectModel):
        return replace(state, selected_model=action.model_id)
    raise TypeError(f"Unknown action: {action!r}")


# ----------------------------------------------------------------------
# Repositories
# ----------------------------------------------------------------------


class StateRepository(Protocol):
    """Loads and saves the persisted part of the app state."""

    def load(self) -> PersistedState:
        ...

    def save_videos(self, videos: list[GeneratedVideoRecord]) -> None:
        ...

    def save_settings(self, settings: AppSettings) -> None:
        ...


class MemoryRepository:
    """Keeps persisted state in memory."""

    def __init__(self, state: PersistedState | None = None) -> None:
        self.state = state or PersistedState()

    def load(self) -> PersistedState:
        return PersistedState(videos=list(self.state.videos), settings=self.state.settings)

    def save_videos(self, videos: list[GeneratedVideoRecord]) -> None:
        self.state.videos = list(videos)

    def save_settings(self, settings: AppSettings) -> None:
        self.state.settings = settings


class JsonFileRepository:
    """Stores history and settings as two JSON files in one directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.videos_path = self.directory / VIDEOS_FILE
        self.settings_path = self.directory / SETTINGS_FILE

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load %s: %s", path, exc)
            return None

    def _write(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp.replace(path)

    def load(self) -> PersistedState:
        state = PersistedState()

        videos = self._read(self.videos_path)
        if isinstance(videos, list):
            try:
                state.videos = [GeneratedVideoRecord.from_dict(v) for v in videos]
            except (KeyError, TypeError, AttributeError) as exc:
                logger.error("Failed to load saved videos: %s", exc)

        settings = self._read(self.settings_path)
        if isinstance(settings, dict):
            state.settings = AppSettings.from_dict(settings)
        return state

    def save_videos(self, videos: list[GeneratedVideoRecord]) -> None:
        self._write(self.videos_path, [v.to_dict() for v in videos])

    def save_settings(self, settings: AppSettings) -> None:
        self._write(self.settings_path, settings.to_dict())


# ----------------------------------------------------------------------
# Store
# ----------------------------------------------------------------------


Listener = Callable[[AppState], None]


class AppStore:
    """Holds ``AppState`` and applies dispatched actions to it.

    Usage::

        store = AppStore(JsonFileRepository(".videogen"))
        store.load()
        store.dispatch(RemoveVideo("video_123"))
    """

    def __init__(self, repository: StateRepository | None = None) -> None:
        self.repository = repository or MemoryRepository()
        self._state = AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def load(self) -> AppState:
        """Replace in-memory history and settings with the persisted ones."""
        persisted = self.repository.load()
        self._state = replace(
            self._state,
            videos=tuple(persisted.videos),
            settings=persisted.settings,
            selected_model=persisted.settings.default_model,
        )
        logger.debug("Loaded %d video(s) from storage", len(self._state.videos))
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: Action) -> AppState:
        previous = self._state
        self._state = reduce(previous, action)

        if self._state.videos is not previous.videos:
            self.repository.save_videos(list(self._state.videos))
        if self._state.settings is not previous.settings:
            self.repository.save_settings(self._state.settings)

        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def get_video(self, video_id: str) -> GeneratedVideoRecord | None:
        return next((v for v in self._state.videos if v.id == video_id), None)
