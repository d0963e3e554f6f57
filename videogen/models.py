"""Data models for the video generation client and proxy."""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field
from typing import Any, Union

DEFAULT_MODEL = "replicate/google/veo-3"
DEFAULT_SYSTEM_PROMPT = (
    "Generate a high-quality video based on the following description. "
    "Focus on cinematic quality, smooth motion, and visual appeal."
)

MEDIA_KINDS = ("image", "video")
VIDEO_STATUSES = ("generating", "completed", "failed")
PROGRESS_STATUSES = ("idle", "preparing", "generating", "processing", "completed", "failed")
VIDEO_QUALITIES = ("standard", "high", "ultra")


@dataclass(frozen=True)
class MediaDescriptor:
    """An ingested image or video, inlined as a data URI.

    Attributes:
        id: Locally unique identifier.
        kind: "image" or "video".
        filename: Original file name (sent with video inputs).
        mime_type: Declared or guessed MIME type.
        data_uri: ``data:<mime>;base64,<payload>`` string.
        size: Size of the original payload in bytes.
        preview: Still-frame JPEG data URI for videos, if one could be captured.
        source_url: ``file://`` URI of the source file, if ingested from disk.
    """
    id: str
    kind: str
    filename: str
    mime_type: str
    data_uri: str
    size: int = 0
    preview: str | None = None
    source_url: str | None = None

    def decode(self) -> bytes:
        """Return the original bytes carried by the data URI."""
        _, _, payload = self.data_uri.partition(",")
        return base64.b64decode(payload)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "base64": self.data_uri,
            "size": self.size,
        }
        if self.preview:
            data["thumbnail"] = self.preview
        if self.source_url:
            data["url"] = self.source_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MediaDescriptor:
        data_uri = data.get("base64") or ""
        mime_type = data.get("mimeType") or ""
        if not mime_type and data_uri.startswith("data:"):
            mime_type = data_uri[5:].split(";", 1)[0]
        return cls(
            id=str(data.get("id", "")),
            kind=data.get("type", "image"),
            filename=data.get("filename") or data.get("name") or "",
            mime_type=mime_type,
            data_uri=data_uri,
            size=int(data.get("size") or 0),
            preview=data.get("thumbnail"),
            source_url=data.get("url"),
        )


@dataclass(frozen=True)
class GenerationSettings:
    """Video settings sent along with a prompt."""
    duration: int = 30
    resolution: str = "1920x1080"
    style: str = "cinematic"
    strength: float = 0.7  # 0.1=subtle, 1.0=dramatic; media inputs only
    motion_bucket: int = 127  # 1=minimal, 255=maximum; media inputs only

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GenerationSettings:
        """Build settings from the wire format, defaulting absent values."""
        data = data or {}
        defaults = cls()
        return cls(
            duration=_or_default(data.get("duration"), defaults.duration),
            resolution=_or_default(data.get("resolution"), defaults.resolution),
            style=_or_default(data.get("style"), defaults.style),
            strength=_or_default(data.get("strength"), defaults.strength),
            motion_bucket=_or_default(data.get("motionBucket"), defaults.motion_bucket),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration,
            "resolution": self.resolution,
            "style": self.style,
            "strength": self.strength,
            "motionBucket": self.motion_bucket,
        }


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


@dataclass
class GenerationRequest:
    """A prompt plus media and settings destined for one model."""
    prompt: str
    model: str
    media: list[MediaDescriptor] = field(default_factory=list)
    settings: GenerationSettings = field(default_factory=GenerationSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenerationRequest:
        """Parse the proxy request body ``{prompt, model, mediaInputs?, settings?}``."""
        return cls(
            prompt=data.get("prompt") or "",
            model=data.get("model") or "",
            media=[MediaDescriptor.from_dict(m) for m in data.get("mediaInputs") or []],
            settings=GenerationSettings.from_dict(data.get("settings")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "model": self.model,
            "mediaInputs": [m.to_dict() for m in self.media],
            "settings": self.settings.to_dict(),
        }


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a single generation submission."""
    success: bool
    video_id: str
    video_url: str | None = None
    message: str | None = None
    error: str | None = None
    placeholder: bool = False  # video_url is a stand-in, not a generated video

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "videoId": self.video_id}
        if self.video_url is not None:
            data["videoUrl"] = self.video_url
        if self.message is not None:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class VideoMetadata:
    resolution: str | None = None
    file_size: int | None = None
    format: str | None = None


@dataclass
class GeneratedVideoRecord:
    """A history entry for a generated video."""
    id: str
    prompt: str
    model: str
    video_url: str
    created_at: str
    status: str = "completed"
    duration: int | None = None
    thumbnail_url: str | None = None
    metadata: VideoMetadata | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "prompt": self.prompt,
            "model": self.model,
            "videoUrl": self.video_url,
            "createdAt": self.created_at,
            "status": self.status,
        }
        if self.duration is not None:
            data["duration"] = self.duration
        if self.thumbnail_url is not None:
            data["thumbnailUrl"] = self.thumbnail_url
        if self.metadata is not None:
            meta = self.metadata
            data["metadata"] = {
                k: v
                for k, v in (
                    ("resolution", meta.resolution),
                    ("fileSize", meta.file_size),
                    ("format", meta.format),
                )
                if v is not None
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratedVideoRecord:
        meta = data.get("metadata")
        return cls(
            id=data["id"],
            prompt=data.get("prompt", ""),
            model=data.get("model", ""),
            video_url=data.get("videoUrl", ""),
            created_at=data.get("createdAt", ""),
            status=data.get("status", "completed"),
            duration=data.get("duration"),
            thumbnail_url=data.get("thumbnailUrl"),
            metadata=VideoMetadata(
                resolution=meta.get("resolution"),
                file_size=meta.get("fileSize"),
                format=meta.get("format"),
            ) if isinstance(meta, dict) else None,
        )


@dataclass(frozen=True)
class ProgressState:
    """Coarse status/percentage/message triple for an in-flight request."""
    status: str
    progress: int = 0
    message: str = ""
    estimated_time_remaining: int | None = None  # seconds

    @classmethod
    def idle(cls) -> ProgressState:
        return cls(status="idle")

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")


@dataclass
class AppSettings:
    """User preferences persisted next to the video history."""
    default_model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    auto_save: bool = True
    video_quality: str = "high"

    def to_dict(self) -> dict[str, Any]:
        return {
            "defaultModel": self.default_model,
            "systemPrompt": self.system_prompt,
            "autoSave": self.auto_save,
            "videoQuality": self.video_quality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        """Read persisted settings; values of the wrong type or out of range fall back to the defaults."""
        defaults = cls()
        default_model = data.get("defaultModel")
        system_prompt = data.get("systemPrompt")
        auto_save = data.get("autoSave")
        quality = data.get("videoQuality")
        return cls(
            default_model=default_model if isinstance(default_model, str) and default_model else defaults.default_model,
            system_prompt=system_prompt if isinstance(system_prompt, str) else defaults.system_prompt,
            auto_save=auto_save if isinstance(auto_save, bool) else defaults.auto_save,
            video_quality=quality if quality in VIDEO_QUALITIES else defaults.video_quality,
        )


@dataclass(frozen=True)
class AIModel:
    """A video model offered by the inference backend."""
    id: str
    name: str
    description: str
    max_duration: int
    is_available: bool
    capabilities: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "maxDuration": self.max_duration,
            "isAvailable": self.is_available,
            "capabilities": list(self.capabilities),
        }


# ----------------------------------------------------------------------
# Outbound message content
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class TextContent:
    text: str
    type: str = field(default="text", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ImageContent:
    url: str
    type: str = field(default="image_url", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "image_url": {"url": self.url}}


@dataclass(frozen=True)
class FileContent:
    filename: str
    file_data: str
    type: str = field(default="file", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "file": {"filename": self.filename, "file_data": self.file_data}}


ContentItem = Union[TextContent, ImageContent, FileContent]


@dataclass(frozen=True)
class OutboundMessage:
    """The single user message sent to the chat-completions endpoint."""
    generation_type: str
    content: str | tuple[ContentItem, ...]

    @property
    def is_multimodal(self) -> bool:
        return not isinstance(self.content, str)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [item.to_dict() for item in self.content]
        return {"role": "user", "content": content}


def settings_as_dict(settings: AppSettings) -> dict[str, Any]:
    """Snake-case view of settings, used by the CLI."""
    return asdict(settings)
