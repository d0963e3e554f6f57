"""Builds the outbound chat message for a generation request."""

from __future__ import annotations

from typing import Sequence

from videogen.models import (
    DEFAULT_SYSTEM_PROMPT,
    ContentItem,
    FileContent,
    GenerationSettings,
    ImageContent,
    MediaDescriptor,
    OutboundMessage,
    TextContent,
)

TEXT_TO_VIDEO = "text-to-video"
IMAGE_TO_VIDEO = "image-to-video"
VIDEO_TO_VIDEO = "video-to-video"
MIXED_MEDIA_TO_VIDEO = "mixed-media-to-video"


def classify_generation_type(media: Sequence[MediaDescriptor]) -> str:
    """Label the request by which input kinds are present."""
    has_images = any(m.kind == "image" for m in media)
    has_videos = any(m.kind == "video" for m in media)
    if has_images and has_videos:
        return MIXED_MEDIA_TO_VIDEO
    if has_images:
        return IMAGE_TO_VIDEO
    if has_videos:
        return VIDEO_TO_VIDEO
    return TEXT_TO_VIDEO


def _text_only_prompt(prompt: str, settings: GenerationSettings, instruction: str) -> str:
    return (
        f"{instruction}\n"
        "\n"
        "Video Settings:\n"
        f"- Duration: {settings.duration} seconds\n"
        f"- Resolution: {settings.resolution}\n"
        f"- Style: {settings.style}\n"
        "\n"
        f"User Prompt: {prompt}\n"
        "\n"
        "Generate a professional-quality video that matches this description with smooth motion, "
        "appropriate pacing, and high visual fidelity."
    )


def _media_prompt(
    prompt: str,
    settings: GenerationSettings,
    generation_type: str,
    has_images: bool,
    has_videos: bool,
) -> str:
    lines = [
        "Generate a high-quality video based on the uploaded media and description.",
        "",
        f"Generation Type: {generation_type}",
    ]
    if prompt:
        lines.append(f"Description: {prompt}")
    lines += [
        "",
        "Video Settings:",
        f"- Duration: {settings.duration} seconds",
        f"- Resolution: {settings.resolution}",
        f"- Style: {settings.style}",
        f"- Transformation Strength: {settings.strength} (0.1=subtle, 1.0=dramatic)",
        f"- Motion Level: {settings.motion_bucket} (1=minimal, 255=maximum)",
        "",
        "Instructions:",
    ]
    if has_images:
        lines.append("- Use the provided image(s) as visual reference or starting point for animation")
    if has_videos:
        lines.append("- Transform or continue the video content with the specified modifications")
    lines += [
        "- Focus on cinematic quality, smooth motion, and visual appeal",
        "- Ensure professional-grade output with proper lighting and composition",
        "- Maintain temporal consistency and natural motion flow",
    ]
    return "\n".join(lines)


def compose(
    prompt: str,
    settings: GenerationSettings | None,
    media: Sequence[MediaDescriptor] = (),
    instruction: str = DEFAULT_SYSTEM_PROMPT,
) -> OutboundMessage:
    """Compose the single user message for a request.

    Text-only requests become one plain string so that backends without
    multimodal slots can still act on them. Requests with media become a
    text segment followed by one inline item per descriptor, in input order.
    Descriptors without a payload are skipped.

    Args:
        prompt: User prompt; may be empty when media is present.
        settings: Generation settings, or None for the defaults.
        media: Ingested media descriptors.
        instruction: Leading instruction for text-only requests.

    Returns:
        The composed message. Identical inputs give identical output.
    """
    settings = settings or GenerationSettings()
    prompt = prompt.strip()
    generation_type = classify_generation_type(media)

    if not media:
        return OutboundMessage(
            generation_type=generation_type,
            content=_text_only_prompt(prompt, settings, instruction),
        )

    has_images = any(m.kind == "image" for m in media)
    has_videos = any(m.kind == "video" for m in media)
    items: list[ContentItem] = [
        TextContent(_media_prompt(prompt, settings, generation_type, has_images, has_videos))
    ]
    for descriptor in media:
        if not descriptor.data_uri:
            continue
        if descriptor.kind == "image":
            items.append(ImageContent(url=descriptor.data_uri))
        elif descriptor.kind == "video":
            items.append(FileContent(filename=descriptor.filename, file_data=descriptor.data_uri))

    return OutboundMessage(generation_type=generation_type, content=tuple(items))
