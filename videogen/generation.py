"""Single-request video generation: validate, compose, call, interpret.

This is the logic behind the ``/api/generate-video`` proxy route. The
endpoint answers in chat-completions form, so the video reference is pulled
out of the reply text. When the reply carries no video URL a fixed
placeholder reference is returned instead and the result is flagged with
``placeholder=True``.
"""

from __future__ import annotations

import logging
import random
import re
import string
import time
from dataclasses import dataclass

from videogen.client import InferenceClient
from videogen.composer import compose
from videogen.config import DEFAULTS
from videogen.models import DEFAULT_SYSTEM_PROMPT, GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

PROMPT_OR_MEDIA_REQUIRED = "Either text prompt or media inputs are required"
MODEL_REQUIRED = "Model is required"
SUCCESS_MESSAGE = "Video generated successfully"

_VIDEO_URL_PATTERN = re.compile(r"(https?://[^\s]+\.(mp4|mov|avi|webm))", re.IGNORECASE)
_RESOLUTION_PATTERN = re.compile(r"^\d+x\d+$")


class GenerationValidationError(ValueError):
    """Raised for requests rejected before any network call."""


@dataclass(frozen=True)
class FallbackUrls:
    """Placeholder references used when the reply has no video URL."""
    reply: str = DEFAULTS["fallback"]["reply_placeholder_url"]
    empty: str = DEFAULTS["fallback"]["empty_placeholder_url"]


def _is_number(value: object, integral: bool = False) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) if integral else isinstance(value, (int, float))


def validate_request(request: GenerationRequest) -> None:
    """Reject requests that must not reach the endpoint.

    Raises:
        GenerationValidationError: With the user-facing reason.
    """
    if not isinstance(request.prompt, str):
        raise GenerationValidationError(f"Prompt must be a string, got {type(request.prompt).__name__}")
    if not isinstance(request.model, str):
        raise GenerationValidationError(f"Model must be a string, got {type(request.model).__name__}")
    if not request.prompt.strip() and not request.media:
        raise GenerationValidationError(PROMPT_OR_MEDIA_REQUIRED)
    if not request.model:
        raise GenerationValidationError(MODEL_REQUIRED)

    settings = request.settings
    if not _is_number(settings.duration, integral=True) or settings.duration <= 0:
        raise GenerationValidationError(f"Duration must be a positive integer, got {settings.duration!r}")
    if not _RESOLUTION_PATTERN.match(str(settings.resolution)):
        raise GenerationValidationError(f"Resolution must look like WIDTHxHEIGHT, got {settings.resolution!r}")
    if not isinstance(settings.style, str):
        raise GenerationValidationError(f"Style must be a string, got {settings.style!r}")
    if request.media:
        if not _is_number(settings.strength) or not 0.1 <= settings.strength <= 1.0:
            raise GenerationValidationError(f"Strength must be between 0.1 and 1.0, got {settings.strength!r}")
        if not _is_number(settings.motion_bucket, integral=True) or not 1 <= settings.motion_bucket <= 255:
            raise GenerationValidationError(f"Motion level must be between 1 and 255, got {settings.motion_bucket!r}")


def generate_video_id() -> str:
    """Return ``video_<epoch ms>_<9 random chars>``; unique in practice, not guaranteed."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"video_{int(time.time() * 1000)}_{suffix}"


def extract_video_url(content: str) -> str | None:
    """Return the first mp4/mov/avi/webm URL in ``content``, if any."""
    match = _VIDEO_URL_PATTERN.search(content)
    return match.group(1) if match else None


def _reply_text(reply: dict) -> str | None:
    if not isinstance(reply, dict):
        return None
    choices = reply.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content:
        return content
    return None


def interpret_reply(reply: dict, fallbacks: FallbackUrls | None = None) -> tuple[str, bool]:
    """Derive the video reference from a chat-completions reply.

    Returns:
        (video url, whether it is a placeholder).
    """
    fallbacks = fallbacks or FallbackUrls()
    content = _reply_text(reply)
    if content is None:
        logger.warning("Reply has no message content; using placeholder video reference")
        return fallbacks.empty, True

    url = extract_video_url(content)
    if url is None:
        logger.warning("No video URL in reply; using placeholder video reference")
        return fallbacks.reply, True
    return url, False


async def generate_video(
    client: InferenceClient,
    request: GenerationRequest,
    instruction: str = DEFAULT_SYSTEM_PROMPT,
    fallbacks: FallbackUrls | None = None,
) -> GenerationResult:
    """Run one generation round trip.

    Raises:
        GenerationValidationError: If the request is invalid (no call made).
        InferenceApiError: If the endpoint call fails.
    """
    validate_request(request)
    message = compose(request.prompt, request.settings, request.media, instruction=instruction)
    logger.info(
        "Generating %s with %s (%d media input(s))",
        message.generation_type, request.model, len(request.media),
    )

    reply = await client.chat_completion(request.model, message)
    video_url, placeholder = interpret_reply(reply, fallbacks)
    video_id = generate_video_id()
    logger.info("Video %s ready: %s", video_id, video_url)
    return GenerationResult(
        success=True,
        video_id=video_id,
        video_url=video_url,
        message=SUCCESS_MESSAGE,
        placeholder=placeholder,
    )
