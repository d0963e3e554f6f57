"""Generation orchestration with progress reporting.

``GenerationOrchestrator`` drives one submission at a time through the
inference client and reports a ``ProgressState`` sequence to listeners and
to the app store:

    preparing (0%) -> generating (10%) -> completed (100%)

or ``failed (0%)`` with the error text. After a terminal state the progress
returns to ``idle`` after a short delay. A submission made while another is
in flight is ignored.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Callable
from urllib.parse import urlparse

from videogen.client import InferenceApiError, InferenceClient
from videogen.generation import (
    FallbackUrls,
    GenerationValidationError,
    generate_video,
    validate_request,
)
from videogen.models import (
    DEFAULT_SYSTEM_PROMPT,
    GeneratedVideoRecord,
    GenerationRequest,
    GenerationResult,
    ProgressState,
    VideoMetadata,
)
from videogen.store import AddVideo, AppStore, UpdateProgress

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Generation cancelled by user"
UNEXPECTED_FAILURE_MESSAGE = "Video generation failed"
ESTIMATED_SECONDS = 900

ProgressListener = Callable[[ProgressState], None]


def record_from_result(request: GenerationRequest, result: GenerationResult) -> GeneratedVideoRecord:
    """Build the history entry for a successful result."""
    suffix = PurePosixPath(urlparse(result.video_url or "").path).suffix.lstrip(".").lower()
    return GeneratedVideoRecord(
        id=result.video_id,
        prompt=request.prompt,
        model=request.model,
        video_url=result.video_url or "",
        created_at=datetime.now(timezone.utc).isoformat(),
        status="completed",
        duration=request.settings.duration,
        metadata=VideoMetadata(resolution=request.settings.resolution, format=suffix or None),
    )


class GenerationOrchestrator:
    """Runs generation requests and reports their progress.

    Usage::

        async with InferenceClient.from_config(config) as client:
            orchestrator = GenerationOrchestrator(client, store=store)
            record = await orchestrator.start_generation(request)
    """

    def __init__(
        self,
        client: InferenceClient,
        store: AppStore | None = None,
        instruction: str | None = None,
        fallbacks: FallbackUrls | None = None,
        success_reset_delay: float | None = 3.0,
        failure_reset_delay: float | None = 5.0,
        cancel_reset_delay: float | None = 2.0,
    ) -> None:
        self.client = client
        self.store = store
        self.instruction = instruction
        self.fallbacks = fallbacks or FallbackUrls()
        self.success_reset_delay = success_reset_delay
        self.failure_reset_delay = failure_reset_delay
        self.cancel_reset_delay = cancel_reset_delay

        self._listeners: list[ProgressListener] = []
        self._in_flight = False
        self._cancelled = False
        self._task: asyncio.Future[GenerationResult] | None = None
        self._reset_handle: asyncio.TimerHandle | None = None

    @classmethod
    def from_config(
        cls,
        client: InferenceClient,
        config: dict,
        store: AppStore | None = None,
    ) -> GenerationOrchestrator:
        progress = config["progress"]
        fallback = config["fallback"]
        return cls(
            client,
            store=store,
            fallbacks=FallbackUrls(reply=fallback["reply_placeholder_url"], empty=fallback["empty_placeholder_url"]),
            success_reset_delay=progress["success_reset_seconds"],
            failure_reset_delay=progress["failure_reset_seconds"],
            cancel_reset_delay=progress["cancel_reset_seconds"],
        )

    @property
    def is_generating(self) -> bool:
        return self._in_flight

    def add_listener(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _emit(self, progress: ProgressState) -> None:
        logger.debug("Progress: %s %d%% %s", progress.status, progress.progress, progress.message)
        if self.store is not None:
            self.store.dispatch(UpdateProgress(progress))
        for listener in list(self._listeners):
            listener(progress)

    def _schedule_reset(self, delay: float | None) -> None:
        if delay is None:
            return
        self._reset_handle = asyncio.get_running_loop().call_later(delay, self._emit, ProgressState.idle())

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _instruction(self) -> str:
        if self.instruction is not None:
            return self.instruction
        if self.store is not None:
            return self.store.state.settings.system_prompt
        return DEFAULT_SYSTEM_PROMPT

    def _fail(self, message: str) -> GenerationResult:
        self._emit(ProgressState(status="failed", progress=0, message=message))
        self._schedule_reset(self.failure_reset_delay)
        return GenerationResult(success=False, video_id="", error=message)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(self, request: GenerationRequest) -> GenerationResult | None:
        """Run one request through the endpoint.

        Returns:
            The result, or None if another submission is still in flight.
            Failures never raise; they come back with ``success=False``.
        """
        if self._in_flight:
            logger.debug("Ignoring submission while another is in flight")
            return None

        try:
            validate_request(request)
        except GenerationValidationError as exc:
            logger.info("Rejected request: %s", exc)
            return GenerationResult(success=False, video_id="", error=str(exc))

        self._in_flight = True
        self._cancelled = False
        self._cancel_reset()
        try:
            self._emit(ProgressState(status="preparing", progress=0, message="Preparing video generation request..."))
            self._emit(ProgressState(
                status="generating",
                progress=10,
                message="Sending request to AI model...",
                estimated_time_remaining=ESTIMATED_SECONDS,
            ))

            self._task = asyncio.ensure_future(
                generate_video(self.client, request, instruction=self._instruction(), fallbacks=self.fallbacks)
            )
            try:
                result = await self._task
            except asyncio.CancelledError:
                if not self._cancelled:
                    # Cancelled by the caller, e.g. Ctrl-C in the CLI.
                    self.cancel()
                    raise
                return GenerationResult(success=False, video_id="", error=CANCELLED_MESSAGE)
            except (InferenceApiError, GenerationValidationError) as exc:
                logger.error("Video generation failed: %s", exc)
                return self._fail(str(exc))
            except Exception:
                logger.exception("Unexpected error during video generation")
                return self._fail(UNEXPECTED_FAILURE_MESSAGE)

            if self._cancelled:
                return GenerationResult(success=False, video_id="", error=CANCELLED_MESSAGE)

            self._emit(ProgressState(status="completed", progress=100, message="Video generation completed!"))
            self._schedule_reset(self.success_reset_delay)
            return result
        finally:
            self._in_flight = False
            self._task = None

    def cancel(self) -> bool:
        """Cancel the in-flight submission, aborting its network call.

        Returns:
            False if nothing was in flight.
        """
        if not self._in_flight or self._cancelled:
            return False
        self._cancelled = True
        self._emit(ProgressState(status="failed", progress=0, message=CANCELLED_MESSAGE))
        self._schedule_reset(self.cancel_reset_delay)
        if self._task is not None:
            self._task.cancel()
        logger.info("Generation cancelled")
        return True

    async def start_generation(self, request: GenerationRequest) -> GeneratedVideoRecord | None:
        """Submit ``request`` and append a completed record to the store on success."""
        result = await self.submit(request)
        if result is None or not result.success or not result.video_url:
            return None

        record = record_from_result(request, result)
        if self.store is not None:
            self.store.dispatch(AddVideo(record))
        return record
