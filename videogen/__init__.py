"""AI video generation client and proxy for a hosted multimodal endpoint."""

from videogen.client import InferenceApiError, InferenceClient
from videogen.composer import classify_generation_type, compose
from videogen.downloader import DownloadError, download_video
from videogen.generation import GenerationValidationError, generate_video
from videogen.media import MediaIngestionError, MediaQueue, ingest_bytes, ingest_file
from videogen.orchestrator import GenerationOrchestrator
from videogen.store import AppStore, JsonFileRepository

__all__ = [
    "AppStore",
    "DownloadError",
    "GenerationOrchestrator",
    "GenerationValidationError",
    "InferenceApiError",
    "InferenceClient",
    "JsonFileRepository",
    "MediaIngestionError",
    "MediaQueue",
    "classify_generation_type",
    "compose",
    "download_video",
    "generate_video",
    "ingest_bytes",
    "ingest_file",
]
