"""Flask proxy in front of the inference endpoint.

Routes:
    POST   /api/generate-video   generate a video from prompt and/or media
    GET    /api/generate-video   endpoint description
    GET    /api/models           available models
    GET    /api/videos           history (kept client-side, always empty)
    DELETE /api/videos           acknowledge bulk deletion
    GET    /api/videos/<id>      acknowledge lookup
    DELETE /api/videos/<id>      acknowledge deletion
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from videogen.catalog import available_models
from videogen.client import InferenceApiError, InferenceClient
from videogen.config import get_fallback_urls, load_config
from videogen.generation import FallbackUrls, GenerationValidationError, generate_video
from videogen.models import GenerationRequest

logger = logging.getLogger(__name__)


def _failure(error: str, status: int):
    return jsonify({"success": False, "videoId": "", "error": error}), status


def create_app(config: dict | None = None, transport=None) -> Flask:
    """Build the Flask app.

    Args:
        config: Loaded configuration; defaults to ``load_config()``.
        transport: Optional httpx transport for the upstream client.
    """
    app = Flask(__name__)
    app.config["VIDEOGEN"] = config or load_config()
    app.config["INFERENCE_TRANSPORT"] = transport

    @app.post("/api/generate-video")
    async def generate():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _failure("Request body must be a JSON object", 400)

        try:
            gen_request = GenerationRequest.from_dict(body)
        except (TypeError, ValueError, AttributeError) as exc:
            return _failure(f"Malformed request: {exc}", 400)

        cfg = app.config["VIDEOGEN"]
        reply_url, empty_url = get_fallback_urls(cfg)
        try:
            async with InferenceClient.from_config(cfg, transport=app.config["INFERENCE_TRANSPORT"]) as client:
                result = await generate_video(
                    client,
                    gen_request,
                    fallbacks=FallbackUrls(reply=reply_url, empty=empty_url),
                )
        except GenerationValidationError as exc:
            return _failure(str(exc), 400)
        except InferenceApiError as exc:
            logger.error("Video generation API error: %s", exc)
            return _failure(str(exc), 500)
        except Exception:
            logger.exception("Unexpected error during video generation")
            return _failure("Internal server error", 500)

        return jsonify(result.to_dict())

    @app.get("/api/generate-video")
    def describe():
        return jsonify({
            "message": "AI Video Generation API",
            "endpoint": "/api/generate-video",
            "method": "POST",
            "description": "Generate videos using AI models",
        })

    @app.get("/api/models")
    def models():
        return jsonify([m.to_dict() for m in available_models()])

    @app.get("/api/videos")
    def list_videos():
        return jsonify([])

    @app.delete("/api/videos")
    def delete_videos():
        return jsonify({"success": True, "message": "Video deletion handled on client side"})

    @app.get("/api/videos/<video_id>")
    def get_video(video_id: str):
        return jsonify({"success": True, "message": f"Video {video_id} details would be returned here"})

    @app.delete("/api/videos/<video_id>")
    def delete_video(video_id: str):
        logger.info("Deleting video: %s", video_id)
        return jsonify({"success": True, "message": f"Video {video_id} deletion handled"})

    return app
