"""Async HTTP client for the hosted chat-completions inference endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from videogen.config import get_api_headers
from videogen.models import OutboundMessage

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 900.0


class InferenceApiError(Exception):
    """Raised when the inference endpoint cannot be reached or returns an error."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class InferenceClient:
    """Async client for a chat-completions style endpoint.

    Usage::

        async with InferenceClient(endpoint, headers) as client:
            reply = await client.chat_completion("replicate/google/veo-3", message)
    """

    def __init__(
        self,
        endpoint: str,
        headers: dict[str, str] | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = httpx.AsyncClient(
            headers=headers or {"Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: dict, transport: httpx.AsyncBaseTransport | None = None) -> InferenceClient:
        return cls(
            endpoint=config["api"]["endpoint"],
            headers=get_api_headers(config),
            timeout=float(config["api"]["timeout_seconds"]),
            transport=transport,
        )

    async def __aenter__(self) -> InferenceClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def chat_completion(self, model: str, message: OutboundMessage) -> dict:
        """Send one user message and return the decoded JSON reply.

        Raises:
            InferenceApiError: On a non-2xx status, a transport failure or a
                body that is not JSON.
        """
        body = {"model": model, "messages": [message.to_dict()]}
        logger.info(
            "Calling %s: model=%s, type=%s, multimodal=%s",
            self.endpoint, model, message.generation_type, message.is_multimodal,
        )
        try:
            response = await self._client.post(self.endpoint, json=body)
        except httpx.TimeoutException as exc:
            raise InferenceApiError(f"Request timeout: {exc}") from exc
        except httpx.RequestError as exc:
            raise InferenceApiError(f"Request failed: {exc}") from exc

        if response.is_error:
            raise InferenceApiError(
                f"AI API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise InferenceApiError(
                "AI API returned a non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        logger.debug("Reply: %s", data)
        return data
