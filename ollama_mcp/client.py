"""Asynchronous client for the Ollama HTTP API."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ollama_mcp.models import (
    ChatMessage,
    ListModelsResponse,
    ModelInfo,
    ModelNameRequest,
    ModelRequest,
    ModelResponse,
)
from ollama_mcp.protocol.errors import RemoteError, SerializationError, TransportError

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class OllamaClient:
    """Thin typed wrapper over the five Ollama endpoints used by the tools.

    The base URL and timeout are fixed at construction. Every call can be
    cancelled by cancelling the awaiting task.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "OllamaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def generate(self, request: ModelRequest) -> ModelResponse:
        response = await self._request("generate", "POST", "/api/generate", request.to_payload())
        _raise_for_stream_error("generate", response)
        return _decode_completion("generate", response.text)

    async def chat(self, request: ModelRequest) -> ModelResponse:
        response = await self._request("chat", "POST", "/api/chat", request.to_payload())
        _raise_for_stream_error("chat", response)
        return _decode_completion("chat", response.text)

    async def list_models(self, include_details: bool = False) -> List[ModelInfo]:
        params = {"details": "true"} if include_details else None
        response = await self._request("list models", "GET", "/api/tags", params=params)
        try:
            listing = ListModelsResponse.model_validate_json(response.text)
        except ValidationError as exc:
            raise SerializationError(f"failed to parse list models response: {exc}") from exc
        return listing.models or []

    async def pull_model(self, name: str) -> None:
        response = await self._request(
            "pull model", "POST", "/api/pull", ModelNameRequest(name=name).model_dump()
        )
        _raise_for_stream_error("pull model", response)

    async def delete_model(self, name: str) -> None:
        await self._request(
            "delete model", "DELETE", "/api/delete", ModelNameRequest(name=name).model_dump()
        )

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = await self._http.request(method, path, json=payload, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"sending {operation} request failed: {exc!r}") from exc

        if not response.is_success:
            raise RemoteError(operation, response.status_code, response.text)
        return response


def _decode_completion(operation: str, body: str) -> ModelResponse:
    """Decode a generate/chat body, folding a newline-delimited stream into one response."""
    try:
        return ModelResponse.model_validate_json(body)
    except ValidationError as exc:
        lines = [line for line in body.splitlines() if line.strip()]
        if len(lines) < 2:
            raise SerializationError(f"failed to parse {operation} response: {exc}") from exc

    try:
        chunks = [ModelResponse.model_validate_json(line) for line in lines]
    except ValidationError as exc:
        raise SerializationError(f"failed to parse {operation} response: {exc}") from exc
    return _fold_chunks(chunks)


def _fold_chunks(chunks: List[ModelResponse]) -> ModelResponse:
    last = chunks[-1]
    message = None
    if any(chunk.message is not None for chunk in chunks):
        role = next(chunk.message.role for chunk in chunks if chunk.message is not None)
        message = ChatMessage(
            role=role,
            content="".join(chunk.message.content for chunk in chunks if chunk.message is not None),
        )
    return ModelResponse(
        model=last.model or chunks[0].model,
        response="".join(chunk.response for chunk in chunks),
        done=last.done,
        created_at=last.created_at,
        message=message,
    )


def _raise_for_stream_error(operation: str, response: httpx.Response) -> None:
    # Ollama reports some failures in-band after a 200 status, as a single
    # {"error": ...} object or as one line of a streamed body.
    for line in response.text.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(event, dict) and event.get("error"):
            raise RemoteError(operation, response.status_code, str(event["error"]))
