"""Records exchanged with the Ollama HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: str
    content: str


class ModelRequest(BaseModel):
    """Body of a generate or chat call.

    Only one of `prompt` or `messages` is meaningful per call; which one is
    decided by the endpoint the request is sent to.
    """

    model: str
    prompt: Optional[str] = None
    messages: Optional[List[ChatMessage]] = None
    stream: Optional[bool] = None
    options: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialise the request, leaving out every unset or empty optional field."""
        payload: Dict[str, Any] = {"model": self.model}
        if self.prompt:
            payload["prompt"] = self.prompt
        if self.messages:
            payload["messages"] = [message.model_dump() for message in self.messages]
        if self.stream:
            payload["stream"] = True
        if self.options:
            payload["options"] = self.options
        return payload


class ModelResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    model: str = ""
    response: str = ""
    done: bool = False
    created_at: str = ""
    # /api/chat answers with a message instead of a response string
    message: Optional[ChatMessage] = None

    @property
    def text(self) -> str:
        if self.response:
            return self.response
        if self.message is not None:
            return self.message.content
        return ""


class ModelInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    modified_at: str = ""
    size: int = Field(0, description="Size in bytes")
    digest: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ListModelsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    models: Optional[List[ModelInfo]] = None


class ModelNameRequest(BaseModel):
    """Body of the pull and delete calls."""

    name: str
