"""The five Ollama tools: schemas and handlers."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from ollama_mcp.client import OllamaClient
from ollama_mcp.models import ModelRequest
from ollama_mcp.params import ParameterSpec, ParamKind
from ollama_mcp.protocol.errors import OllamaError
from ollama_mcp.protocol.models import ToolResult
from ollama_mcp.registry import ToolRegistry, ToolSchema

logger = logging.getLogger(__name__)


def _model_param(description: str) -> ParameterSpec:
    return ParameterSpec(name="model", kind=ParamKind.STRING, required=True, description=description)


GENERATE_TEXT = ToolSchema(
    name="generate_text",
    title="Generate text",
    description="Generate text from a prompt with the given model",
    read_only=False,
    parameters=(
        _model_param("Name of the model to use"),
        ParameterSpec(
            name="prompt", kind=ParamKind.STRING, required=True, description="Input prompt"
        ),
        ParameterSpec(
            name="stream", kind=ParamKind.BOOLEAN, description="Whether to stream the output"
        ),
    ),
)

CHAT = ToolSchema(
    name="chat",
    title="Chat",
    description="Hold a conversation with the given model",
    read_only=False,
    parameters=(
        _model_param("Name of the model to use"),
        ParameterSpec(
            name="messages",
            kind=ParamKind.ARRAY_OF_MESSAGE,
            required=True,
            description="Conversation messages, each with a role and content",
        ),
    ),
)

LIST_MODELS = ToolSchema(
    name="list_models",
    title="List models",
    description="List the models available on the Ollama server",
    read_only=True,
    parameters=(
        ParameterSpec(
            name="details", kind=ParamKind.BOOLEAN, description="Include model details"
        ),
    ),
)

PULL_MODEL = ToolSchema(
    name="pull_model",
    title="Pull model",
    description="Pull a model from the registry onto the Ollama server",
    read_only=False,
    parameters=(_model_param("Name of the model to pull"),),
)

DELETE_MODEL = ToolSchema(
    name="delete_model",
    title="Delete model",
    description="Delete a model from the Ollama server",
    read_only=False,
    parameters=(_model_param("Name of the model to delete"),),
)

TOOL_SCHEMAS = (GENERATE_TEXT, CHAT, LIST_MODELS, PULL_MODEL, DELETE_MODEL)


class OllamaTools:
    """Handlers receive arguments already decoded against their tool schema."""

    def __init__(self, client: OllamaClient):
        self.client = client

    async def generate_text(self, args: Dict[str, Any]) -> ToolResult:
        request = ModelRequest(model=args["model"], prompt=args["prompt"], stream=args["stream"])
        try:
            response = await self.client.generate(request)
        except OllamaError as exc:
            return ToolResult.error(f"failed to generate text: {exc}")
        return ToolResult.text(response.text)

    async def chat(self, args: Dict[str, Any]) -> ToolResult:
        request = ModelRequest(model=args["model"], messages=args["messages"])
        try:
            response = await self.client.chat(request)
        except OllamaError as exc:
            return ToolResult.error(f"chat failed: {exc}")
        return ToolResult.text(response.text)

    async def list_models(self, args: Dict[str, Any]) -> ToolResult:
        include_details = args["details"]
        try:
            models = await self.client.list_models(include_details)
        except OllamaError as exc:
            return ToolResult.error(f"failed to list models: {exc}")

        if include_details:
            listing = [model.model_dump(exclude_none=True) for model in models]
        else:
            listing = [model.model_dump(include={"name", "modified_at", "size"}) for model in models]
        return ToolResult.text(json.dumps(listing, ensure_ascii=False))

    async def pull_model(self, args: Dict[str, Any]) -> ToolResult:
        model = args["model"]
        try:
            await self.client.pull_model(model)
        except OllamaError as exc:
            return ToolResult.error(f"failed to pull model: {exc}")
        logger.info("pulled model %s", model)
        return ToolResult.text(f"model {model} pulled successfully")

    async def delete_model(self, args: Dict[str, Any]) -> ToolResult:
        model = args["model"]
        try:
            await self.client.delete_model(model)
        except OllamaError as exc:
            return ToolResult.error(f"failed to delete model: {exc}")
        logger.info("deleted model %s", model)
        return ToolResult.text(f"model {model} deleted successfully")


def build_registry(client: OllamaClient) -> ToolRegistry:
    tools = OllamaTools(client)
    registry = ToolRegistry()
    registry.register(GENERATE_TEXT, tools.generate_text)
    registry.register(CHAT, tools.chat)
    registry.register(LIST_MODELS, tools.list_models)
    registry.register(PULL_MODEL, tools.pull_model)
    registry.register(DELETE_MODEL, tools.delete_model)
    return registry
