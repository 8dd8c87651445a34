"""Tool registration and discovery."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from ollama_mcp.params import ParameterSpec
from ollama_mcp.protocol.models import ToolResult

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


class ToolSchema(BaseModel):
    """Declarative description of a tool, advertised through `tools/list`.

    `read_only` is an advisory hint for callers; nothing enforces it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    title: str
    description: str
    read_only: bool = False
    parameters: Tuple[ParameterSpec, ...] = ()

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> "ToolSchema":
        names = [spec.name for spec in self.parameters]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate parameter names in tool {self.name}: {duplicates}")
        return self

    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {spec.name: spec.json_schema() for spec in self.parameters},
        }
        required = [spec.name for spec in self.parameters if spec.required]
        if required:
            schema["required"] = required
        return schema

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "annotations": {"title": self.title, "readOnlyHint": self.read_only},
        }


@dataclass(frozen=True)
class Tool:
    schema: ToolSchema
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.schema.name


def _validate_tool(schema: ToolSchema, handler: ToolHandler) -> None:
    if not schema.name:
        raise ValueError("tool name must not be empty")
    if not inspect.iscoroutinefunction(handler):
        raise TypeError(f"handler for tool {schema.name} must be a coroutine function")


class ToolRegistry:
    """Tools keyed by name, kept in registration order."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, schema: ToolSchema, handler: ToolHandler) -> Tool:
        _validate_tool(schema, handler)
        if schema.name in self._tools:
            raise ValueError(f"tool {schema.name} is already registered")
        tool = Tool(schema=schema, handler=handler)
        self._tools[schema.name] = tool
        return tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def schemas(self) -> List[ToolSchema]:
        return [tool.schema for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
