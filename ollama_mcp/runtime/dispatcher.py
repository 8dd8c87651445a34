"""JSON-RPC request dispatcher for the MCP server."""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from ollama_mcp import __version__
from ollama_mcp.logging import set_log_level
from ollama_mcp.params import decode_arguments
from ollama_mcp.protocol.errors import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    OllamaError,
    ParameterError,
    RPCError,
)
from ollama_mcp.protocol.models import ErrorObject, Request, Response, ToolResult
from ollama_mcp.protocol.version import PROTOCOL_VERSION, SERVER_NAME
from ollama_mcp.registry import Tool, ToolRegistry
from ollama_mcp.runtime.serialization import loads_frame

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def error_response(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return Response(id=request_id, error=ErrorObject(code=code, message=message)).to_wire()


def _salvage_id(raw: Any) -> Any:
    if isinstance(raw, dict):
        request_id = raw.get("id")
        if isinstance(request_id, (str, int)) and not isinstance(request_id, bool):
            return request_id
    return None


class Dispatcher:
    def __init__(self, registry: ToolRegistry, server_version: str = __version__):
        self.registry = registry
        self.server_version = server_version
        self.initialized = False
        self._methods: Dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "logging/setLevel": self._set_level,
        }

    async def handle_frame(self, frame: str) -> Optional[Dict[str, Any]]:
        """Decode one raw frame and dispatch it. Returns None when no reply is due."""
        try:
            raw = loads_frame(frame)
        except json.JSONDecodeError as exc:
            return error_response(None, PARSE_ERROR, f"parse error: {exc}")
        return await self.dispatch(raw)

    async def dispatch(self, raw: Any) -> Optional[Dict[str, Any]]:
        if isinstance(raw, list):
            return error_response(None, INVALID_REQUEST, "batch requests are not supported")

        try:
            request = Request.model_validate(raw)
        except ValidationError as exc:
            return error_response(_salvage_id(raw), INVALID_REQUEST, f"invalid request: {exc}")

        if request.is_notification:
            self._notify(request)
            return None

        logger.debug("request %r: %s", request.id, request.method)
        handler = self._methods.get(request.method)
        if handler is None:
            return error_response(
                request.id, METHOD_NOT_FOUND, f"method '{request.method}' not found"
            )

        try:
            result = await handler(request.params)
        except RPCError as exc:
            return error_response(request.id, exc.code, exc.message)
        return Response(id=request.id, result=result).to_wire()

    def _notify(self, request: Request) -> None:
        if request.method == "notifications/initialized":
            self.initialized = True
            logger.info("client initialized")
        else:
            logger.debug("ignoring notification %s", request.method)

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo")
        client_name = client_info.get("name") if isinstance(client_info, dict) else None
        logger.info(
            "initialize from %s (protocol %s)",
            client_name or "unknown client",
            params.get("protocolVersion"),
        )
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"subscribe": False, "listChanged": False},
                "logging": {},
            },
            "serverInfo": {"name": SERVER_NAME, "version": self.server_version},
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": [schema.to_wire() for schema in self.registry.schemas()]}

    async def _list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": []}

    async def _list_resource_templates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resourceTemplates": []}

    async def _set_level(self, params: Dict[str, Any]) -> Dict[str, Any]:
        level = params.get("level")
        if not isinstance(level, str):
            raise RPCError(INVALID_PARAMS, "level is required")
        try:
            set_log_level(level)
        except ValueError as exc:
            raise RPCError(INVALID_PARAMS, str(exc)) from exc
        return {}

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise RPCError(INVALID_PARAMS, "tool name is required")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RPCError(INVALID_PARAMS, "tool arguments must be an object")

        result = await self.call(name, arguments)
        return result.to_wire()

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        tool = self.registry.get(name)
        if tool is None:
            raise RPCError(INVALID_PARAMS, f"tool '{name}' not found")
        return await self.call_tool(tool, arguments)

    async def call_tool(self, tool: Tool, arguments: Dict[str, Any]) -> ToolResult:
        """Run a tool. Every failure comes back as an error result, never an exception."""
        logger.debug("calling tool %s", tool.name)
        try:
            decoded = decode_arguments(tool.schema.parameters, arguments)
            result = await tool.handler(decoded)
        except (ParameterError, OllamaError) as exc:
            result = ToolResult.error(str(exc))
        except Exception as exc:
            logger.exception("tool %s raised", tool.name)
            result = ToolResult.error(f"internal error in tool {tool.name}: {exc}")

        if result.is_error:
            logger.warning("tool %s failed: %s", tool.name, result.first_text)
        return result
