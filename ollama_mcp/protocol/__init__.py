from ollama_mcp.protocol.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from ollama_mcp.protocol.models import ErrorObject, Request, Response, TextContent, ToolResult
from ollama_mcp.protocol.version import JSONRPC_VERSION, PROTOCOL_VERSION, SERVER_NAME

__all__ = [
    "ErrorObject",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "PROTOCOL_VERSION",
    "Request",
    "Response",
    "SERVER_NAME",
    "TextContent",
    "ToolResult",
]
