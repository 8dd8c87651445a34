"""Error codes and exception types shared by every layer of the server."""

from __future__ import annotations

from typing import Optional

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class OllamaMCPError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(OllamaMCPError):
    pass


class ReadWriteError(OllamaMCPError):
    """The stdio transport itself failed. Fatal for the process."""


class RPCError(OllamaMCPError):
    """A request that is answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ParameterError(OllamaMCPError):
    """A tool argument could not be decoded."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class MissingParameterError(ParameterError):
    def __init__(self, parameter: str):
        super().__init__(f"missing required parameter: {parameter}", parameter)


class TypeMismatchError(ParameterError):
    def __init__(self, parameter: str, expected: str, actual: object):
        super().__init__(
            f"parameter {parameter} is not of type {expected}, got {_json_type(actual)}",
            parameter,
        )
        self.expected = expected


class MalformedMessageError(ParameterError):
    def __init__(self, parameter: str = "messages"):
        super().__init__(
            "malformed message list: every entry must be an object with string "
            "'role' and 'content' fields",
            parameter,
        )


class EmptyMessageListError(ParameterError):
    def __init__(self, parameter: str = "messages"):
        super().__init__("message list must not be empty", parameter)


class OllamaError(OllamaMCPError):
    """The Ollama backend could not satisfy a request."""


class TransportError(OllamaError):
    pass


class SerializationError(OllamaError):
    pass


class RemoteError(OllamaError):
    def __init__(self, operation: str, status_code: int, body: str):
        super().__init__(f"{operation} failed, status code: {status_code}, response: {body}")
        self.status_code = status_code
        self.body = body


def _json_type(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
