"""JSON-RPC envelopes and MCP result models."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, model_validator

from ollama_mcp.protocol.version import JSONRPC_VERSION

RequestId = Union[StrictStr, StrictInt]


class Request(BaseModel):
    """Incoming JSON-RPC message. A message without `id` is a notification."""

    model_config = ConfigDict(extra="forbid")

    jsonrpc: Literal["2.0"]
    method: StrictStr
    id: Optional[RequestId] = None
    params: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class ErrorObject(BaseModel):
    code: StrictInt
    message: StrictStr
    data: Optional[Any] = None


class Response(BaseModel):
    """Outgoing JSON-RPC response carrying either `result` or `error`."""

    model_config = ConfigDict(extra="forbid")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[RequestId] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[ErrorObject] = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> "Response":
        if (self.result is None) == (self.error is None):
            raise ValueError("a response carries exactly one of result or error")
        return self

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result
        return payload


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: StrictStr


class ToolResult(BaseModel):
    """Result envelope of a tool call: success text or an error message."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: StrictBool = Field(False, alias="isError")

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=False)

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
