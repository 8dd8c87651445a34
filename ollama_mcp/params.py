"""Decoding of loosely-typed tool arguments into typed values.

Every tool declares its parameters as `ParameterSpec`s. A call's argument bag
is decoded against those specs one parameter at a time:

* a required parameter must be present, of the declared kind and not equal
  to the kind's zero value (``""``, ``False``, ``0``, ``[]``); a zero value
  is reported exactly like an absent key;
* an optional parameter may be absent, in which case the zero value is used;
  when present it must be of the declared kind, zero values included.

A required message array that is empty fails with `EmptyMessageListError`
rather than `MissingParameterError`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from ollama_mcp.models import ChatMessage
from ollama_mcp.protocol.errors import (
    EmptyMessageListError,
    MalformedMessageError,
    MissingParameterError,
    TypeMismatchError,
)

ArgumentBag = Mapping[str, Any]


class ParamKind(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ARRAY_OF_MESSAGE = "array_of_message"

    @property
    def json_type(self) -> str:
        return "array" if self is ParamKind.ARRAY_OF_MESSAGE else self.value

    def accepts(self, value: Any) -> bool:
        return _CHECKS[self](value)

    def zero(self) -> Any:
        return _ZEROS[self]()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_CHECKS: Dict[ParamKind, Callable[[Any], bool]] = {
    ParamKind.STRING: lambda value: isinstance(value, str),
    ParamKind.BOOLEAN: lambda value: isinstance(value, bool),
    ParamKind.NUMBER: _is_number,
    ParamKind.ARRAY_OF_MESSAGE: lambda value: isinstance(value, list),
}

_ZEROS: Dict[ParamKind, Callable[[], Any]] = {
    ParamKind.STRING: str,
    ParamKind.BOOLEAN: bool,
    ParamKind.NUMBER: int,
    ParamKind.ARRAY_OF_MESSAGE: list,
}


class ParameterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParamKind
    required: bool = False
    description: str = ""

    def json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.kind.json_type}
        if self.description:
            schema["description"] = self.description
        if self.kind is ParamKind.ARRAY_OF_MESSAGE:
            schema["items"] = {
                "type": "object",
                "properties": {
                    "role": {"type": "string"},
                    "content": {"type": "string"},
                },
            }
        return schema


def required_param(args: ArgumentBag, key: str, kind: ParamKind) -> Any:
    if key not in args:
        raise MissingParameterError(key)

    value = args[key]
    if not kind.accepts(value):
        raise TypeMismatchError(key, kind.json_type, value)
    if value == kind.zero():
        if kind is ParamKind.ARRAY_OF_MESSAGE:
            raise EmptyMessageListError(key)
        raise MissingParameterError(key)
    return value


def optional_param(args: ArgumentBag, key: str, kind: ParamKind) -> Any:
    if key not in args:
        return kind.zero()

    value = args[key]
    if not kind.accepts(value):
        raise TypeMismatchError(key, kind.json_type, value)
    return value


def decode_arguments(specs: Sequence[ParameterSpec], args: ArgumentBag) -> Dict[str, Any]:
    """Decode `args` against `specs`; keys not declared by any spec are ignored.

    Message arrays come back as lists of `ChatMessage`.
    """
    decoded: Dict[str, Any] = {}
    for spec in specs:
        extract = required_param if spec.required else optional_param
        value = extract(args, spec.name, spec.kind)
        if spec.kind is ParamKind.ARRAY_OF_MESSAGE:
            value = decode_messages(value, spec.name)
        decoded[spec.name] = value
    return decoded


def decode_messages(entries: Sequence[Any], parameter: str = "messages") -> List[ChatMessage]:
    messages: List[ChatMessage] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise MalformedMessageError(parameter)
        role = entry.get("role")
        content = entry.get("content")
        if not isinstance(role, str) or not isinstance(content, str):
            raise MalformedMessageError(parameter)
        messages.append(ChatMessage(role=role, content=content))
    return messages
