"""Server configuration.

Settings are layered, highest priority first: command-line flags,
``OLLAMA_MCP_*`` environment variables, the ``[server]`` table of
``config.toml`` in the working directory, built-in defaults.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ollama_mcp.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from ollama_mcp.logging import parse_level
from ollama_mcp.protocol.errors import ConfigError

ENV_PREFIX = "OLLAMA_MCP_"
CONFIG_FILE = "config.toml"


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    ollama_url: str = DEFAULT_BASE_URL
    log_file: Optional[str] = None
    log_level: str = "info"
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0)

    @field_validator("ollama_url")
    @classmethod
    def _normalise_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return DEFAULT_BASE_URL
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"ollama_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("log_file")
    @classmethod
    def _empty_log_file(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        parse_level(value)
        return value.strip().lower()


def _load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        config = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid config file {path}: {exc}") from exc
    server = config.get("server", {})
    if not isinstance(server, dict):
        raise ConfigError(f"[server] in {path} must be a table")
    return server


def _load_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in ServerConfig.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return values


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """Build the effective configuration; `None` overrides are treated as unset."""
    values: Dict[str, Any] = {}
    values.update(_load_config_file(config_path or Path(CONFIG_FILE)))
    values.update(_load_environment(os.environ if environ is None else environ))
    values.update({key: value for key, value in (overrides or {}).items() if value is not None})

    try:
        return ServerConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
