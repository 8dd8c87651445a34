"""MCP server exposing a local Ollama instance as tools."""

__version__ = "0.1.0"
