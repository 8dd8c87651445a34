
"""CLI entrypoint for the Ollama MCP server."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, Optional

from ollama_mcp import __version__
from ollama_mcp.client import OllamaClient
from ollama_mcp.config import ServerConfig, load_config
from ollama_mcp.logging import setup_logging
from ollama_mcp.protocol.errors import ConfigError, ReadWriteError, RPCError
from ollama_mcp.protocol.models import ToolResult
from ollama_mcp.runtime.dispatcher import Dispatcher
from ollama_mcp.runtime.stdio import run_stdio_server
from ollama_mcp.tools import TOOL_SCHEMAS, build_registry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ollama-mcp-server",
        description="MCP server exposing a local Ollama instance as tools.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    # None means "not given", so environment and config file values still apply
    parser.add_argument("--ollama-url", default=None, help="Ollama server URL")
    parser.add_argument("--log-file", default=None, help="Log file path (default: stderr)")
    parser.add_argument("--log-level", default=None, help="Log level (debug, info, warn, error)")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("stdio", help="Serve JSON-RPC messages over stdin/stdout")
    subparsers.add_parser("list-tools", help="Print the advertised tool schemas")
    call_parser = subparsers.add_parser("call", help="Call a single tool and print the result")
    call_parser.add_argument("--tool", required=True, help="Tool name")
    call_parser.add_argument("--arguments", default="{}", help="JSON object of tool arguments")
    return parser


async def call_tool(config: ServerConfig, name: str, arguments: Dict[str, Any]) -> ToolResult:
    async with OllamaClient(config.ollama_url, config.timeout) as client:
        dispatcher = Dispatcher(build_registry(client))
        return await dispatcher.call(name, arguments)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(
            {
                "ollama_url": args.ollama_url,
                "log_file": args.log_file,
                "log_level": args.log_level,
                "timeout": args.timeout,
            }
        )
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.command == "stdio":
        try:
            run_stdio_server(config)
        except (ConfigError, ReadWriteError) as exc:
            print(f"error running server: {exc}", file=sys.stderr)
            return 1
        return 0

    if args.command == "list-tools":
        print(json.dumps([schema.to_wire() for schema in TOOL_SCHEMAS], indent=2))
        return 0

    try:
        arguments = json.loads(args.arguments)
    except json.JSONDecodeError as exc:
        print(f"error: --arguments is not valid JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(arguments, dict):
        print("error: --arguments must be a JSON object", file=sys.stderr)
        return 2

    try:
        setup_logging(config.log_file, config.log_level)
        result = asyncio.run(call_tool(config, args.tool, arguments))
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except RPCError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 2
    print(json.dumps(result.to_wire(), indent=2))
    return 1 if result.is_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
