PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"
SERVER_NAME = "ollama-mcp-server"
