from __future__ import annotations

import json

import pytest

from ollama_mcp import __version__
from ollama_mcp.main import main


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("OLLAMA_URL", "LOG_FILE", "LOG_LEVEL", "TIMEOUT"):
        monkeypatch.delenv(f"OLLAMA_MCP_{name}", raising=False)


def test_list_tools(capsys):
    assert main(["list-tools"]) == 0
    tools = json.loads(capsys.readouterr().out)
    assert [tool["name"] for tool in tools] == [
        "generate_text",
        "chat",
        "list_models",
        "pull_model",
        "delete_model",
    ]


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_bad_log_level_exits_non_zero(capsys, monkeypatch):
    monkeypatch.setenv("OLLAMA_MCP_LOG_LEVEL", "loud")
    assert main(["list-tools"]) == 1
    assert "log level" in capsys.readouterr().err


def test_call_rejects_invalid_arguments(capsys):
    assert main(["call", "--tool", "generate_text", "--arguments", "{nope"]) == 2
    assert "not valid JSON" in capsys.readouterr().err


def test_call_unknown_tool(tmp_path, capsys):
    code = main(["--log-file", str(tmp_path / "cli.log"), "call", "--tool", "summon"])
    assert code == 2
    assert "summon" in capsys.readouterr().err


def test_call_reports_error_result(tmp_path, capsys):
    code = main(
        [
            "--log-file",
            str(tmp_path / "cli.log"),
            "call",
            "--tool",
            "chat",
            "--arguments",
            '{"model": "llama2", "messages": []}',
        ]
    )
    result = json.loads(capsys.readouterr().out)
    assert code == 1
    assert result["isError"] is True
    assert result["content"][0]["text"] == "message list must not be empty"
