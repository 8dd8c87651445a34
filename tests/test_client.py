from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from ollama_mcp.client import DEFAULT_BASE_URL, OllamaClient
from ollama_mcp.models import ChatMessage, ModelInfo, ModelRequest
from ollama_mcp.protocol.errors import RemoteError, SerializationError, TransportError

BASE_URL = "http://ollama.test"

GENERATE_REPLY = {
    "model": "llama2",
    "response": "hello",
    "done": True,
    "created_at": "2024-01-01T00:00:00Z",
}


def run_client(handler, method, *args):
    async def _run():
        async with OllamaClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
            return await getattr(client, method)(*args)

    return asyncio.run(_run())


def recording(response, seen):
    def handler(request):
        seen.append(request)
        return response

    return handler


def test_default_and_custom_base_url():
    assert OllamaClient("").base_url == DEFAULT_BASE_URL
    assert OllamaClient("http://custom-ollama:11434/").base_url == "http://custom-ollama:11434"


def test_generate_posts_model_and_prompt_only():
    seen = []
    response = run_client(
        recording(httpx.Response(200, json=GENERATE_REPLY), seen),
        "generate",
        ModelRequest(model="llama2", prompt="hi"),
    )

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/generate"
    assert json.loads(request.content) == {"model": "llama2", "prompt": "hi"}
    assert response.response == "hello"
    assert response.done is True
    assert response.created_at == "2024-01-01T00:00:00Z"


def test_generate_forwards_stream_flag():
    seen = []
    run_client(
        recording(httpx.Response(200, json=GENERATE_REPLY), seen),
        "generate",
        ModelRequest(model="llama2", prompt="hi", stream=True),
    )
    assert json.loads(seen[0].content)["stream"] is True


def test_generate_folds_streamed_chunks():
    body = "\n".join(
        json.dumps(chunk)
        for chunk in [
            {"model": "llama2", "response": "hel", "done": False, "created_at": "t1"},
            {"model": "llama2", "response": "lo", "done": False, "created_at": "t2"},
            {"model": "llama2", "response": "", "done": True, "created_at": "t3"},
        ]
    )
    response = run_client(
        lambda request: httpx.Response(200, text=body),
        "generate",
        ModelRequest(model="llama2", prompt="hi"),
    )
    assert response.response == "hello"
    assert response.done is True
    assert response.created_at == "t3"


def test_generate_reports_error_line_in_stream():
    body = (
        '{"model":"llama2","response":"par","done":false}\n'
        '{"error":"model runner has unexpectedly stopped"}\n'
    )
    with pytest.raises(RemoteError) as excinfo:
        run_client(
            lambda request: httpx.Response(200, text=body),
            "generate",
            ModelRequest(model="llama2", prompt="hi", stream=True),
        )
    assert excinfo.value.status_code == 200
    assert "unexpectedly stopped" in str(excinfo.value)


def test_chat_reports_single_error_object():
    with pytest.raises(RemoteError) as excinfo:
        run_client(
            lambda request: httpx.Response(200, json={"error": "model is loading"}),
            "chat",
            ModelRequest(model="llama2", messages=[ChatMessage(role="user", content="hi")]),
        )
    assert "model is loading" in str(excinfo.value)


def test_chat_posts_messages_and_reads_message_content():
    seen = []
    reply = {
        "model": "llama2",
        "message": {"role": "assistant", "content": "hi there"},
        "done": True,
        "created_at": "2024-01-01T00:00:00Z",
    }
    response = run_client(
        recording(httpx.Response(200, json=reply), seen),
        "chat",
        ModelRequest(model="llama2", messages=[ChatMessage(role="user", content="hi")]),
    )

    assert seen[0].url.path == "/api/chat"
    assert json.loads(seen[0].content) == {
        "model": "llama2",
        "messages": [{"role": "user", "content": "hi"}],
    }
    assert response.text == "hi there"


def test_malformed_body_is_serialization_error():
    with pytest.raises(SerializationError):
        run_client(
            lambda request: httpx.Response(200, text="not json"),
            "generate",
            ModelRequest(model="llama2", prompt="hi"),
        )


def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        run_client(handler, "generate", ModelRequest(model="llama2", prompt="hi"))
    assert "connection refused" in str(excinfo.value)


def test_generate_non_2xx_is_remote_error():
    with pytest.raises(RemoteError) as excinfo:
        run_client(
            lambda request: httpx.Response(404, text='{"error":"model not found"}'),
            "generate",
            ModelRequest(model="nope", prompt="hi"),
        )
    assert excinfo.value.status_code == 404
    assert "model not found" in str(excinfo.value)


def test_list_models_parses_models():
    seen = []
    body = {
        "models": [
            {"name": "llama2:latest", "modified_at": "2024-01-01T00:00:00Z", "size": 3826793677},
            {"name": "mistral:7b", "modified_at": "2024-02-01T00:00:00Z", "size": 4109865159},
        ]
    }
    models = run_client(recording(httpx.Response(200, json=body), seen), "list_models", False)

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/tags"
    assert "details" not in seen[0].url.params
    assert models == [
        ModelInfo(name="llama2:latest", modified_at="2024-01-01T00:00:00Z", size=3826793677),
        ModelInfo(name="mistral:7b", modified_at="2024-02-01T00:00:00Z", size=4109865159),
    ]


def test_list_models_with_details_sets_query_flag():
    seen = []
    run_client(recording(httpx.Response(200, json={"models": []}), seen), "list_models", True)
    assert seen[0].url.params["details"] == "true"


@pytest.mark.parametrize("body", [{"models": []}, {"models": None}, {}])
def test_list_models_empty_listing(body):
    assert run_client(lambda request: httpx.Response(200, json=body), "list_models", False) == []


def test_pull_model_posts_name():
    seen = []
    run_client(
        recording(httpx.Response(200, json={"status": "success"}), seen), "pull_model", "llama2"
    )
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/pull"
    assert json.loads(seen[0].content) == {"name": "llama2"}


def test_pull_model_failure_carries_status_and_body():
    with pytest.raises(RemoteError) as excinfo:
        run_client(lambda request: httpx.Response(500, text="disk full"), "pull_model", "x")

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "disk full"
    assert "500" in str(excinfo.value)
    assert "disk full" in str(excinfo.value)


def test_pull_model_reports_in_stream_error():
    body = '{"status":"pulling manifest"}\n{"error":"pull model manifest: file does not exist"}\n'
    with pytest.raises(RemoteError) as excinfo:
        run_client(lambda request: httpx.Response(200, text=body), "pull_model", "nope")
    assert "file does not exist" in str(excinfo.value)


def test_delete_model_sends_delete_with_body():
    seen = []
    run_client(recording(httpx.Response(200), seen), "delete_model", "llama2")

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/api/delete"
    assert json.loads(seen[0].content) == {"name": "llama2"}


def test_delete_model_failure_carries_status_and_body():
    with pytest.raises(RemoteError) as excinfo:
        run_client(
            lambda request: httpx.Response(404, text='{"error":"model \'x\' not found"}'),
            "delete_model",
            "x",
        )
    assert excinfo.value.status_code == 404
    assert "not found" in str(excinfo.value)
