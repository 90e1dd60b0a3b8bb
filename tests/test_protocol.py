"""JSON-RPC / MCP method handling."""

import asyncio

from conftest import call

from mcp_template import resources
from mcp_template.dispatcher import INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, PROTOCOL_VERSION
from mcp_template.resources import SAMPLE_TEXT


def test_initialize(mcp_server):
    response = call(mcp_server, "initialize", {"protocolVersion": PROTOCOL_VERSION})
    result = response["result"]
    assert response["id"] == 1
    assert result["protocolVersion"] == PROTOCOL_VERSION
    assert set(result["capabilities"]) == {"tools", "prompts", "resources"}
    assert result["serverInfo"] == {"name": "mcp-template", "version": "1.0.0"}


def test_notifications_get_no_response(mcp_server):
    message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
    assert asyncio.run(mcp_server.handle_message(message)) is None


def test_ping(mcp_server):
    assert call(mcp_server, "ping")["result"] == {}


def test_tools_list(mcp_server):
    tools = call(mcp_server, "tools/list")["result"]["tools"]
    names = [tool["name"] for tool in tools]
    assert names == ["add-numbers", "meeting-agenda-generator", "search-perplexity"]

    add = tools[0]
    assert add["inputSchema"]["required"] == ["a", "b"]
    assert add["inputSchema"]["properties"]["a"]["type"] == "number"


def test_prompts_list(mcp_server):
    prompts = call(mcp_server, "prompts/list")["result"]["prompts"]
    assert [p["name"] for p in prompts] == ["story-idea-generator"]
    assert [a["name"] for a in prompts[0]["arguments"]] == ["topics", "genre", "mood"]


def test_resources_list(mcp_server):
    listed = call(mcp_server, "resources/list")["result"]["resources"]
    assert listed == [{
        "uri": "sample://text",
        "name": "sample-text",
        "description": "Sample text content bundled with the server",
        "mimeType": "text/plain",
    }]


def test_tools_call_add_numbers(mcp_server):
    response = call(mcp_server, "tools/call", {"name": "add-numbers", "arguments": {"a": 2, "b": 3}}, "1")
    assert response == {
        "jsonrpc": "2.0",
        "id": "1",
        "result": {
            "content": [{"type": "text", "text": "The sum of 2 and 3 is 5"}],
            "isError": False,
        },
    }


def test_tools_call_invalid_arguments(mcp_server):
    response = call(mcp_server, "tools/call", {"name": "add-numbers", "arguments": {"a": "x", "b": 3}}, "2")
    assert response["id"] == "2"
    assert response["result"]["isError"] is True
    assert "a" in response["result"]["content"][0]["text"]


def test_tools_call_unknown_tool(mcp_server):
    response = call(mcp_server, "tools/call", {"name": "nonexistent-op", "arguments": {}}, "3")
    assert response["id"] == "3"
    assert response["result"]["isError"] is True
    assert response["result"]["content"][0]["text"] == "Unknown tool: nonexistent-op"


def test_tools_call_rejects_prompt_name(mcp_server):
    response = call(mcp_server, "tools/call", {"name": "story-idea-generator", "arguments": {}})
    assert response["result"]["isError"] is True


def test_meeting_agenda_tool(mcp_server):
    response = call(mcp_server, "tools/call", {
        "name": "meeting-agenda-generator",
        "arguments": {"meetingTitle": "Sprint Review", "participants": "the dev team", "duration": "1 hour"},
    })
    text = response["result"]["content"][0]["text"]
    assert text.startswith('Create a structured agenda for a "Sprint Review" meeting with the dev team')
    assert "Ensure the timing works within the 1 hour constraint." in text


def test_search_without_key_is_an_error_result(mcp_server):
    response = call(mcp_server, "tools/call", {"name": "search-perplexity", "arguments": {"query": "mcp"}})
    assert response["result"]["isError"] is True
    assert "PERPLEXITY_API_KEY" in response["result"]["content"][0]["text"]


def test_prompts_get(mcp_server):
    response = call(mcp_server, "prompts/get", {
        "name": "story-idea-generator",
        "arguments": {"topics": "space, friendship", "genre": "sci-fi", "mood": "uplifting"},
    })
    result = response["result"]
    assert result["description"].startswith("Generate creative and engaging story ideas")
    assert len(result["messages"]) == 1
    message = result["messages"][0]
    assert message["role"] == "user"
    assert message["content"]["type"] == "text"
    assert "Topics/Themes: space, friendship" in message["content"]["text"]
    assert "Genre: sci-fi" in message["content"]["text"]
    assert "Mood/Tone: uplifting" in message["content"]["text"]


def test_prompts_get_missing_arguments(mcp_server):
    response = call(mcp_server, "prompts/get", {"name": "story-idea-generator", "arguments": {"genre": "noir"}})
    error = response["error"]
    assert response["id"] == 1
    assert error["code"] == INVALID_PARAMS
    assert "topics: required" in error["message"]
    assert "mood: required" in error["message"]


def test_prompts_get_unknown(mcp_server):
    response = call(mcp_server, "prompts/get", {"name": "add-numbers"})
    assert response["error"]["code"] == INVALID_PARAMS


def test_resource_read_is_stable(mcp_server):
    first = call(mcp_server, "resources/read", {"uri": "sample://text"}, 1)
    second = call(mcp_server, "resources/read", {"uri": "sample://text"}, 2)
    assert first["result"] == second["result"]
    assert first["result"] == {
        "contents": [{"uri": "sample://text", "mimeType": "text/plain", "text": SAMPLE_TEXT}]
    }


def test_resource_read_failure_is_flagged(mcp_server, monkeypatch):
    def broken():
        raise OSError("disk gone")

    monkeypatch.setattr(resources, "load_sample_text", broken)
    result = call(mcp_server, "resources/read", {"uri": "sample://text"})["result"]
    assert result["isError"] is True
    assert result["contents"][0]["uri"] == "sample://text"
    assert result["contents"][0]["text"].startswith("Error: Failed to load sample text content.")


def test_resource_read_unknown_uri(mcp_server):
    response = call(mcp_server, "resources/read", {"uri": "sample://nope"})
    assert response["error"]["code"] == INVALID_PARAMS


def test_unknown_method(mcp_server):
    response = call(mcp_server, "sampling/createMessage", {}, 8)
    assert response["id"] == 8
    assert response["error"]["code"] == METHOD_NOT_FOUND


def test_missing_method(mcp_server):
    response = asyncio.run(mcp_server.handle_message({"jsonrpc": "2.0", "id": 3}))
    assert response["error"]["code"] == INVALID_REQUEST


def test_non_object_params(mcp_server):
    response = call(mcp_server, "tools/call", ["add-numbers"])
    assert response["error"]["code"] == INVALID_PARAMS


def test_empty_non_object_params_are_rejected(mcp_server):
    for params in ([], 0, ""):
        message = {"jsonrpc": "2.0", "id": 5, "method": "tools/list", "params": params}
        response = asyncio.run(mcp_server.handle_message(message))
        assert response["error"]["code"] == INVALID_PARAMS


def test_null_params_treated_as_empty(mcp_server):
    message = {"jsonrpc": "2.0", "id": 6, "method": "ping", "params": None}
    assert asyncio.run(mcp_server.handle_message(message))["result"] == {}
