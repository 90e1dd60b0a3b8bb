import pytest
from fastapi.testclient import TestClient

from mcp_template.server import create_app


@pytest.fixture
def client(mcp_server):
    return TestClient(create_app(mcp_server))


def test_message_endpoint(client):
    response = client.post("/message", json={
        "jsonrpc": "2.0",
        "id": "1",
        "method": "tools/call",
        "params": {"name": "add-numbers", "arguments": {"a": 2, "b": 3}},
    })
    assert response.status_code == 200
    assert response.json()["result"]["content"][0]["text"] == "The sum of 2 and 3 is 5"


def test_mcp_endpoint_lists_tools(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = [tool["name"] for tool in response.json()["result"]["tools"]]
    assert "add-numbers" in names


def test_notification_is_accepted_without_body(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert response.status_code == 202
    assert response.content == b""


def test_non_object_body(client):
    response = client.post("/message", json=[1, 2])
    assert response.json()["error"]["code"] == -32600


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["server"] == "mcp-template"
    assert body["operations"] == 5


def test_root(client):
    assert client.get("/").json() == {"message": "MCP Server", "tools": 3, "prompts": 1, "resources": 1}
