"""Run mcp_stdio_server.py as a subprocess and talk to it over stdin/stdout."""

import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
SERVER = ROOT / "mcp_stdio_server.py"


def run_server(messages, env_overrides=None, timeout=30):
    env = dict(os.environ)
    env.pop("PERPLEXITY_API_KEY", None)
    env.update(env_overrides or {})
    process = subprocess.Popen(
        [sys.executable, str(SERVER)],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        cwd=str(ROOT),
        env=env,
    )
    payload = "".join(json.dumps(m) + "\n" for m in messages)
    stdout, stderr = process.communicate(input=payload, timeout=timeout)
    return process.returncode, stdout, stderr


def test_stdio_round_trip():
    returncode, stdout, stderr = run_server([
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "add-numbers", "arguments": {"a": 2, "b": 3}},
        },
    ])

    assert returncode == 0
    # stdout must hold protocol messages only
    responses = [json.loads(line) for line in stdout.splitlines()]
    by_id = {r["id"]: r for r in responses}

    assert sorted(by_id) == [1, 2, 3]
    assert by_id[1]["result"]["serverInfo"]["name"] == "mcp-template"
    assert len(by_id[2]["result"]["tools"]) == 3
    assert by_id[3]["result"]["content"][0]["text"] == "The sum of 2 and 3 is 5"
    assert "MCP Template Server starting..." in stderr
    assert "MCP Template Server running..." in stderr


def test_startup_failure_exits_non_zero():
    returncode, stdout, stderr = run_server([], env_overrides={"RATE_LIMIT_CALLS": "lots"})
    assert returncode == 1
    assert stdout == ""
    assert "Error starting MCP Template Server" in stderr
