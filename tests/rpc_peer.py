# tests/rpc_peer.py

"""
Scripted stdio JSON-RPC peer for the client tests.

    python tests/rpc_peer.py [mode]

Modes:
- normal (default): answers initialize and the test methods below,
- silent: reads everything, answers nothing,
- die: exits as soon as the first line arrives,
- noisy: writes a garbage line before every reply.

Test methods (normal / noisy):
- echo            -> result is the params object
- sleep {delay}   -> answers after `delay` seconds (in a thread, so later
                     requests are answered first)
- fail            -> error {code: -32000, message: "boom"}
- never           -> no reply
- exit            -> the process exits without replying
- seen            -> methods of every notification received so far
- tools/list      -> a one-tool catalog
- tools/call      -> text content "called <name>", isError when name == "bad"
"""

from __future__ import annotations

import json
import os
import sys
import threading

_lock = threading.Lock()
_seen: list[str] = []


def _write(msg: dict, noisy: bool) -> None:
    with _lock:
        if noisy:
            sys.stdout.write("this is not json\n")
        sys.stdout.write(json.dumps(msg) + "\n")
        sys.stdout.flush()


def _result(request_id, result) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _handle(msg: dict, noisy: bool) -> None:
    method = msg.get("method")
    request_id = msg.get("id")
    params = msg.get("params") or {}

    if request_id is None:
        _seen.append(method)
        return

    if method == "initialize":
        _write(
            _result(
                request_id,
                {
                    "protocolVersion": params.get("protocolVersion"),
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": "test-peer", "version": "0.1"},
                },
            ),
            noisy,
        )
    elif method == "echo":
        _write(_result(request_id, params), noisy)
    elif method == "sleep":
        timer = threading.Timer(float(params.get("delay", 0)), _write, (_result(request_id, params), noisy))
        timer.daemon = True
        timer.start()
    elif method == "fail":
        _write({"jsonrpc": "2.0", "id": request_id, "error": {"code": -32000, "message": "boom"}}, noisy)
    elif method == "never":
        pass
    elif method == "exit":
        sys.stdout.flush()
        os._exit(0)
    elif method == "seen":
        _write(_result(request_id, list(_seen)), noisy)
    elif method == "tools/list":
        _write(_result(request_id, {"tools": [{"name": "hello", "inputSchema": {"type": "object"}}]}), noisy)
    elif method == "tools/call":
        name = params.get("name")
        content = [{"type": "text", "text": f"called {name}"}]
        _write(_result(request_id, {"content": content, "isError": name == "bad"}), noisy)
    else:
        _write(
            {"jsonrpc": "2.0", "id": request_id, "error": {"code": -32601, "message": f"Method not found: {method}"}},
            noisy,
        )


def main() -> None:
    mode = sys.argv[1] if len(sys.argv) > 1 else "normal"
    print(f"rpc_peer starting in {mode} mode", file=sys.stderr, flush=True)

    for line in sys.stdin:
        if mode == "die":
            os._exit(3)
        if mode == "silent" or not line.strip():
            continue
        _handle(json.loads(line), noisy=mode == "noisy")


if __name__ == "__main__":
    main()
