# src/reminder_agent/rpc/messages.py

"""
JSON-RPC 2.0 envelopes as plain dicts.

Request:      {"jsonrpc": "2.0", "id": <int>, "method": str, "params": {...}}
Response:     {"jsonrpc": "2.0", "id": <int>, "result": ...}
              {"jsonrpc": "2.0", "id": <int>, "error": {"code": int, "message": str}}
Notification: {"jsonrpc": "2.0", "method": str, "params": {...}}   (no id, no reply)
"""

from __future__ import annotations

from typing import Any, Literal

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

INITIALIZE = "initialize"
INITIALIZED_NOTIFICATION = "notifications/initialized"
PING = "ping"
TOOLS_LIST = "tools/list"
TOOLS_CALL = "tools/call"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

Message = dict[str, Any]
MessageKind = Literal["request", "notification", "response"]


def make_request(request_id: int, method: str, params: dict[str, Any] | None = None) -> Message:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "method": method, "params": params or {}}


def make_notification(method: str, params: dict[str, Any] | None = None) -> Message:
    msg: Message = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params:
        msg["params"] = params
    return msg


def make_result(request_id: Any, result: Any) -> Message:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(request_id: Any, code: int, message: str, data: Any = None) -> Message:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def classify(msg: Message) -> MessageKind | None:
    """Tell requests, notifications and responses apart; None for anything else."""
    has_id = "id" in msg and msg["id"] is not None
    if isinstance(msg.get("method"), str):
        return "request" if has_id else "notification"
    if has_id and ("result" in msg or "error" in msg):
        return "response"
    return None
