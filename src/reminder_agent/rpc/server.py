# src/reminder_agent/rpc/server.py

"""
Stdio JSON-RPC server side.

Requests are scheduled in arrival order, each in its own asyncio task, so a
slow handler never stops the loop from framing and dispatching later input.
Responses are written under a lock so lines never interleave.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from .. import __version__
from ..errors import ToolArgumentError
from .framing import LineFramer, encode_message
from .messages import (
    INITIALIZE,
    INITIALIZED_NOTIFICATION,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PING,
    PROTOCOL_VERSION,
    Message,
    classify,
    make_error,
    make_result,
)

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024

Handler = Callable[[dict[str, Any]], Any] | Callable[[dict[str, Any]], Awaitable[Any]]


class MessageWriter(Protocol):
    async def write(self, data: bytes) -> None: ...


class StdoutWriter:
    """Writes protocol lines to the process's real stdout, one flush per line."""

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer

    async def write(self, data: bytes) -> None:
        self._stream.write(data)
        self._stream.flush()


class RpcServer:
    """Method registry + serve loop."""

    def __init__(self, name: str, version: str = __version__, *, instructions: str | None = None) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self.initialized = False

        self._methods: dict[str, Handler] = {}
        self._notifications: dict[str, Handler] = {}
        self._write_lock = asyncio.Lock()
        self._inflight: set[asyncio.Task[None]] = set()

        self.register(INITIALIZE, self._handle_initialize)
        self.register(PING, lambda _params: {})
        self.register_notification(INITIALIZED_NOTIFICATION, self._handle_initialized)

    # ---- registry ----

    def register(self, method: str, handler: Handler) -> None:
        self._methods[method] = handler

    def register_notification(self, method: str, handler: Handler) -> None:
        self._notifications[method] = handler

    def method(self, name: str) -> Callable[[Handler], Handler]:
        def deco(fn: Handler) -> Handler:
            self.register(name, fn)
            return fn

        return deco

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    # ---- built-ins ----

    def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        logger.info(
            "initialize from client=%s %s (protocol=%s)",
            client.get("name", "?") if isinstance(client, dict) else "?",
            client.get("version", "?") if isinstance(client, dict) else "?",
            params.get("protocolVersion"),
        )
        result: dict[str, Any] = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.name, "version": self.version},
        }
        if self.instructions:
            result["instructions"] = self.instructions
        return result

    def _handle_initialized(self, _params: dict[str, Any]) -> None:
        self.initialized = True
        logger.debug("client sent initialized")

    # ---- serve loop ----

    async def serve(self, reader: asyncio.StreamReader, writer: MessageWriter) -> None:
        """Run until the reader hits EOF and every in-flight request is answered."""
        framer = LineFramer(self.name)
        logger.info("%s %s serving (%d methods)", self.name, self.version, len(self._methods))

        while True:
            chunk = await reader.read(_READ_CHUNK)
            if not chunk:
                break
            for msg in framer.feed(chunk):
                self._accept(msg, writer)

        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("%s: input closed, stopping", self.name)

    def _accept(self, msg: Message, writer: MessageWriter) -> None:
        kind = classify(msg)

        if kind == "request":
            task = asyncio.create_task(self._answer(msg, writer))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            return

        if kind == "notification":
            task = asyncio.create_task(self._notify(msg))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            return

        if "id" in msg and msg.get("id") is not None and "method" in msg:
            # method present but not a string
            task = asyncio.create_task(
                self._send(writer, make_error(msg["id"], INVALID_REQUEST, "Invalid request: method must be a string"))
            )
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            return

        logger.warning("%s: ignoring message that is neither request nor notification: %s", self.name, str(msg)[:200])

    async def _answer(self, msg: Message, writer: MessageWriter) -> None:
        request_id = msg["id"]
        method = msg["method"]
        params = msg.get("params")
        if params is None:
            params = {}

        handler = self._methods.get(method)
        if handler is None:
            logger.info("unknown method %s (#%s)", method, request_id)
            await self._send(writer, make_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}"))
            return

        if not isinstance(params, dict):
            await self._send(writer, make_error(request_id, INVALID_PARAMS, "params must be an object"))
            return

        try:
            result = await _call(handler, params)
        except (ToolArgumentError, ValueError, TypeError) as e:
            logger.info("%s #%s rejected: %s", method, request_id, e)
            reply = make_error(request_id, INVALID_PARAMS, str(e) or e.__class__.__name__)
        except Exception as e:
            logger.exception("%s #%s failed", method, request_id)
            reply = make_error(request_id, INTERNAL_ERROR, str(e) or e.__class__.__name__)
        else:
            reply = make_result(request_id, result)

        await self._send(writer, reply)

    async def _notify(self, msg: Message) -> None:
        method = msg["method"]
        handler = self._notifications.get(method)
        if handler is None:
            logger.debug("unhandled notification %s", method)
            return
        params = msg.get("params")
        try:
            await _call(handler, params if isinstance(params, dict) else {})
        except Exception:
            logger.exception("notification handler %s failed", method)

    async def _send(self, writer: MessageWriter, msg: Message) -> None:
        data = encode_message(msg)
        async with self._write_lock:
            try:
                await writer.write(data)
            except (BrokenPipeError, ConnectionResetError, OSError):
                logger.warning("%s: client went away, dropping response #%s", self.name, msg.get("id"))


async def _call(handler: Handler, params: dict[str, Any]) -> Any:
    result = handler(params)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_stdio(server: RpcServer) -> None:
    """Serve on this process's stdin/stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=_READ_CHUNK * 16)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    await server.serve(reader, StdoutWriter())
