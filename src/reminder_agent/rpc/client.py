# src/reminder_agent/rpc/client.py

"""
Stdio JSON-RPC client.

Owns one tool-server subprocess and multiplexes any number of concurrent
requests over its stdin/stdout pair:

- every request gets a fresh integer id (never reused for this client),
- a background reader frames stdout into messages and routes each response to
  the pending call with the same id,
- each pending call carries its own wall-clock timer; whichever of "response"
  and "timer" pops the entry first resolves the call, the other one finds
  nothing and is a no-op,
- the server's stderr is forwarded line by line to a side-channel logger.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .. import __version__
from ..errors import HandshakeError, RequestTimeoutError, RpcError, TransportError
from .framing import LineFramer, encode_message
from .messages import (
    INITIALIZE,
    INITIALIZED_NOTIFICATION,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    TOOLS_CALL,
    TOOLS_LIST,
    Message,
    classify,
    make_error,
    make_notification,
    make_request,
)

logger = logging.getLogger(__name__)
_stderr_logger = logging.getLogger(__name__ + ".stderr")

_READ_CHUNK = 64 * 1024
_TERMINATE_WAIT = 3.0


@dataclass(slots=True)
class _PendingCall:
    method: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = None


class PendingRequests:
    """
    Per-connection table: request id -> outstanding call.

    pop() is the only way out of the table and is the compare-and-clear step:
    the first path to pop an id owns its resolution.
    """

    def __init__(self) -> None:
        self._calls: dict[int, _PendingCall] = {}

    def add(self, request_id: int, call: _PendingCall) -> None:
        if request_id in self._calls:
            raise RuntimeError(f"request id {request_id} is already pending")
        self._calls[request_id] = call

    def pop(self, request_id: int) -> _PendingCall | None:
        call = self._calls.pop(request_id, None)
        if call is not None and call.timer is not None:
            call.timer.cancel()
        return call

    def drain(self) -> list[_PendingCall]:
        calls = [self.pop(rid) for rid in list(self._calls)]
        return [c for c in calls if c is not None]

    def ids(self) -> list[int]:
        return sorted(self._calls)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._calls

    def __len__(self) -> int:
        return len(self._calls)


@dataclass(slots=True, frozen=True)
class ToolCallResult:
    text: str
    is_error: bool = False


class RpcClient:
    def __init__(
        self,
        command: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        request_timeout: float = 10.0,
        connect_timeout: float = 10.0,
        client_name: str = "reminder-agent",
        client_version: str = __version__,
        name: str = "tool-server",
    ) -> None:
        if not command:
            raise ValueError("command is required")
        self._command = list(command)
        self._env = dict(env) if env is not None else None
        self._cwd = cwd
        self._request_timeout = float(request_timeout)
        self._connect_timeout = float(connect_timeout)
        self._client_info = {"name": client_name, "version": client_version}
        self.name = name

        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()
        self._framer = LineFramer(name)
        self._pending = PendingRequests()
        self._last_id = 0
        self._closed = True
        self._initialized = False

        self.server_info: dict[str, Any] = {}
        self.server_capabilities: dict[str, Any] = {}

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def is_connected(self) -> bool:
        return self._process is not None and not self._closed and self._initialized

    @property
    def pending_ids(self) -> list[int]:
        return self._pending.ids()

    @property
    def last_request_id(self) -> int:
        return self._last_id

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RpcClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Spawn the server, start the readers and run the initialize handshake."""
        if self._process is not None:
            return

        logger.info("Starting %s: %s", self.name, " ".join(self._command))
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
                cwd=self._cwd,
            )
        except (OSError, ValueError) as e:
            self._process = None
            raise TransportError(f"Failed to start {self.name} ({self._command[0]}): {e}") from e

        self._closed = False
        self._framer = LineFramer(self.name)
        self._reader_task = asyncio.create_task(self._read_loop(self._process), name=f"{self.name}-stdout")
        self._stderr_task = asyncio.create_task(self._stderr_loop(self._process), name=f"{self.name}-stderr")

        try:
            result = await self.request(
                INITIALIZE,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {},
                    "clientInfo": dict(self._client_info),
                },
                timeout=self._connect_timeout,
            )
        except RequestTimeoutError as e:
            await self.disconnect()
            raise HandshakeError(
                f"{self.name} did not answer initialize within {self._connect_timeout:.1f}s"
            ) from e
        except (TransportError, RpcError) as e:
            await self.disconnect()
            raise HandshakeError(f"{self.name} handshake failed: {e}") from e

        if isinstance(result, dict):
            info = result.get("serverInfo")
            caps = result.get("capabilities")
            self.server_info = info if isinstance(info, dict) else {}
            self.server_capabilities = caps if isinstance(caps, dict) else {}

        try:
            await self.notify(INITIALIZED_NOTIFICATION)
        except TransportError as e:
            await self.disconnect()
            raise HandshakeError(f"{self.name} closed before {INITIALIZED_NOTIFICATION}: {e}") from e
        self._initialized = True
        logger.info(
            "%s connected (server=%s %s)",
            self.name,
            self.server_info.get("name", "?"),
            self.server_info.get("version", "?"),
        )

    async def disconnect(self) -> None:
        """Terminate the subprocess and release everything. Safe to call twice."""
        proc = self._process
        if proc is None:
            return
        self._process = None
        self._closed = True
        self._initialized = False

        for call in self._pending.drain():
            if not call.future.done():
                call.future.set_exception(TransportError(f"client disconnected (method: {call.method})"))

        if proc.stdin is not None:
            with contextlib.suppress(Exception):
                proc.stdin.close()

        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.terminate()
            try:
                await asyncio.wait_for(proc.wait(), timeout=_TERMINATE_WAIT)
            except TimeoutError:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._reader_task = None
        self._stderr_task = None
        logger.info("%s stopped (returncode=%s)", self.name, proc.returncode)

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """
        Send one request and wait for its outcome.

        Returns the result payload; raises RpcError for an error response and
        RequestTimeoutError when the deadline passes first.
        """
        if self._closed or self._process is None:
            raise TransportError(f"{self.name} is not connected (method: {method})")

        timeout_s = self._request_timeout if timeout is None else float(timeout)
        loop = asyncio.get_running_loop()

        self._last_id += 1
        request_id = self._last_id
        future: asyncio.Future[Any] = loop.create_future()
        timer = loop.call_later(timeout_s, self._expire, request_id, timeout_s)
        self._pending.add(request_id, _PendingCall(method=method, future=future, timer=timer))

        try:
            await self._write(make_request(request_id, method, params))
        except TransportError:
            self._pending.pop(request_id)
            raise

        logger.debug("%s -> #%d %s", self.name, request_id, method)
        try:
            return await future
        finally:
            # No-op once resolved; clears the entry if the caller was cancelled.
            self._pending.pop(request_id)

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        await self._write(make_notification(method, params))
        logger.debug("%s -> notification %s", self.name, method)

    async def list_tools(self) -> list[dict[str, Any]]:
        result = await self.request(TOOLS_LIST, {})
        tools = result.get("tools") if isinstance(result, dict) else None
        return [t for t in tools if isinstance(t, dict)] if isinstance(tools, list) else []

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        result = await self.request(TOOLS_CALL, {"name": name, "arguments": arguments or {}})
        if not isinstance(result, dict):
            return ToolCallResult(text="" if result is None else str(result))

        text = ""
        content = result.get("content")
        if isinstance(content, list):
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    text = str(item.get("text", ""))
                    break
        return ToolCallResult(text=text, is_error=bool(result.get("isError", False)))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _expire(self, request_id: int, timeout_s: float) -> None:
        call = self._pending.pop(request_id)
        if call is None:
            return
        logger.warning("%s: request #%d %s timed out after %.1fs", self.name, request_id, call.method, timeout_s)
        if not call.future.done():
            call.future.set_exception(RequestTimeoutError(call.method, timeout_s, request_id))

    async def _write(self, msg: Message) -> None:
        proc = self._process
        if self._closed or proc is None or proc.stdin is None:
            raise TransportError(f"{self.name} channel is closed")

        data = encode_message(msg)
        async with self._write_lock:
            try:
                proc.stdin.write(data)
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError, OSError) as e:
                self._closed = True
                raise TransportError(f"Failed to write to {self.name}: {e}") from e

    async def _dispatch(self, msg: Message) -> None:
        kind = classify(msg)

        if kind == "response":
            request_id = msg["id"]
            if not isinstance(request_id, int):
                logger.warning("%s: response with non-integer id %r ignored", self.name, request_id)
                return
            call = self._pending.pop(request_id)
            if call is None:
                logger.debug("%s: late or unknown response #%s ignored", self.name, request_id)
                return
            if call.future.done():
                return
            if "error" in msg:
                call.future.set_exception(RpcError.from_payload(msg["error"]))
            else:
                call.future.set_result(msg.get("result"))
            logger.debug("%s <- #%d %s", self.name, request_id, call.method)
            return

        if kind == "request":
            # We expose no client-side methods (sampling, roots, ...).
            reply = make_error(msg["id"], METHOD_NOT_FOUND, f"Method not found: {msg['method']}")
            with contextlib.suppress(TransportError):
                await self._write(reply)
            return

        if kind == "notification":
            logger.debug("%s: notification %s", self.name, msg["method"])
            return

        logger.warning("%s: unrecognised message ignored: %s", self.name, str(msg)[:200])

    async def _read_loop(self, proc: asyncio.subprocess.Process) -> None:
        stdout = proc.stdout
        if stdout is None:
            return

        try:
            while True:
                chunk = await stdout.read(_READ_CHUNK)
                if not chunk:
                    break
                for msg in self._framer.feed(chunk):
                    await self._dispatch(msg)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s: read loop crashed", self.name)

        if self._process is not proc:
            # disconnect() already took care of the pending table.
            return

        self._closed = True
        logger.warning(
            "%s: stdout closed (returncode=%s, %d request(s) pending)",
            self.name,
            proc.returncode,
            len(self._pending),
        )
        if not self._initialized:
            # Nothing can answer the handshake any more; fail it right away.
            for call in self._pending.drain():
                if not call.future.done():
                    call.future.set_exception(TransportError(f"{self.name} exited during startup"))

    async def _stderr_loop(self, proc: asyncio.subprocess.Process) -> None:
        stderr = proc.stderr
        if stderr is None:
            return
        while True:
            try:
                line = await stderr.readline()
            except ValueError:
                # Over-long line (no newline within the stream limit); skip it.
                continue
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                _stderr_logger.info("%s: %s", self.name, text)
