# src/reminder_agent/errors.py

"""Exception taxonomy shared by the transport, the tool dispatcher and the agent."""

from __future__ import annotations

from typing import Any


class TransportError(Exception):
    """The subprocess could not be spawned, or its channel closed under us."""


class HandshakeError(TransportError):
    """The initialize exchange did not complete within the connect timeout."""


class RpcClientError(Exception):
    """Base for failures of a single request; the connection stays usable."""


class RequestTimeoutError(RpcClientError, TimeoutError):
    def __init__(self, method: str, timeout: float, request_id: int | None = None) -> None:
        super().__init__(f"Request timeout for method: {method} (after {timeout:.1f}s)")
        self.method = method
        self.timeout = timeout
        self.request_id = request_id


class RpcError(RpcClientError):
    """The remote side answered with an error payload."""

    def __init__(self, message: str, *, code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    @classmethod
    def from_payload(cls, payload: Any) -> RpcError:
        if isinstance(payload, dict):
            message = str(payload.get("message") or payload)
            code = payload.get("code")
            return cls(message, code=code if isinstance(code, int) else None, data=payload.get("data"))
        return cls(str(payload))


class ToolArgumentError(ValueError):
    """A tool invocation is missing a required argument or carries an invalid one."""


class NotFoundError(LookupError):
    """No task with the requested id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id
