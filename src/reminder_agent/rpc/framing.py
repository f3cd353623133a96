# src/reminder_agent/rpc/framing.py

from __future__ import annotations

import codecs
import json
import logging
from typing import Any

from .messages import JSONRPC_VERSION, Message

logger = logging.getLogger(__name__)

_LOG_PREVIEW_CHARS = 200


class LineFramer:
    """
    Newline-delimited JSON framer.

    Feed it raw chunks as they arrive from a pipe; it returns every complete
    message found so far and keeps the unterminated tail for the next call.
    Works across chunk boundaries, including a UTF-8 character split in two.

    A line that is not a JSON-RPC object is logged and dropped: one corrupt line
    must never wedge the channel.
    """

    def __init__(self, name: str = "rpc") -> None:
        self._name = name
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buf = ""
        self.dropped = 0

    @property
    def pending(self) -> int:
        """Length of the buffered, not yet terminated line."""
        return len(self._buf)

    def feed(self, chunk: bytes | str) -> list[Message]:
        if not chunk:
            return []

        if isinstance(chunk, bytes):
            self._buf += self._decoder.decode(chunk)
        else:
            self._buf += chunk

        if "\n" not in self._buf:
            return []

        *lines, self._buf = self._buf.split("\n")

        out: list[Message] = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            msg = self._parse_line(line)
            if msg is not None:
                out.append(msg)
        return out

    def _parse_line(self, line: str) -> Message | None:
        try:
            value: Any = json.loads(line)
        except json.JSONDecodeError as e:
            self.dropped += 1
            logger.warning("%s: dropping malformed line (%s): %s", self._name, e.msg, line[:_LOG_PREVIEW_CHARS])
            return None

        if not isinstance(value, dict) or value.get("jsonrpc") != JSONRPC_VERSION:
            self.dropped += 1
            logger.warning("%s: dropping non JSON-RPC line: %s", self._name, line[:_LOG_PREVIEW_CHARS])
            return None

        return value


def encode_message(msg: Message) -> bytes:
    """Serialize one message as a single line (compact JSON + newline)."""
    return (json.dumps(msg, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
