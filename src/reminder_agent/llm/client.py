# src/reminder_agent/llm/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..core.ports import ChatMessage, Completion, ToolCall

logger = logging.getLogger(__name__)

# Any non-empty key works for local OpenAI-compatible servers (LM Studio, Ollama).
_LOCAL_PLACEHOLDER_KEY = "lm-studio"


def _make_timeout(read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=5.0, read=read_s, write=10.0, pool=5.0)


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return (
            "LLM is not configured (missing API key). "
            "Set REMINDER_LLM_API_KEY or OPENAI_API_KEY, or REMINDER_LLM_BASE_URL for a local model."
        )
    return msg


class OpenAICompletionClient:
    """
    OpenAI-compatible chat completions with tool calling.

    Works against api.openai.com (default) or any compatible base URL.
    Automatic retries are disabled: a scheduled summary that fails is simply
    retried on the next tick.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "llm_api_key", None)
        base_url = getattr(settings, "llm_base_url", None) or None

        if not api_key:
            if not base_url:
                raise RuntimeError("LLM API key is not set. Set REMINDER_LLM_API_KEY in your .env.")
            api_key = _LOCAL_PLACEHOLDER_KEY

        self._model = str(getattr(settings, "llm_model", "gpt-4o-mini"))
        self._max_tokens = int(getattr(settings, "llm_max_tokens", 2048))
        self._client = AsyncOpenAI(
            api_key=str(api_key),
            base_url=base_url,
            timeout=_make_timeout(float(getattr(settings, "llm_timeout_seconds", 60.0))),
            max_retries=0,
        )
        logger.info("LLM: model=%s endpoint=%s", self._model, base_url or "OpenAI default")

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> Completion:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise RuntimeError("LLM authentication failed. Check your API key (REMINDER_LLM_API_KEY).") from e
        except openai.RateLimitError as e:
            raise RuntimeError("LLM is rate-limited. Try again later.") from e
        except openai.APIConnectionError as e:
            raise RuntimeError("LLM network/timeout error. Check REMINDER_LLM_BASE_URL or try again later.") from e
        except openai.NotFoundError as e:
            raise RuntimeError(f"LLM model not available: {self._model}") from e
        except openai.APIError as e:
            raise RuntimeError(f"LLM request failed: {e}") from e

        if not response.choices:
            logger.warning("LLM: empty choices from model=%s", self._model)
            return Completion(content=None)

        message = response.choices[0].message
        calls: list[ToolCall] = []
        for tc in message.tool_calls or []:
            fn = getattr(tc, "function", None)
            if fn is None:
                continue
            calls.append(ToolCall(id=tc.id, name=fn.name, arguments=fn.arguments or "{}"))

        if response.usage is not None:
            logger.debug(
                "LLM: model=%s prompt_tokens=%s completion_tokens=%s tool_calls=%d",
                self._model,
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                len(calls),
            )
        return Completion(content=message.content, tool_calls=calls)

    async def close(self) -> None:
        await self._client.close()
