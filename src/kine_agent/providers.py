# providers.py
# LLM provider boundary.
#
# The loop sees one call: chat_completion(messages, model) -> LLMResponse.
# Transport and auth errors propagate untouched; there is no retry here.
# A missing API key fails at construction with ConfigurationError.

import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from openai import OpenAI

from kine_agent.errors import ConfigurationError
from kine_agent.models import LLMMessage, LLMResponse, TokenUsage


class LLMProvider(ABC):
    @abstractmethod
    def chat_completion(self, messages: Sequence[LLMMessage], model: str) -> LLMResponse:
        ...


class OpenAIProvider(LLMProvider):
    """Any OpenAI-compatible /chat/completions endpoint."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None) -> None:
        api_key = api_key or os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("No API key: pass api_key or set LLM_API_KEY")
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url or os.getenv("LLM_BASE_URL"),
        )

    @staticmethod
    def _to_api_message(message: LLMMessage) -> dict[str, Any]:
        if message.role == "tool":
            return {"role": "tool", "content": message.content or "", "tool_call_id": message.tool_call_id}
        if message.role == "assistant":
            payload: dict[str, Any] = {"role": "assistant", "content": message.content}
            if message.tool_calls:
                payload["tool_calls"] = message.tool_calls
            return payload
        return {"role": message.role, "content": message.content or ""}

    def chat_completion(self, messages: Sequence[LLMMessage], model: str) -> LLMResponse:
        completion = self._client.chat.completions.create(
            model=model,
            messages=[self._to_api_message(m) for m in messages],
        )
        choice = completion.choices[0] if completion.choices else None

        usage = None
        if completion.usage:
            usage = TokenUsage(
                prompt_tokens=completion.usage.prompt_tokens,
                completion_tokens=completion.usage.completion_tokens,
                total_tokens=completion.usage.total_tokens,
            )

        return LLMResponse(
            content=(choice.message.content if choice else None) or "",
            model=completion.model,
            usage=usage,
            finish_reason=choice.finish_reason if choice else None,
        )
