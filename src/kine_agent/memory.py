# memory.py
# Conversation memory shared across runs of an Agent.
#
# In-process only: nothing is written to disk.

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from kine_agent.models import Step, StepKind, TokenUsage

Role = Literal["user", "assistant", "system"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryMessage(BaseModel):
    role: Role
    content: str
    sequence: int = 0
    timestamp: datetime = Field(default_factory=_now)
    metadata: dict[str, Any] | None = None


class MemoryStep(BaseModel):
    step: Step
    step_number: int
    sequence: int = 0
    timestamp: datetime = Field(default_factory=_now)


class BaseMemory(ABC):
    """Store the execution loop posts prompts, answers and steps into."""

    @abstractmethod
    def add_message(self, role: Role, content: str, metadata: dict[str, Any] | None = None) -> None:
        ...

    @abstractmethod
    def add_step(self, step: Step, step_number: int) -> None:
        ...

    @abstractmethod
    def to_conversation_history(self) -> list[dict[str, Any]]:
        ...


class SimpleMemory(BaseMemory):
    """
    Bounded in-process memory. The oldest entries are dropped once
    *max_messages* / *max_steps* is exceeded.
    """

    def __init__(self, max_messages: int = 1000, max_steps: int = 100) -> None:
        self.max_messages = max_messages
        self.max_steps = max_steps
        self._messages: list[MemoryMessage] = []
        self._steps: list[MemoryStep] = []
        self._sequence = 0

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def add_message(self, role: Role, content: str, metadata: dict[str, Any] | None = None) -> None:
        self._sequence += 1
        self._messages.append(
            MemoryMessage(role=role, content=content, metadata=metadata, sequence=self._sequence)
        )
        if len(self._messages) > self.max_messages:
            self._messages = self._messages[-self.max_messages:]

    def get_messages(self) -> list[MemoryMessage]:
        return list(self._messages)

    def get_recent_messages(self, count: int) -> list[MemoryMessage]:
        return self._messages[-count:] if count > 0 else []

    def clear_messages(self) -> None:
        self._messages = []

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def add_step(self, step: Step, step_number: int) -> None:
        self._sequence += 1
        self._steps.append(MemoryStep(step=step, step_number=step_number, sequence=self._sequence))
        if len(self._steps) > self.max_steps:
            self._steps = self._steps[-self.max_steps:]

    def get_steps(self) -> list[MemoryStep]:
        return list(self._steps)

    def get_recent_steps(self, count: int) -> list[MemoryStep]:
        return self._steps[-count:] if count > 0 else []

    def clear_steps(self) -> None:
        self._steps = []

    def clear_all(self) -> None:
        self.clear_messages()
        self.clear_steps()

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, int]:
        kinds = [entry.step.kind for entry in self._steps]
        roles = [message.role for message in self._messages]
        return {
            "total_messages": len(self._messages),
            "total_steps": len(self._steps),
            "user_messages": roles.count("user"),
            "assistant_messages": roles.count("assistant"),
            "system_messages": roles.count("system"),
            "agent_steps": kinds.count(StepKind.AGENT),
            "tool_steps": kinds.count(StepKind.TOOL),
            "error_steps": kinds.count(StepKind.ERROR),
        }

    def get_token_usage(self) -> TokenUsage:
        usage = TokenUsage()
        for entry in self._steps:
            tokens = entry.step.meta.tokens if entry.step.meta else None
            if tokens is None:
                continue
            usage.prompt_tokens += tokens.prompt_tokens
            usage.completion_tokens += tokens.completion_tokens
            usage.total_tokens += tokens.total_tokens
        return usage

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def to_conversation_history(self) -> list[dict[str, Any]]:
        """
        Messages and tool steps merged in insertion order.

        Tool steps become a native tool-call pair (assistant tool_calls +
        tool result) so provider APIs accept them as prior tool use.
        """
        timeline: list[MemoryMessage | MemoryStep] = [*self._messages, *self._steps]
        timeline.sort(key=lambda item: item.sequence)

        history: list[dict[str, Any]] = []
        for item in timeline:
            if isinstance(item, MemoryMessage):
                history.append({"role": item.role, "content": item.content})
            else:
                history.extend(self._tool_call_messages(item))
        return history

    @staticmethod
    def _tool_call_messages(entry: MemoryStep) -> list[dict[str, Any]]:
        step = entry.step
        if step.kind != StepKind.TOOL or not step.action or step.parameter is None:
            return []

        call_id = f"call_{entry.sequence}"
        result = step.result if isinstance(step.result, str) else json.dumps(step.result, default=str)
        return [
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {
                            "name": step.action,
                            "arguments": json.dumps(step.parameter, default=str),
                        },
                    }
                ],
            },
            {"role": "tool", "content": result, "tool_call_id": call_id},
        ]
