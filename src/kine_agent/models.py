# models.py
# Data contracts for the ReAct execution loop.
# Schema and small accessors only.

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FINALIZE = "finalize"
PENDING = "pending"


class StepKind(str, Enum):
    AGENT = "agent"
    TOOL = "tool"
    ERROR = "error"


class ErrorKind(str, Enum):
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_ACTION = "missing_action"
    EMPTY_FINAL_ANSWER = "empty_final_answer"
    TOOL_NOT_FOUND = "tool_not_found"
    INPUT_VALIDATION_FAILED = "input_validation_failed"
    TOOL_EXECUTION_FAILED = "tool_execution_failed"


# ---------------------------------------------------------------------------
# LLM boundary
# ---------------------------------------------------------------------------


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMMessage(BaseModel):
    """One provider-shaped chat message."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None


class LLMResponse(BaseModel):
    content: str = ""
    model: str = ""
    usage: TokenUsage | None = None
    finish_reason: str | None = None


class CallMetadata(BaseModel):
    """Metrics captured around a single chat-completion call."""

    latency_ms: float
    model: str = ""
    tokens: TokenUsage | None = None
    finish_reason: str | None = None


# ---------------------------------------------------------------------------
# Step records
# ---------------------------------------------------------------------------


class StepMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    context_switches: int = 0
    tokens: TokenUsage | None = None
    latency_ms: float | None = None
    model: str | None = None
    finish_reason: str | None = None


class Step(BaseModel):
    """One iteration's recorded outcome. Appended to a run, never mutated."""

    model_config = ConfigDict(frozen=True)

    kind: StepKind
    thought: str = Field(default="", description="Free-text rationale from the model.")
    action: str | None = Field(default=None, description="Tool name, 'finalize', or None.")
    parameter: Any = Field(default=None, description="Structured input for the action.")
    result: Any = Field(default=None, description="Tool output, final answer, or error text.")
    error_kind: ErrorKind | None = None
    meta: StepMeta | None = None


class ParsedDecision(BaseModel):
    """Transient value produced by a response parser."""

    thought: str | None = None
    action: str | None = None
    parameter: Any = None
    final_answer: str | None = None

    def is_empty(self) -> bool:
        return not (self.thought or self.action or self.final_answer)


class ValidationResult(BaseModel):
    valid: bool
    error_kind: ErrorKind | None = None
    error: str | None = None


class StepOutput(BaseModel):
    """What a single step produced before it is recorded by the tracker."""

    kind: StepKind
    thought: str = ""
    action: str | None = None
    parameter: Any = None
    result: Any = None
    error_kind: ErrorKind | None = None
    call: CallMetadata | None = None

    def to_step(self, context_switches: int) -> Step:
        meta = StepMeta(context_switches=context_switches)
        if self.call is not None:
            meta = StepMeta(
                context_switches=context_switches,
                tokens=self.call.tokens,
                latency_ms=self.call.latency_ms,
                model=self.call.model,
                finish_reason=self.call.finish_reason,
            )
        return Step(
            kind=self.kind,
            thought=self.thought,
            action=self.action,
            parameter=self.parameter,
            result=self.result,
            error_kind=self.error_kind,
            meta=meta,
        )


class DispatchResult(BaseModel):
    success: bool
    result: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    parameter: Any = Field(default=None, description="Input echoed back for diagnostics on failure.")


# ---------------------------------------------------------------------------
# Run output
# ---------------------------------------------------------------------------


class AggregateUsage(BaseModel):
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_tokens: int = 0
    total_latency_ms: float = 0.0
    llm_calls: int = 0


class RunResult(BaseModel):
    """Immutable summary of one complete loop execution."""

    model_config = ConfigDict(frozen=True)

    final_answer: str
    steps: tuple[Step, ...]
    usage: AggregateUsage
    timed_out: bool = False

    def step_metadata(self, index: int) -> StepMeta | None:
        if 0 <= index < len(self.steps):
            return self.steps[index].meta
        return None

    def token_usage(self) -> AggregateUsage:
        return self.usage

    def summary(self) -> str:
        kinds = {kind: 0 for kind in StepKind}
        for step in self.steps[1:]:
            kinds[step.kind] += 1
        lines = [
            f"Final answer: {self.final_answer}",
            f"Steps: {len(self.steps) - 1} "
            f"(agent={kinds[StepKind.AGENT]}, tool={kinds[StepKind.TOOL]}, error={kinds[StepKind.ERROR]})",
            f"LLM calls: {self.usage.llm_calls}",
            f"Tokens: {self.usage.total_tokens} "
            f"(prompt={self.usage.total_prompt_tokens}, completion={self.usage.total_completion_tokens})",
            f"Latency: {self.usage.total_latency_ms:.0f} ms",
        ]
        if self.timed_out:
            lines.append("Status: timed out")
        return "\n".join(lines)

    def formatted_steps(self) -> str:
        lines: list[str] = []
        for index, step in enumerate(self.steps[1:], start=1):
            lines.append(f"-- Step {index} [{step.kind.value}]")
            lines.append(f"   Thought:  {step.thought}")
            lines.append(f"   Action:   {step.action or '-'}")
            if step.parameter is not None:
                lines.append(f"   Param:    {json.dumps(step.parameter, default=str)}")
            result = step.result if isinstance(step.result, str) else json.dumps(step.result, default=str)
            lines.append(f"   Result:   {result}")
        return "\n".join(lines)
