# formatter.py
# Response formatters: parse → validate → StepOutput.
#
# The execution loop only talks to the ResponseFormatter interface, so the
# wire protocol the model speaks can change without touching the loop.

from abc import ABC, abstractmethod
from collections.abc import Iterable

from kine_agent.models import (
    FINALIZE,
    PENDING,
    CallMetadata,
    ErrorKind,
    ParsedDecision,
    StepKind,
    StepOutput,
    ValidationResult,
)
from kine_agent.parser import parse_plain_text_response, parse_tagged_response

MISSING_ACTION_MESSAGE = (
    "LLM response missing 'action' tag. Every response must include "
    "<action>tool_name</action> or <action>finalize</action>."
)
EMPTY_FINAL_ANSWER_MESSAGE = (
    "final_answer cannot be empty. Provide a substantive response with <final_answer> tag."
)
MALFORMED_RESPONSE_CONTEXT = "Invalid response format"


class ResponseFormatter(ABC):
    """Capability interface the execution loop depends on."""

    @abstractmethod
    def parse(self, raw: str, tool_names: Iterable[str] = ()) -> ParsedDecision:
        ...

    def validate(self, parsed: ParsedDecision) -> ValidationResult:
        if not parsed.action or not parsed.action.strip():
            return ValidationResult(
                valid=False,
                error_kind=ErrorKind.MISSING_ACTION,
                error=MISSING_ACTION_MESSAGE,
            )

        if parsed.action == FINALIZE and not (parsed.final_answer or "").strip():
            return ValidationResult(
                valid=False,
                error_kind=ErrorKind.EMPTY_FINAL_ANSWER,
                error=EMPTY_FINAL_ANSWER_MESSAGE,
            )

        return ValidationResult(valid=True)

    def to_step_output(
        self,
        parsed: ParsedDecision,
        validation: ValidationResult,
        call: CallMetadata | None = None,
    ) -> StepOutput:
        if not validation.valid:
            return StepOutput(
                kind=StepKind.ERROR,
                thought=parsed.thought or "Validation error",
                action=parsed.action,
                parameter=parsed.parameter,
                result=validation.error,
                error_kind=validation.error_kind,
                call=call,
            )

        if parsed.action == FINALIZE:
            return StepOutput(
                kind=StepKind.AGENT,
                thought=parsed.thought or "",
                action=FINALIZE,
                parameter=parsed.parameter,
                result=parsed.final_answer,
                call=call,
            )

        return StepOutput(
            kind=StepKind.TOOL,
            thought=parsed.thought or "",
            action=parsed.action,
            parameter=parsed.parameter,
            result=PENDING,
            call=call,
        )

    def format_error(
        self,
        error: Exception | str,
        context: str = MALFORMED_RESPONSE_CONTEXT,
        call: CallMetadata | None = None,
    ) -> StepOutput:
        """Error step for content that could not be parsed at all."""
        return StepOutput(
            kind=StepKind.ERROR,
            thought=context,
            result=(
                f"{context}: {error}. Respond again using the <thought>, <action>, "
                "<parameter> and <final_answer> tags."
            ),
            error_kind=ErrorKind.MALFORMED_RESPONSE,
            call=call,
        )


class TaggedResponseFormatter(ResponseFormatter):
    """Tag-delimited protocol with a plain-text fallback."""

    def parse(self, raw: str, tool_names: Iterable[str] = ()) -> ParsedDecision:
        return parse_tagged_response(raw, tool_names)


class PlainTextResponseFormatter(ResponseFormatter):
    """Keyword heuristic only, for models that ignore the tag protocol."""

    def parse(self, raw: str, tool_names: Iterable[str] = ()) -> ParsedDecision:
        return parse_plain_text_response(raw, tool_names)
