# loop.py
# The THINK → ACT → OBSERVE state machine.
#
# One iteration:
#   compose messages → LLM call → parse → validate
#   → (dispatch tool | finalize) → record step → termination check
#
# Parse, validation and dispatch failures become error steps and cost one
# step of the budget. Provider exceptions are not caught: they abort the run.

import logging
import time
from collections.abc import Generator

from kine_agent.conversation import ConversationOrchestrator
from kine_agent.errors import MalformedResponseError
from kine_agent.formatter import ResponseFormatter
from kine_agent.metadata import aggregate_usage
from kine_agent.models import (
    FINALIZE,
    CallMetadata,
    LLMMessage,
    RunResult,
    Step,
    StepKind,
    StepOutput,
)
from kine_agent.providers import LLMProvider
from kine_agent.registry import ToolRegistry

TIMEOUT_MESSAGE = "Agent timed out (max {max_steps} steps)."


class StepExecutor:
    """Runs a single iteration and returns its StepOutput."""

    def __init__(
        self,
        provider: LLMProvider,
        formatter: ResponseFormatter,
        registry: ToolRegistry,
        orchestrator: ConversationOrchestrator,
        model: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self.provider = provider
        self.formatter = formatter
        self.registry = registry
        self.orchestrator = orchestrator
        self.model = model
        self._logger = logger or logging.getLogger(__name__)

    def execute_step(self, system_prompt: str, task: str) -> StepOutput:
        messages = self.prepare_messages(system_prompt, task)
        content, call = self._call_llm(messages)
        output = self._parse_and_validate(content, call)

        if output.kind == StepKind.TOOL and output.action:
            return self._execute_tool(output)
        return output

    def prepare_messages(self, system_prompt: str, task: str) -> list[LLMMessage]:
        messages = [LLMMessage(role="system", content=system_prompt)]
        messages.extend(LLMMessage.model_validate(m) for m in self.orchestrator.memory_history())
        messages.append(LLMMessage(role="user", content=task))
        messages.extend(LLMMessage.model_validate(m) for m in self.orchestrator.build_history())
        return messages

    def _call_llm(self, messages: list[LLMMessage]) -> tuple[str, CallMetadata]:
        started = time.perf_counter()
        response = self.provider.chat_completion(messages, self.model)
        latency_ms = (time.perf_counter() - started) * 1000

        self._logger.debug("Raw LLM response (%s): %s", response.model, response.content)

        call = CallMetadata(
            latency_ms=latency_ms,
            model=response.model,
            tokens=response.usage,
            finish_reason=response.finish_reason,
        )
        return response.content, call

    def _parse_and_validate(self, content: str, call: CallMetadata) -> StepOutput:
        try:
            parsed = self.formatter.parse(content, self.registry.names())
        except MalformedResponseError as exc:
            self._logger.warning("Could not parse LLM response: %s", exc)
            return self.formatter.format_error(exc, call=call)

        self._logger.debug("Parsed LLM response action=%s", parsed.action)
        validation = self.formatter.validate(parsed)
        return self.formatter.to_step_output(parsed, validation, call)

    def _execute_tool(self, output: StepOutput) -> StepOutput:
        outcome = self.registry.dispatch(output.action, output.parameter)

        if outcome.success:
            return output.model_copy(update={"result": outcome.result})

        return output.model_copy(
            update={
                "kind": StepKind.ERROR,
                "result": outcome.error,
                "error_kind": outcome.error_kind,
                "parameter": outcome.parameter if outcome.parameter is not None else output.parameter,
            }
        )


class ExecutionLoop:
    """Drives StepExecutor until the model finalizes or the budget runs out."""

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        step_executor: StepExecutor,
    ) -> None:
        self.orchestrator = orchestrator
        self.step_executor = step_executor

    def execute(self, system_prompt: str, prompt: str) -> RunResult:
        stream = self.execute_streaming(system_prompt, prompt)
        while True:
            try:
                next(stream)
            except StopIteration as stop:
                return stop.value

    def execute_streaming(self, system_prompt: str, prompt: str) -> Generator[Step, None, RunResult]:
        """
        Yield each recorded step as soon as it is recorded.

        The generator's return value (StopIteration.value) is the RunResult.
        No work happens ahead of the consumer's next pull.
        """
        orchestrator = self.orchestrator
        orchestrator.initialize()
        orchestrator.add_user_message(prompt)

        final_answer: str | None = None

        while not orchestrator.has_reached_max():
            output = self.step_executor.execute_step(system_prompt, prompt)
            step = orchestrator.add_step(output)

            yield step

            if step.action == FINALIZE:
                final_answer = str(step.result)
                orchestrator.log_finalization(final_answer)
                break

            if orchestrator.is_eroded(step):
                orchestrator.increment_context_switches()

        timed_out = final_answer is None
        if timed_out:
            orchestrator.log_timeout()
            final_answer = TIMEOUT_MESSAGE.format(max_steps=orchestrator.max_steps())

        orchestrator.add_assistant_message(final_answer)

        steps = orchestrator.all_steps()
        return RunResult(
            final_answer=final_answer,
            steps=tuple(steps),
            usage=aggregate_usage(steps),
            timed_out=timed_out,
        )
