# tracker.py
# Per-run step history, step budget and context-erosion counter.
#
# Steps are kept in a plain list that starts empty; the context-switch
# counter is its own field. The "task started" marker the trace exposes at
# index 0 is synthesised on read by all_steps(), so nothing here has to
# subtract one from the list length.

import json
from typing import Any

from kine_agent.models import PENDING, Step, StepKind, StepMeta, StepOutput

TASK_STARTED = "Agent task started by user"

# Results that mean the loop made no progress this turn. Compared by exact
# equality; formatted error strings that embed detail do not match.
ERODED_RESULTS = frozenset(
    {
        PENDING,
        "Tool not found",
        "Tool execution failed",
        "No action provided",
        "GPT skipped 'action'",
    }
)


def _parameter_lines(parameter: Any) -> str:
    if isinstance(parameter, dict):
        return "\n".join(f"  {key}: {json.dumps(value, default=str)}" for key, value in parameter.items())
    return str(parameter)


def _observation(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=1, default=str)


class StepTracker:
    """Owns the RunState of a single run."""

    def __init__(self, max_steps: int = 10) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._max_steps = max_steps
        self._steps: list[Step] = []
        self._context_switches = 0

    @property
    def max_steps(self) -> int:
        return self._max_steps

    @property
    def context_switches(self) -> int:
        return self._context_switches

    def initialize(self) -> None:
        self._steps = []
        self._context_switches = 0

    def add_step(self, output: StepOutput) -> Step:
        """Record a step, snapshotting the context-switch counter into its meta."""
        step = output.to_step(self._context_switches)
        self._steps.append(step)
        return step

    def past_steps(self) -> list[Step]:
        return list(self._steps)

    def all_steps(self) -> list[Step]:
        """The trace as returned to callers: marker first, then each real step."""
        marker = Step(
            kind=StepKind.AGENT,
            thought=TASK_STARTED,
            action=PENDING,
            meta=StepMeta(context_switches=self._context_switches),
        )
        return [marker, *self._steps]

    def step_count(self) -> int:
        return len(self._steps)

    def has_reached_max(self) -> bool:
        return self.step_count() >= self._max_steps

    def is_eroded(self, step: Step | StepOutput) -> bool:
        return isinstance(step.result, str) and step.result in ERODED_RESULTS

    def increment_context_switches(self) -> None:
        self._context_switches += 1

    def build_history(self) -> list[dict[str, str]]:
        """
        Render past steps as conversation turns.

        Each step with an action becomes an assistant turn (thought, action,
        parameter); each step with a settled result becomes a user turn
        carrying the observation. Error steps are included so the model sees
        why its last turn failed.
        """
        history: list[dict[str, str]] = []
        for step in self._steps:
            if step.action:
                content = f"thought: {step.thought}\naction: {step.action}\n"
                if step.parameter:
                    content += f"parameter:\n{_parameter_lines(step.parameter)}\n"
                history.append({"role": "assistant", "content": content})
            if step.result is not None and step.result != PENDING:
                history.append({"role": "user", "content": f"observation: {_observation(step.result)}"})
        return history
