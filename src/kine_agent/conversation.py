# conversation.py
# Binds the step tracker to the optional conversation memory.
#
# The memory history sent to the model is captured once per run, right after
# the prompt is posted. Steps of the current run reach the model through the
# tracker's history only, so they are never sent twice.

import logging
from typing import Any

from kine_agent.memory import BaseMemory
from kine_agent.models import Step, StepOutput
from kine_agent.tracker import StepTracker


class ConversationOrchestrator:
    def __init__(
        self,
        tracker: StepTracker,
        memory: BaseMemory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.tracker = tracker
        self.memory = memory
        self._logger = logger or logging.getLogger(__name__)
        self._memory_history: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        self.tracker.initialize()
        self._memory_history = []

    def add_user_message(self, prompt: str) -> None:
        if self.memory is None:
            return
        self.memory.add_message("user", prompt)
        self._memory_history = self.filter_duplicate_messages(self.memory.to_conversation_history(), prompt)

    def add_assistant_message(self, response: str) -> None:
        if self.memory is not None:
            self.memory.add_message("assistant", response)

    def add_step(self, output: StepOutput) -> Step:
        step = self.tracker.add_step(output)
        if self.memory is not None:
            self.memory.add_step(step, self.tracker.step_count())
        self._logger.debug(
            "Step %d: kind=%s action=%s thought=%s",
            self.tracker.step_count(),
            step.kind.value,
            step.action,
            step.thought,
        )
        return step

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @staticmethod
    def filter_duplicate_messages(messages: list[dict[str, Any]], task: str) -> list[dict[str, Any]]:
        """Drop user turns repeating the task; it is sent separately."""
        return [m for m in messages if not (m.get("role") == "user" and m.get("content") == task)]

    def memory_history(self) -> list[dict[str, Any]]:
        return list(self._memory_history)

    def build_history(self) -> list[dict[str, str]]:
        return self.tracker.build_history()

    # ------------------------------------------------------------------
    # Tracker delegation
    # ------------------------------------------------------------------

    def all_steps(self) -> list[Step]:
        return self.tracker.all_steps()

    def step_count(self) -> int:
        return self.tracker.step_count()

    def max_steps(self) -> int:
        return self.tracker.max_steps

    def has_reached_max(self) -> bool:
        return self.tracker.has_reached_max()

    def is_eroded(self, step: Step) -> bool:
        return self.tracker.is_eroded(step)

    def increment_context_switches(self) -> None:
        self.tracker.increment_context_switches()

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log_finalization(self, answer: str) -> None:
        self._logger.debug("Finalized: %s", answer)

    def log_timeout(self) -> None:
        self._logger.info("Agent execution reached maximum step limit (%d)", self.tracker.max_steps)
