# agent.py
# Public entry point. Assembles the loop and owns one logger per instance.

import logging
from collections.abc import Generator, Iterable

from kine_agent.config import AgentConfig
from kine_agent.conversation import ConversationOrchestrator
from kine_agent.formatter import ResponseFormatter, TaggedResponseFormatter
from kine_agent.loop import ExecutionLoop, StepExecutor
from kine_agent.memory import BaseMemory
from kine_agent.models import RunResult, Step
from kine_agent.prompts import build_system_prompt
from kine_agent.providers import LLMProvider, OpenAIProvider
from kine_agent.registry import Tool, ToolRegistry
from kine_agent.tracker import StepTracker


class Agent:
    """
    A tool-using agent running a ReAct loop over a tagged text protocol.

    Example:
        agent = Agent(AgentConfig(id="weather", model="gpt-4o-mini"), tools=[get_weather])
        result = agent.run("What's the weather in Paris?")
        print(result.final_answer)

    A single Agent is not safe to run concurrently: its tracker and registry
    belong to one run at a time.
    """

    def __init__(
        self,
        config: AgentConfig,
        provider: LLMProvider | None = None,
        tools: Iterable[Tool] = (),
        memory: BaseMemory | None = None,
        formatter: ResponseFormatter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(f"kine_agent.{config.id}")
        if config.debug:
            self.logger.setLevel(logging.DEBUG)

        self.provider = provider or OpenAIProvider(api_key=config.api_key, base_url=config.base_url)
        self.registry = ToolRegistry(logger=self.logger)
        self.memory = memory

        self._orchestrator = ConversationOrchestrator(
            StepTracker(config.max_steps), memory=memory, logger=self.logger
        )
        self._executor = StepExecutor(
            provider=self.provider,
            formatter=formatter or TaggedResponseFormatter(),
            registry=self.registry,
            orchestrator=self._orchestrator,
            model=config.model,
            logger=self.logger,
        )
        self._loop = ExecutionLoop(self._orchestrator, self._executor)

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: Tool) -> None:
        self.registry.register(tool)

    def tools_description(self) -> str:
        return self.registry.describe()

    def system_prompt(self) -> str:
        return build_system_prompt(self.config.id, self.config.description, self.tools_description())

    def run(self, prompt: str) -> RunResult:
        return self._loop.execute(self.system_prompt(), prompt)

    def run_streaming(self, prompt: str) -> Generator[Step, None, RunResult]:
        """Yield steps as they are recorded; returns the RunResult."""
        return (yield from self._loop.execute_streaming(self.system_prompt(), prompt))
