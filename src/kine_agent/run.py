# run.py
# Demo entry point. Builds an agent from the environment and streams a few prompts.
#
# Reads LLM_API_KEY / LLM_BASE_URL / LLM_MODEL from the environment or .env.

import logging
import os

from dotenv import load_dotenv

from kine_agent import display
from kine_agent.agent import Agent
from kine_agent.config import AgentConfig
from kine_agent.memory import SimpleMemory
from kine_agent.tools import SAMPLE_TOOLS

load_dotenv()

DEFAULT_MODEL = "gpt-4o-mini"

PROMPTS = [
    # Direct answer, no tools.
    "Introduce yourself in one sentence.",
    # One tool call, then finalize.
    "What's the weather in Jakarta in celsius?",
    # Tool failure the model has to recover from.
    "Divide 10 by 0 with the calculator, and if that fails explain why.",
]


def main() -> None:
    config = AgentConfig.from_env(id="kine-demo", model=os.getenv("LLM_MODEL", DEFAULT_MODEL))
    display.configure_logging(logging.DEBUG if config.debug else logging.INFO)

    agent = Agent(config, tools=SAMPLE_TOOLS, memory=SimpleMemory(max_messages=100, max_steps=50))

    for prompt in PROMPTS:
        display.console.rule(f"[cyan]{prompt}[/cyan]")
        stream = agent.run_streaming(prompt)
        number = 0
        while True:
            try:
                step = next(stream)
            except StopIteration as stop:
                display.final_result(stop.value)
                break
            number += 1
            display.step(step, number)


if __name__ == "__main__":
    main()
