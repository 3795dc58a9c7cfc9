import pytest

from kine_agent.agent import Agent
from kine_agent.config import AgentConfig
from kine_agent.models import LLMResponse, TokenUsage
from kine_agent.providers import LLMProvider
from kine_agent.tools import SAMPLE_TOOLS


class ScriptedProvider(LLMProvider):
    """Replays canned replies in order; the last one repeats once exhausted."""

    def __init__(self, replies, usage=None):
        self.replies = list(replies)
        self.usage = usage if usage is not None else TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        self.calls = []

    def chat_completion(self, messages, model):
        self.calls.append(list(messages))
        content = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return LLMResponse(content=content, model=model, usage=self.usage, finish_reason="stop")


@pytest.fixture
def make_agent():
    def _make(replies, max_steps=5, tools=SAMPLE_TOOLS, memory=None, usage=None):
        provider = ScriptedProvider(replies, usage=usage)
        config = AgentConfig(id="test-agent", model="test-model", max_steps=max_steps)
        agent = Agent(config, provider=provider, tools=tools, memory=memory)
        return agent, provider

    return _make
