import logging
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from kine_agent.agent import Agent
from kine_agent.config import DEFAULT_DESCRIPTION, AgentConfig
from kine_agent.errors import ConfigurationError
from kine_agent.models import LLMMessage
from kine_agent.providers import OpenAIProvider

ENV_KEYS = ["LLM_API_KEY", "OPENAI_API_KEY", "LLM_BASE_URL", "LLM_MODEL", "KINE_MAX_STEPS", "KINE_DEBUG"]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    with patch("kine_agent.config.load_dotenv"):
        yield monkeypatch


# ---------------------------------------------------------------------------
# AgentConfig
# ---------------------------------------------------------------------------


def test_defaults():
    config = AgentConfig(id="a", model="m")
    assert config.description == DEFAULT_DESCRIPTION
    assert config.max_steps == 10
    assert config.debug is False


@pytest.mark.parametrize("field", ["id", "model"])
def test_blank_identifiers_rejected(field):
    values = {"id": "a", "model": "m", field: "   "}
    with pytest.raises(ValidationError):
        AgentConfig(**values)


def test_max_steps_must_be_positive():
    with pytest.raises(ValidationError):
        AgentConfig(id="a", model="m", max_steps=0)


def test_from_env_reads_environment(clean_env):
    clean_env.setenv("LLM_API_KEY", "sk-test")
    clean_env.setenv("LLM_BASE_URL", "https://llm.example/v1")
    clean_env.setenv("LLM_MODEL", "env-model")
    clean_env.setenv("KINE_MAX_STEPS", "4")
    clean_env.setenv("KINE_DEBUG", "true")

    config = AgentConfig.from_env(id="env-agent")

    assert config.model == "env-model"
    assert config.api_key == "sk-test"
    assert config.base_url == "https://llm.example/v1"
    assert config.max_steps == 4
    assert config.debug is True


def test_from_env_overrides_win(clean_env):
    clean_env.setenv("LLM_MODEL", "env-model")
    config = AgentConfig.from_env(id="a", model="explicit", max_steps=2)
    assert config.model == "explicit"
    assert config.max_steps == 2


def test_from_env_without_model_fails(clean_env):
    with pytest.raises(ValidationError):
        AgentConfig.from_env(id="a")


# ---------------------------------------------------------------------------
# Provider and Agent wiring
# ---------------------------------------------------------------------------


def test_provider_requires_api_key(clean_env):
    with pytest.raises(ConfigurationError):
        OpenAIProvider()


def test_agent_without_provider_or_key_fails(clean_env):
    with pytest.raises(ConfigurationError):
        Agent(AgentConfig(id="a", model="m"))


def test_openai_provider_maps_response(clean_env):
    completion = MagicMock()
    completion.model = "gpt-test"
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = "<action>finalize</action>"
    completion.choices[0].finish_reason = "stop"
    completion.usage.prompt_tokens = 7
    completion.usage.completion_tokens = 3
    completion.usage.total_tokens = 10

    with patch("kine_agent.providers.OpenAI") as client_cls:
        client_cls.return_value.chat.completions.create.return_value = completion
        provider = OpenAIProvider(api_key="sk-test")
        response = provider.chat_completion(
            [LLMMessage(role="system", content="sys"), LLMMessage(role="user", content="hi")], "gpt-test"
        )

    kwargs = client_cls.return_value.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["messages"] == [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]
    assert response.content == "<action>finalize</action>"
    assert response.finish_reason == "stop"
    assert response.usage.total_tokens == 10


def test_debug_config_raises_logger_level(make_agent):
    agent, _ = make_agent(["<action>finalize</action><final_answer>ok</final_answer>"])
    assert agent.logger.name == "kine_agent.test-agent"

    debug_agent = Agent(AgentConfig(id="dbg", model="m", debug=True), provider=MagicMock())
    assert debug_agent.logger.level == logging.DEBUG


def test_system_prompt_embeds_identity_and_tools(make_agent):
    agent, _ = make_agent(["<action>finalize</action><final_answer>ok</final_answer>"])
    prompt = agent.system_prompt()
    assert "test-agent" in prompt
    assert DEFAULT_DESCRIPTION in prompt
    assert agent.tools_description() in prompt
