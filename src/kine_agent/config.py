# config.py
# Agent configuration. Values come from code, or from the environment
# (and a .env file) via AgentConfig.from_env().

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_DESCRIPTION = "AI Agent built with Kine"


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class AgentConfig(BaseModel):
    id: str = Field(..., description="Agent identifier, shown to the model and used in log names.")
    model: str = Field(..., description="Model identifier passed to the provider.")
    description: str = DEFAULT_DESCRIPTION
    api_key: str | None = None
    base_url: str | None = None
    max_steps: int = Field(default=10, ge=1)
    debug: bool = False

    @field_validator("id", "model")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> "AgentConfig":
        """
        Build a config from LLM_API_KEY, LLM_BASE_URL, LLM_MODEL,
        KINE_MAX_STEPS and KINE_DEBUG. Keyword overrides win.
        """
        load_dotenv()

        values: dict[str, Any] = {
            "api_key": os.getenv("LLM_API_KEY"),
            "base_url": os.getenv("LLM_BASE_URL"),
            "debug": _env_flag(os.getenv("KINE_DEBUG")),
        }
        if os.getenv("LLM_MODEL"):
            values["model"] = os.getenv("LLM_MODEL")
        if os.getenv("KINE_MAX_STEPS"):
            values["max_steps"] = os.getenv("KINE_MAX_STEPS")

        values.update(overrides)
        return cls.model_validate(values)
