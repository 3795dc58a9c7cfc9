import json
import logging
from typing import Any
from unittest.mock import MagicMock

from pydantic import BaseModel

from kine_agent.models import ErrorKind
from kine_agent.registry import (
    FINALIZE_ENTRY,
    NO_TOOLS_MESSAGE,
    ToolRegistry,
    define_tool,
    example_from_schema,
    generate_example,
)
from kine_agent.tools import CalculatorInput, WeatherInput, WeatherOutput, calculator, get_weather

# ---------------------------------------------------------------------------
# Example generation
# ---------------------------------------------------------------------------


def test_example_walks_enum_and_numbers():
    assert generate_example(CalculatorInput) == {"operation": "add", "a": 0, "b": 0}


def test_example_uses_defaults_and_unwraps_optional():
    assert generate_example(WeatherInput) == {"location": "string", "units": "celsius"}
    assert generate_example(WeatherOutput) == {"temperature": 0, "condition": "string", "humidity": 0}


def test_example_resolves_nested_models():
    class Inner(BaseModel):
        flag: bool

    class Outer(BaseModel):
        inner: Inner
        items: list[int]

    assert generate_example(Outer) == {"inner": {"flag": True}, "items": [0]}


def test_unrecognised_schema_node_is_none():
    assert example_from_schema({}) is None
    assert example_from_schema("not a schema") is None


# ---------------------------------------------------------------------------
# describe()
# ---------------------------------------------------------------------------


def test_describe_empty_registry():
    assert ToolRegistry().describe() == NO_TOOLS_MESSAGE


def test_describe_lists_tools_with_examples_and_finalize():
    registry = ToolRegistry()
    registry.register(calculator)
    registry.register(get_weather)

    text = registry.describe()
    assert text.startswith("Available tools:\n")
    assert "  - calculator: Perform basic arithmetic" in text
    assert "  - get_weather: Get current weather" in text
    assert json.dumps({"location": "string", "units": "celsius"}, indent=2) in text
    assert text.endswith(FINALIZE_ENTRY)


def test_describe_is_idempotent():
    registry = ToolRegistry()
    registry.register(calculator)
    assert registry.describe() == registry.describe()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_last_write_wins():
    logger = MagicMock(spec=logging.Logger)
    registry = ToolRegistry(logger=logger)
    first = define_tool("echo", "first", str, str, lambda text: "first")
    second = define_tool("echo", "second", str, str, lambda text: "second")

    registry.register(first)
    registry.register(second)

    assert len(registry) == 1
    assert registry.get("echo").description == "second"
    assert registry.dispatch("echo", "hi").result == "second"
    logger.warning.assert_called_once()


def test_define_tool_as_decorator():
    @define_tool("shout", "Upper-case text", str, str)
    def shout(text: str) -> str:
        return text.upper()

    registry = ToolRegistry()
    registry.register(shout)
    assert "shout" in registry
    assert registry.dispatch("shout", "hey").result == "HEY"


# ---------------------------------------------------------------------------
# dispatch()
# ---------------------------------------------------------------------------


def test_dispatch_unknown_tool():
    registry = ToolRegistry()
    registry.register(calculator)

    outcome = registry.dispatch("nonexistent_tool", {})
    assert outcome.success is False
    assert "Tool not found" in outcome.error
    assert "calculator" in outcome.error
    assert outcome.error_kind == ErrorKind.TOOL_NOT_FOUND


def test_dispatch_round_trip():
    registry = ToolRegistry()
    registry.register(calculator)

    outcome = registry.dispatch("calculator", {"operation": "add", "a": 1, "b": 2})
    assert outcome.success is True
    assert outcome.result == {"result": 3.0, "operation": "1 add 2 = 3"}
    assert outcome.error is None


def test_dispatch_execute_failure_is_reported():
    registry = ToolRegistry()
    registry.register(calculator)

    outcome = registry.dispatch("calculator", {"operation": "divide", "a": 1, "b": 0})
    assert outcome.success is False
    assert "Tool execution failed" in outcome.error
    assert "Division by zero" in outcome.error
    assert outcome.error_kind == ErrorKind.TOOL_EXECUTION_FAILED
    assert outcome.parameter == {"operation": "divide", "a": 1.0, "b": 0.0}


def test_dispatch_input_validation_failure():
    registry = ToolRegistry()
    registry.register(calculator)

    outcome = registry.dispatch("calculator", {"operation": "modulo", "a": 1})
    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.INPUT_VALIDATION_FAILED
    assert "calculator" in outcome.error
    assert outcome.parameter == {"operation": "modulo", "a": 1}


def test_dispatch_output_mismatch_is_execution_failure():
    class Out(BaseModel):
        value: int

    broken = define_tool("broken", "Returns the wrong shape", str, Out, lambda text: {"other": 1})
    registry = ToolRegistry()
    registry.register(broken)

    outcome = registry.dispatch("broken", "x")
    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.TOOL_EXECUTION_FAILED
    assert "Tool execution failed" in outcome.error


class _Opaque:
    pass


def test_dispatch_unserialisable_output_is_execution_failure():
    opaque = define_tool("opaque", "Returns a plain object", Any, Any, lambda params: _Opaque())
    registry = ToolRegistry()
    registry.register(opaque)

    outcome = registry.dispatch("opaque", {})
    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.TOOL_EXECUTION_FAILED
    assert "Tool execution failed" in outcome.error
    assert outcome.parameter == {}


def test_dispatch_unserialisable_input_echoes_raw_parameter():
    raw = _Opaque()
    failing = define_tool("failing", "Always raises", Any, str, MagicMock(side_effect=RuntimeError("boom")))
    registry = ToolRegistry()
    registry.register(failing)

    outcome = registry.dispatch("failing", raw)
    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.TOOL_EXECUTION_FAILED
    assert "boom" in outcome.error
    assert outcome.parameter is raw
