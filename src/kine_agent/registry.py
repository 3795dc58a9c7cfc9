# registry.py
# Tool registry and dispatcher.
#
# Tools are declarative: a name, a description, pydantic-adaptable input and
# output schemas, and an execute callable. The registry advertises them to
# the model (with example payloads generated from the schemas) and runs the
# validate → execute → validate pipeline for each requested call.
#
# Dispatch never raises. Every failure comes back as a DispatchResult so the
# loop can echo it to the model as an observation.

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError
from pydantic_core import PydanticSerializationError

from kine_agent.models import DispatchResult, ErrorKind

NO_TOOLS_MESSAGE = "No tools available. Use 'finalize' to answer."
FINALIZE_ENTRY = "  - finalize: End task and provide final answer"
EXAMPLE_UNAVAILABLE = "Unable to generate example"


class Tool(BaseModel):
    """A named, schema-validated capability the model may invoke."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique key in the registry.")
    description: str = Field(..., description="Shown to the model in the tools list.")
    input_schema: Any = Field(..., description="Type the parameter is validated against.")
    output_schema: Any = Field(..., description="Type the execute result is validated against.")
    execute: Callable[[Any], Any] = Field(..., description="Receives the validated input.")


def define_tool(
    name: str,
    description: str,
    input_schema: Any,
    output_schema: Any,
    execute: Callable[[Any], Any] | None = None,
):
    """
    Build a Tool. Without *execute*, returns a decorator instead:

        @define_tool("get_weather", "Current weather", WeatherIn, WeatherOut)
        def get_weather(params: WeatherIn) -> WeatherOut: ...
    """
    if execute is not None:
        return Tool(
            name=name,
            description=description,
            input_schema=input_schema,
            output_schema=output_schema,
            execute=execute,
        )

    def decorator(fn: Callable[[Any], Any]) -> Tool:
        return define_tool(name, description, input_schema, output_schema, fn)

    return decorator


# ---------------------------------------------------------------------------
# Example generation
# ---------------------------------------------------------------------------


def _resolve_ref(ref: str, defs: dict[str, Any]) -> Any:
    # pydantic only emits local refs of the form "#/$defs/Name"
    return defs.get(ref.rsplit("/", 1)[-1])


def example_from_schema(node: Any, defs: dict[str, Any] | None = None) -> Any:
    """Walk a JSON schema node and produce one representative value."""
    defs = defs or {}
    if not isinstance(node, dict):
        return None

    if "$ref" in node:
        return example_from_schema(_resolve_ref(node["$ref"], defs), defs)

    if node.get("default") is not None:
        return node["default"]

    if "const" in node:
        return node["const"]

    if node.get("enum"):
        return node["enum"][0]

    for key in ("anyOf", "oneOf", "allOf"):
        variants = node.get(key)
        if variants:
            non_null = [v for v in variants if v.get("type") != "null"]
            return example_from_schema(non_null[0] if non_null else variants[0], defs)

    kind = node.get("type")
    if kind == "object":
        return {
            field: example_from_schema(sub, defs)
            for field, sub in node.get("properties", {}).items()
        }
    if kind == "array":
        return [example_from_schema(node.get("items"), defs)]
    if kind == "string":
        return "string"
    if kind in ("number", "integer"):
        return 0
    if kind == "boolean":
        return True

    return None


def generate_example(schema: Any) -> Any:
    json_schema = TypeAdapter(schema).json_schema()
    return example_from_schema(json_schema, json_schema.get("$defs", {}))


def tool_metadata(tool: Tool) -> dict[str, str]:
    try:
        input_example = json.dumps(generate_example(tool.input_schema), indent=2)
        output_example = json.dumps(generate_example(tool.output_schema), indent=2)
    except (PydanticUserError, TypeError, ValueError):
        input_example = output_example = EXAMPLE_UNAVAILABLE

    return {
        "name": tool.name,
        "description": tool.description,
        "input_example": input_example,
        "output_example": output_example,
    }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """
    Holds tools by name and dispatches calls to them.

    Example:
        registry = ToolRegistry()
        registry.register(calculator)
        outcome = registry.dispatch("calculator", {"operation": "add", "a": 1, "b": 2})
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._adapters: dict[str, tuple[TypeAdapter, TypeAdapter]] = {}
        self._logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Registration and lookup
    # ------------------------------------------------------------------

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            self._logger.warning("Tool '%s' already registered, overwriting", tool.name)
        self._tools[tool.name] = tool
        self._adapters[tool.name] = (TypeAdapter(tool.input_schema), TypeAdapter(tool.output_schema))
        self._logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def describe(self) -> str:
        """Human-readable tool list for the system prompt."""
        if not self._tools:
            return NO_TOOLS_MESSAGE

        entries = []
        for tool in self._tools.values():
            meta = tool_metadata(tool)
            entries.append(
                f"  - {tool.name}: {tool.description}\n"
                f"    Input example: {meta['input_example']}\n"
                f"    Output example: {meta['output_example']}"
            )
        entries.append(FINALIZE_ENTRY)
        return "Available tools:\n" + "\n".join(entries)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, name: str, parameter: Any) -> DispatchResult:
        tool = self._tools.get(name)
        if tool is None:
            available = ", ".join(self._tools) or "none"
            return DispatchResult(
                success=False,
                error=f"Tool not found: {name}. Available: {available}",
                error_kind=ErrorKind.TOOL_NOT_FOUND,
                parameter=parameter,
            )

        input_adapter, output_adapter = self._adapters[name]

        try:
            validated_input = input_adapter.validate_python(parameter)
        except ValidationError as exc:
            self._logger.warning("Input validation failed for tool '%s': %s", name, exc)
            return DispatchResult(
                success=False,
                error=(
                    f"Invalid input for tool '{name}': {exc}. "
                    "Please try again with parameters matching the input example."
                ),
                error_kind=ErrorKind.INPUT_VALIDATION_FAILED,
                parameter=parameter,
            )

        try:
            echoed = input_adapter.dump_python(validated_input, mode="json")
        except PydanticSerializationError:
            echoed = parameter

        try:
            raw_output = tool.execute(validated_input)
            validated_output = output_adapter.validate_python(raw_output)
            result = output_adapter.dump_python(validated_output, mode="json")
        except Exception as exc:
            self._logger.warning("Tool '%s' failed: %s", name, exc)
            return DispatchResult(
                success=False,
                error=f"Tool execution failed: {exc}. Please try again with different parameters.",
                error_kind=ErrorKind.TOOL_EXECUTION_FAILED,
                parameter=echoed,
            )

        return DispatchResult(success=True, result=result)
