# tools.py
# Sample tools. Deterministic, no network, usable in demos and tests.

from typing import Literal

from pydantic import BaseModel, Field

from kine_agent.registry import define_tool


class CalculatorInput(BaseModel):
    operation: Literal["add", "subtract", "multiply", "divide"]
    a: float
    b: float


class CalculatorOutput(BaseModel):
    result: float
    operation: str


def _calculate(params: CalculatorInput) -> CalculatorOutput:
    a, b = params.a, params.b
    if params.operation == "add":
        result = a + b
    elif params.operation == "subtract":
        result = a - b
    elif params.operation == "multiply":
        result = a * b
    else:
        if b == 0:
            raise ZeroDivisionError("Division by zero is not allowed")
        result = a / b
    return CalculatorOutput(result=result, operation=f"{a:g} {params.operation} {b:g} = {result:g}")


calculator = define_tool(
    "calculator",
    "Perform basic arithmetic operations (add, subtract, multiply, divide)",
    CalculatorInput,
    CalculatorOutput,
    _calculate,
)


class WeatherInput(BaseModel):
    location: str = Field(..., description="City name")
    units: Literal["celsius", "fahrenheit"] = "celsius"


class WeatherOutput(BaseModel):
    temperature: float
    condition: str
    humidity: float | None = None


_CONDITIONS = ["sunny", "cloudy", "rainy", "partly cloudy", "overcast"]


@define_tool("get_weather", "Get current weather information for a location", WeatherInput, WeatherOutput)
def get_weather(params: WeatherInput) -> WeatherOutput:
    # Stable per location so repeated calls agree.
    seed = sum(ord(ch) for ch in params.location.lower())
    base = 22 if params.units == "celsius" else 72
    return WeatherOutput(
        temperature=base + seed % 11 - 5,
        condition=_CONDITIONS[seed % len(_CONDITIONS)],
        humidity=40 + seed % 41,
    )


SAMPLE_TOOLS = [calculator, get_weather]
