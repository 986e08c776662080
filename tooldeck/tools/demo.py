"""Demo tools served by ``tooldeck serve`` when no registry is given."""

import asyncio
from typing import Literal

from pydantic import BaseModel, Field

from tooldeck.tools.definition import tool
from tooldeck.tools.registry import ToolRegistry


class WeatherInput(BaseModel):
    city: str = Field(min_length=1)


class WeatherOutput(BaseModel):
    city: str
    temp: float
    condition: str


class CalculatorInput(BaseModel):
    a: float
    b: float
    op: Literal["add", "sub", "mul", "div"] = "add"


class CalculatorOutput(BaseModel):
    result: float


class CounterInput(BaseModel):
    upto: int = Field(ge=1, le=100)


class CounterOutput(BaseModel):
    count: int


class DeleteItemInput(BaseModel):
    item_id: str = Field(min_length=1)


class DeleteItemOutput(BaseModel):
    deleted: str


_CONDITIONS = ("sunny", "cloudy", "rainy", "windy")


def _weather(inp: WeatherInput, ctx) -> dict:
    # Deterministic stand-in for a real provider
    seed = sum(ord(c) for c in inp.city.lower())
    return {
        "city": inp.city,
        "temp": float(seed % 35),
        "condition": _CONDITIONS[seed % len(_CONDITIONS)],
    }


def _calculate(inp: CalculatorInput, ctx) -> dict:
    if inp.op == "add":
        return {"result": inp.a + inp.b}
    if inp.op == "sub":
        return {"result": inp.a - inp.b}
    if inp.op == "mul":
        return {"result": inp.a * inp.b}
    if inp.b == 0:
        raise ZeroDivisionError("division by zero")
    return {"result": inp.a / inp.b}


async def _count(inp: CounterInput, ctx) -> dict:
    for i in range(1, inp.upto):
        ctx.stream({"count": i})
        await asyncio.sleep(0)
    return {"count": inp.upto}


def _delete_item(inp: DeleteItemInput, ctx) -> dict:
    return {"deleted": inp.item_id}


weather = (
    tool("weather")
    .description("Get the current weather for a city")
    .input(WeatherInput)
    .output(WeatherOutput)
    .tags("weather", "read")
    .hints(read_only=True, idempotent=True)
    .cache(ttl=60.0, key=lambda inp: f"weather:{inp.city.lower()}")
    .group_by(lambda inp: inp.city.lower())
    .server(_weather)
    .build()
)

calculator = (
    tool("calculator")
    .description("Basic arithmetic on two numbers")
    .input(CalculatorInput)
    .output(CalculatorOutput)
    .tags("math")
    .hints(read_only=True, idempotent=True)
    .server(_calculate)
    .client(_calculate)
    .build()
)

counter_stream = (
    tool("counter_stream")
    .description("Count up to a number, streaming each step")
    .input(CounterInput)
    .output(CounterOutput)
    .tags("demo", "stream")
    .stream(_count)
    .build()
)

delete_item = (
    tool("delete_item")
    .description("Delete an item by id")
    .input(DeleteItemInput)
    .output(DeleteItemOutput)
    .tags("admin")
    .hints(destructive=True)
    .server(_delete_item)
    .build()
)


def demo_registry() -> ToolRegistry:
    return ToolRegistry([weather, calculator, counter_stream, delete_item])
