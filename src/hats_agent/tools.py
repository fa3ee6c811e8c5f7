"""Tool catalog advertised to the model and local tool execution."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr, ValidationError

from hats_agent.errors import ToolArgumentError, ToolExecutionError
from hats_agent.types import Tool, ToolCall, ToolFunction

logger = logging.getLogger(__name__)

Number = StrictInt | StrictFloat


def calculator() -> Tool:
    """Basic arithmetic on two numbers."""
    return Tool(
        function=ToolFunction(
            name="calculator",
            description="A simple calculator function for arithmetic operations",
            parameters={
                "type": "object",
                "properties": {
                    "operation": {
                        "type": "string",
                        "enum": ["add", "subtract", "multiply", "divide"],
                    },
                    "a": {"type": "number"},
                    "b": {"type": "number"},
                },
                "required": ["operation", "a", "b"],
            },
        )
    )


TOOL_CATALOG: Mapping[str, Tool] = MappingProxyType({t.name: t for t in (calculator(),)})


def available_tools() -> list[Tool]:
    return list(TOOL_CATALOG.values())


class CalculatorArguments(BaseModel):
    operation: StrictStr
    a: Number
    b: Number


def execute_tool_call(call: ToolCall) -> str:
    """Execute a tool call locally and return its textual result.

    Unknown tools produce a plain message instead of an error so the model can
    still answer.
    """
    handler = _HANDLERS.get(call.function.name)
    if handler is None:
        logger.warning("Model requested unknown tool %r", call.function.name)
        return f"Unknown tool: {call.function.name}"
    return handler(call)


def _execute_calculator(call: ToolCall) -> str:
    args = _parse_arguments(call)
    a, b = _as_float(args.a, "a"), _as_float(args.b, "b")

    if args.operation == "add":
        result = a + b
    elif args.operation == "subtract":
        result = a - b
    elif args.operation == "multiply":
        result = a * b
    elif args.operation == "divide":
        if b == 0:
            raise ToolExecutionError("Division by zero")
        result = a / b
    else:
        raise ToolExecutionError(f"Unsupported operation: {args.operation}")

    return f"The result of {_fmt(a)} {args.operation} {_fmt(b)} is {_fmt(result)}"


def _as_float(value: int | float, field: str) -> float:
    try:
        return float(value)
    except OverflowError as exc:
        raise ToolArgumentError(
            f"Failed to parse calculator arguments: parameter {field} must be a finite number"
        ) from exc


def _parse_arguments(call: ToolCall) -> CalculatorArguments:
    try:
        return CalculatorArguments.model_validate_json(call.function.arguments)
    except ValidationError as exc:
        raise ToolArgumentError(_describe(call.function.name, exc)) from exc


def _describe(tool: str, exc: ValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        # union members add a suffix to loc; only the field name matters here
        field = str(error["loc"][0]) if error["loc"] else None
        if error["type"] == "json_invalid":
            problem = f"malformed JSON ({error['msg']})"
        elif field is None:
            problem = error["msg"]
        elif error["type"] == "missing":
            problem = f"missing parameter {field}"
        else:
            problem = f"parameter {field} must be a number" if field in ("a", "b") else f"invalid parameter {field}"
        if problem not in problems:
            problems.append(problem)
    return f"Failed to parse {tool} arguments: " + "; ".join(problems)


def _fmt(value: float) -> str:
    # 4.0 -> "4"
    return str(int(value)) if value.is_integer() else repr(value)


_HANDLERS: Mapping[str, Callable[[ToolCall], str]] = MappingProxyType({"calculator": _execute_calculator})
