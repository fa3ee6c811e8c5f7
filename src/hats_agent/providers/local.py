"""Local model server (Ollama chat API) adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from hats_agent.errors import ApiError, ParseError
from hats_agent.providers.base import (
    JSON_HEADERS,
    HttpRequest,
    ProviderAdapter,
    load_json,
    serialize_tools,
)
from hats_agent.types import (
    Message,
    Provider,
    ProviderConfig,
    Role,
    SamplingPolicy,
    Tool,
    ToolCall,
    ToolCallFunction,
)

CHAT_PATH = "/api/chat"


class _LocalFunction(BaseModel):
    name: str
    arguments: dict[str, Any] | str = "{}"


class _LocalToolCall(BaseModel):
    id: str | None = None
    function: _LocalFunction


class _LocalMessage(BaseModel):
    role: Role = "assistant"
    content: str | None = None
    tool_calls: list[_LocalToolCall] | None = None


class _SuccessEnvelope(BaseModel):
    message: _LocalMessage


class _ErrorEnvelope(BaseModel):
    error: str


def build_request(
    config: ProviderConfig,
    messages: Sequence[Message],
    tools: Sequence[Tool] | None,
    sampling: SamplingPolicy,
) -> HttpRequest:
    body: dict[str, Any] = {
        "model": config.model,
        "messages": [_serialize_message(m) for m in messages],
        "stream": False,
        "options": {
            "temperature": sampling.temperature,
            "top_p": sampling.top_p,
            "seed": sampling.seed,
            "num_ctx": sampling.num_ctx,
            "num_predict": sampling.token_limit(bool(tools)),
        },
    }
    # Best effort: models without tool support ignore this field.
    if tools:
        body["tools"] = serialize_tools(tools)
    return HttpRequest(path=CHAT_PATH, headers=dict(JSON_HEADERS), body=body)


def parse_response(raw_body: str) -> Message:
    data = load_json(raw_body, "local model")

    # First matching envelope wins.
    try:
        success = _SuccessEnvelope.model_validate(data)
    except ValidationError:
        success = None
    if success is not None:
        return _to_message(success.message)

    try:
        failure = _ErrorEnvelope.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Failed to parse local model response: {exc}") from exc
    raise ApiError(None, failure.error)


def _serialize_message(message: Message) -> dict[str, Any]:
    payload = message.to_wire()
    # The chat API takes tool-call arguments as objects, not JSON strings.
    for call in payload.get("tool_calls", ()):
        call["function"]["arguments"] = _decode_arguments(call["function"]["arguments"])
    return payload


def _decode_arguments(arguments: str) -> Any:
    try:
        return json.loads(arguments)
    except ValueError:
        # forwarded verbatim, as the model produced them
        return arguments


def _to_message(message: _LocalMessage) -> Message:
    tool_calls = None
    if message.tool_calls:
        tool_calls = [
            ToolCall(
                id=call.id or f"call_{index}",
                function=ToolCallFunction(
                    name=call.function.name,
                    arguments=(
                        call.function.arguments
                        if isinstance(call.function.arguments, str)
                        else json.dumps(call.function.arguments)
                    ),
                ),
            )
            for index, call in enumerate(message.tool_calls)
        ]
    return Message(role=message.role, content=message.content, tool_calls=tool_calls)


ADAPTER = ProviderAdapter(Provider.LOCAL, build_request, parse_response)
