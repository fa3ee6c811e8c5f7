"""Hosted OpenAI-compatible Chat Completions adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from hats_agent.errors import InvalidProvider, ParseError
from hats_agent.providers.base import (
    JSON_HEADERS,
    HttpRequest,
    ProviderAdapter,
    load_json,
    serialize_tools,
)
from hats_agent.types import Message, Provider, ProviderConfig, SamplingPolicy, Tool

CHAT_PATH = "/v1/chat/completions"


class _Choice(BaseModel):
    message: Message


class _ChatCompletion(BaseModel):
    choices: list[_Choice]


def build_request(
    config: ProviderConfig,
    messages: Sequence[Message],
    tools: Sequence[Tool] | None,
    sampling: SamplingPolicy,
) -> HttpRequest:
    if config.credential is None:
        raise InvalidProvider("openai provider requires an API key")

    body: dict[str, Any] = {
        "model": config.model,
        "messages": [m.to_wire() for m in messages],
        "temperature": sampling.temperature,
        "top_p": sampling.top_p,
        "seed": sampling.seed,
        "max_tokens": sampling.token_limit(bool(tools)),
        "stream": False,
    }
    if tools:
        body["tools"] = serialize_tools(tools)

    headers = {
        **JSON_HEADERS,
        "Authorization": f"Bearer {config.credential.get_secret_value()}",
    }
    return HttpRequest(path=CHAT_PATH, headers=headers, body=body)


def parse_response(raw_body: str) -> Message:
    data = load_json(raw_body, "OpenAI")
    try:
        completion = _ChatCompletion.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Failed to parse OpenAI response: {exc}") from exc

    if not completion.choices:
        raise ParseError("Failed to parse OpenAI response: no response choices returned")
    return completion.choices[0].message


ADAPTER = ProviderAdapter(Provider.OPENAI, build_request, parse_response)
