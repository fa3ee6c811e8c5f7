"""Hosted Anthropic-compatible Messages API adapter.

First-iteration design: the conversation is flattened into a single user turn
with system text hoisted into ``system``. Multi-turn history and tools are not
sent to this provider.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from hats_agent.errors import InvalidProvider, ParseError
from hats_agent.providers.base import JSON_HEADERS, HttpRequest, ProviderAdapter, load_json
from hats_agent.types import Message, Provider, ProviderConfig, Role, SamplingPolicy, Tool

MESSAGES_PATH = "/v1/messages"
API_VERSION = "2023-06-01"

logger = logging.getLogger(__name__)


class _ContentBlock(BaseModel):
    type: str = "text"
    text: str | None = None


class _MessagesResponse(BaseModel):
    role: Role = "assistant"
    content: list[_ContentBlock]


def build_request(
    config: ProviderConfig,
    messages: Sequence[Message],
    tools: Sequence[Tool] | None,
    sampling: SamplingPolicy,
) -> HttpRequest:
    if config.credential is None:
        raise InvalidProvider("anthropic provider requires an API key")
    if tools:
        logger.debug("anthropic adapter does not send tools; ignoring %d tool(s)", len(tools))

    system_text, user_text = _flatten(messages)
    body: dict[str, Any] = {
        "model": config.model,
        "messages": [{"role": "user", "content": user_text}],
        "max_tokens": sampling.token_limit(False),
        "temperature": sampling.temperature,
        "top_p": sampling.top_p,
    }
    if system_text:
        body["system"] = system_text

    headers = {
        **JSON_HEADERS,
        "x-api-key": config.credential.get_secret_value(),
        "anthropic-version": API_VERSION,
    }
    return HttpRequest(path=MESSAGES_PATH, headers=headers, body=body)


def parse_response(raw_body: str) -> Message:
    data = load_json(raw_body, "Anthropic")
    try:
        response = _MessagesResponse.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Failed to parse Anthropic response: {exc}") from exc

    if not response.content:
        raise ParseError("Failed to parse Anthropic response: no content blocks returned")
    text = response.content[0].text
    if text is None:
        raise ParseError(
            f"Failed to parse Anthropic response: first content block "
            f"of type '{response.content[0].type}' has no text"
        )
    return Message(role=response.role, content=text)


def _flatten(messages: Sequence[Message]) -> tuple[str, str]:
    system_parts: list[str] = []
    turns: list[str] = []
    for m in messages:
        if not m.content:
            continue
        if m.role == "system":
            system_parts.append(m.content)
        else:
            turns.append(m.content)
    return "\n".join(system_parts), "\n".join(turns)


ADAPTER = ProviderAdapter(Provider.ANTHROPIC, build_request, parse_response)
