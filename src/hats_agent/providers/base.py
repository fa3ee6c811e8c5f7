"""Provider-agnostic adapter record and shared wire helpers."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from hats_agent.errors import ParseError
from hats_agent.types import Message, Provider, ProviderConfig, SamplingPolicy, Tool

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class HttpRequest:
    """Provider-specific request ready to be sent."""

    path: str
    headers: dict[str, str]
    body: dict[str, Any]
    method: str = field(default="POST")


BuildRequest = Callable[
    [ProviderConfig, Sequence[Message], Sequence[Tool] | None, SamplingPolicy],
    HttpRequest,
]
ParseResponse = Callable[[str], Message]


@dataclass(frozen=True)
class ProviderAdapter:
    """Pure translation pair between canonical and wire shapes for one provider."""

    provider: Provider
    build_request: BuildRequest
    parse_response: ParseResponse


def serialize_tools(tools: Sequence[Tool] | None) -> list[dict[str, Any]]:
    return [t.model_dump(by_alias=True, exclude_none=True) for t in tools or ()]


def load_json(raw_body: str, provider: str) -> Any:
    """Decode a response body, mapping malformed JSON to ParseError."""
    try:
        return json.loads(raw_body)
    except ValueError as exc:
        raise ParseError(f"Failed to parse {provider} response: {exc}") from exc
