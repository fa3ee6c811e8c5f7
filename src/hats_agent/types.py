"""Provider-agnostic conversation, tool and configuration models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

Role = Literal["system", "user", "assistant", "tool"]


class ToolFunction(BaseModel):
    """Function signature advertised to the model."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class Tool(BaseModel):
    """Declarative JSON-schema tool definition."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: Literal["function"] = Field(default="function", alias="type")
    function: ToolFunction

    @property
    def name(self) -> str:
        return self.function.name


class ToolCallFunction(BaseModel):
    """Function name plus JSON-encoded arguments requested by the model."""

    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A model-issued request to run a local tool."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: Literal["function"] = Field(default="function", alias="type")
    function: ToolCallFunction


class Message(BaseModel):
    """Single chat message."""

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    # only set on role="tool"
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the chat wire form shared by all providers.

        Absent optional fields are omitted, except that an assistant turn
        carrying tool calls always sends ``content`` as a string: some
        providers reject a null content on that turn.
        """
        payload = self.model_dump(by_alias=True, exclude_none=True)
        if self.role == "assistant" and self.tool_calls:
            payload["content"] = self.content or ""
        return payload


class Provider(str, Enum):
    """Closed set of supported chat-completion backends."""

    LOCAL = "local"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ProviderConfig(BaseModel):
    """Resolved endpoint and credential for one provider and model."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str = Field(min_length=1)
    endpoint: str
    credential: SecretStr | None = None


class SamplingPolicy(BaseModel):
    """Fixed generation parameters so repeated runs are reproducible."""

    model_config = ConfigDict(frozen=True)

    temperature: float = 0.0
    top_p: float = 0.1
    seed: int = 42
    # context window for the local server
    num_ctx: int = 4096
    max_tokens: int = 100
    tool_max_tokens: int = 1000

    def token_limit(self, tools_offered: bool) -> int:
        """Return the response length cap for a request."""
        return self.tool_max_tokens if tools_offered else self.max_tokens
