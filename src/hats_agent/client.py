"""Async chat-completion client with a fixed deterministic sampling policy."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from hats_agent.config import Settings, load_settings, resolve_provider_config
from hats_agent.errors import ApiError, EmptyMessages, EmptyModelName, RequestFailed
from hats_agent.providers import get_adapter
from hats_agent.types import Message, Provider, ProviderConfig, SamplingPolicy, Tool

logger = logging.getLogger(__name__)


class LLMClient:
    """Sends canonical conversations to one configured provider and model.

    The client keeps no mutable state between calls: provider configuration and
    sampling policy are fixed at construction and every call opens its own HTTP
    connection.
    """

    def __init__(
        self,
        model: str,
        *,
        provider: Provider | str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not model or not model.strip():
            raise EmptyModelName()

        settings = settings or load_settings()
        self._config = resolve_provider_config(model.strip(), settings, provider)
        self._adapter = get_adapter(self._config.provider)
        self._sampling = SamplingPolicy()
        self._timeout = settings.request_timeout_s
        self._transport = transport

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def sampling(self) -> SamplingPolicy:
        return self._sampling

    async def chat_completion(
        self,
        messages: Sequence[Message],
        tools: Sequence[Tool] | None = None,
    ) -> Message:
        """Run one completion round and return the assistant message."""
        if not messages:
            raise EmptyMessages()

        request = self._adapter.build_request(self._config, messages, tools or None, self._sampling)
        logger.debug(
            "Sending chat completion: provider=%s model=%s messages=%d tools=%d path=%s",
            self._config.provider.value,
            self._config.model,
            len(messages),
            len(tools or ()),
            request.path,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self._config.endpoint,
                timeout=self._timeout,
                transport=self._transport,
            ) as http:
                response = await http.request(
                    request.method,
                    request.path,
                    headers=request.headers,
                    json=request.body,
                )
        except httpx.HTTPError as exc:
            raise RequestFailed(str(exc) or type(exc).__name__) from exc

        logger.debug("Received response: status=%d bytes=%d", response.status_code, len(response.content))
        if not response.is_success:
            raise ApiError(response.status_code, response.text or response.reason_phrase)

        return self._adapter.parse_response(response.text)

    async def chat_completion_text(self, messages: Sequence[Message]) -> str:
        """Run a completion without tools and return only its text."""
        message = await self.chat_completion(messages)
        return message.content or ""
