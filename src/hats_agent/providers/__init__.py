"""Provider adapters for hats_agent."""

from hats_agent.errors import InvalidProvider
from hats_agent.types import Provider

from . import anthropic, local, openai
from .base import HttpRequest, ProviderAdapter

_ADAPTERS: dict[Provider, ProviderAdapter] = {
    adapter.provider: adapter for adapter in (local.ADAPTER, openai.ADAPTER, anthropic.ADAPTER)
}


def get_adapter(provider: Provider) -> ProviderAdapter:
    """Return the adapter registered for a provider."""
    try:
        return _ADAPTERS[provider]
    except KeyError as exc:
        raise InvalidProvider(f"no adapter for provider '{provider}'") from exc


__all__ = [
    "HttpRequest",
    "ProviderAdapter",
    "get_adapter",
]
