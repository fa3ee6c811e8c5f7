"""Configuration loaded from environment variables / .env file.

Usage:
    from hats_agent.config import Settings, load_settings, resolve_provider_config
    settings = load_settings()
    config = resolve_provider_config(settings.model, settings)

Every field maps to a ``WAVS_ENV_``-prefixed variable, e.g.
``WAVS_ENV_OPENAI_API_KEY`` or ``WAVS_ENV_OLLAMA_API_URL``. Settings are read
once when a client is constructed; later environment changes are not seen.
"""

from __future__ import annotations

import logging

from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from hats_agent.errors import InvalidProvider
from hats_agent.types import Provider, ProviderConfig

_DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. When a question needs arithmetic, "
    "use the calculator tool and report its result."
)

_OPENAI_PREFIXES = ("gpt-", "o1", "o3")
_ANTHROPIC_PREFIXES = ("claude",)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WAVS_ENV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Model selection ---
    model: str = "llama3.2"
    provider: Provider | None = None  # inferred from the model name when unset

    # --- Local model server (Ollama) ---
    ollama_api_url: str = "http://localhost:11434"

    # --- Hosted providers ---
    openai_api_url: str = "https://api.openai.com"
    openai_api_key: SecretStr | None = None
    anthropic_api_url: str = "https://api.anthropic.com"
    anthropic_api_key: SecretStr | None = None

    # --- Agent behaviour ---
    request_timeout_s: float | None = None  # None: no client-side timeout
    system_prompt: str = _DEFAULT_SYSTEM_PROMPT
    enable_tools: bool = True
    max_tool_rounds: int = Field(default=1, ge=1, le=10)

    # --- General ---
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment, reporting bad values as InvalidProvider."""
    try:
        return Settings()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise InvalidProvider(f"bad settings ({problems})") from exc


def infer_provider(model: str) -> Provider:
    """Guess the backend from a model identifier."""
    name = model.strip().lower()
    if name.startswith(_OPENAI_PREFIXES):
        return Provider.OPENAI
    if name.startswith(_ANTHROPIC_PREFIXES):
        return Provider.ANTHROPIC
    return Provider.LOCAL


def resolve_provider_config(
    model: str,
    settings: Settings,
    provider: Provider | str | None = None,
) -> ProviderConfig:
    """Build the immutable provider configuration for ``model``.

    Provider precedence is the explicit argument, then ``settings.provider``,
    then inference from the model name. Hosted providers require a credential.
    """
    try:
        chosen = Provider(provider) if provider is not None else settings.provider
    except ValueError as exc:
        raise InvalidProvider(f"unknown provider '{provider}'") from exc
    if chosen is None:
        chosen = infer_provider(model)

    if chosen is Provider.LOCAL:
        return ProviderConfig(provider=chosen, model=model, endpoint=settings.ollama_api_url)

    if chosen is Provider.OPENAI:
        endpoint, credential, var = (
            settings.openai_api_url,
            settings.openai_api_key,
            "WAVS_ENV_OPENAI_API_KEY",
        )
    else:
        endpoint, credential, var = (
            settings.anthropic_api_url,
            settings.anthropic_api_key,
            "WAVS_ENV_ANTHROPIC_API_KEY",
        )

    if credential is None or not credential.get_secret_value().strip():
        raise InvalidProvider(f"missing required variable {var} for provider '{chosen.value}'")
    return ProviderConfig(provider=chosen, model=model, endpoint=endpoint, credential=credential)


def configure_logging(level: str = "INFO") -> None:
    """Basic console logging for applications and examples."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
