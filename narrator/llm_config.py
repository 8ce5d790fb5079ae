"""Which model the narrator talks to, picked from the server environment."""

import os
from typing import Any

# Whatever Agent.run_sync() accepts as model
ModelT = Any

ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
ENV_GOOGLE_API_KEY = "GOOGLE_GENERATIVE_AI_API_KEY"
ENV_OLLAMA_BASE_URL = "OLLAMA_BASE_URL"
ENV_DEFAULT_PROVIDER = "PUEBLO_DEFAULT_PROVIDER"
ENV_DEFAULT_MODEL = "PUEBLO_DEFAULT_MODEL"
ENV_NARRATOR_ENABLED = "PUEBLO_NARRATOR_ENABLED"

_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "google": "gemini-2.0-flash",
    "gemini": "gemini-2.0-flash",
    "ollama": "llama3.2",
}
PROVIDERS = tuple(_DEFAULT_MODELS)

# Key env var per provider; ollama runs locally without one
_KEY_VARS = {
    "openai": ENV_OPENAI_API_KEY,
    "anthropic": ENV_ANTHROPIC_API_KEY,
    "google": ENV_GOOGLE_API_KEY,
    "gemini": ENV_GOOGLE_API_KEY,
}

_GEMINI_OPENAI_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
_OLLAMA_DEFAULT_URL = "http://localhost:11434/v1"


def narrator_enabled() -> bool:
    """Narrator runs unless PUEBLO_NARRATOR_ENABLED is set to a false value."""
    return os.environ.get(ENV_NARRATOR_ENABLED, "1").strip().lower() not in ("0", "false", "no", "off")


def get_model_from_config(provider: str, model_name: str, api_key: str | None = None) -> ModelT:
    """Build a pydantic-ai model. A missing api_key is read from the provider's env var."""
    provider = provider.lower()
    if provider not in _DEFAULT_MODELS:
        raise ValueError(f"Unknown provider {provider!r}; expected one of {PROVIDERS}")
    model_name = model_name or os.environ.get(ENV_DEFAULT_MODEL) or _DEFAULT_MODELS[provider]
    key = api_key or _env_key(provider)

    if provider == "anthropic":
        from pydantic_ai.models.anthropic import AnthropicModel
        from pydantic_ai.providers.anthropic import AnthropicProvider

        return AnthropicModel(model_name, provider=AnthropicProvider(api_key=key) if key else AnthropicProvider())

    if provider == "ollama":
        base_url = os.environ.get(ENV_OLLAMA_BASE_URL, _OLLAMA_DEFAULT_URL)
        return _openai_compatible(model_name, base_url=base_url, api_key=key or "ollama")
    if provider in ("google", "gemini"):
        return _openai_compatible(model_name, base_url=_GEMINI_OPENAI_URL, api_key=key)
    return _openai_compatible(model_name, api_key=key)


def get_default_model() -> ModelT:
    """Model from PUEBLO_DEFAULT_PROVIDER / PUEBLO_DEFAULT_MODEL."""
    return get_model_from_config(os.environ.get(ENV_DEFAULT_PROVIDER, "openai"), "")


def env_key_flags() -> dict[str, bool]:
    """Which providers have a key configured. Never the key values."""
    flags = {name: bool(os.environ.get(var)) for name, var in _KEY_VARS.items() if name != "gemini"}
    flags["ollama"] = True
    return flags


def _env_key(provider: str) -> str | None:
    var = _KEY_VARS.get(provider)
    return os.environ.get(var) if var else None


def _openai_compatible(model_name: str, base_url: str | None = None, api_key: str | None = None) -> ModelT:
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    kwargs = {k: v for k, v in (("base_url", base_url), ("api_key", api_key)) if v}
    return OpenAIChatModel(model_name, provider=OpenAIProvider(**kwargs))
