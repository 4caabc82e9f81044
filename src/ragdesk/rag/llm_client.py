"""Thin LiteLLM layer shared by ingestion and question answering.

Embeddings and answers both go through here, so provider retries
(``num_retries``) and request timeouts are set in one place. Model strings
use LiteLLM's ``provider/model`` form; a bare model name means OpenAI.
"""

from __future__ import annotations

import os

import litellm

litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

# Providers whose key variable does not follow the PROVIDER_API_KEY pattern,
# or that need no key at all (None).
_KEY_ENV_OVERRIDES: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "ollama": None,
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of *model* ('openai' when there is none)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def key_env_var(provider: str) -> str | None:
    """Environment variable holding the API key for *provider*, or None for local models."""
    provider = provider.lower()
    if provider in _KEY_ENV_OVERRIDES:
        return _KEY_ENV_OVERRIDES[provider]
    return f"{provider.upper()}_API_KEY"


def validate_api_key(model: str) -> None:
    """Raise EnvironmentError when *model*'s provider key is not set.

    Called before any text is embedded so a missing key fails fast instead of
    after LiteLLM's retries.
    """
    provider = provider_of(model)
    env_var = key_env_var(provider)
    if env_var is not None and not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.0,
    num_retries: int = 3,
    timeout: float = 60.0,
) -> str:
    """Return the first choice's text for a chat completion ('' if it has none)."""
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
        timeout=timeout,
    )
    return response.choices[0].message.content or ""


def embed(model: str, text: str, num_retries: int = 3, timeout: float = 30.0) -> list[float]:
    response = litellm.embedding(
        model=model,
        input=[text],
        num_retries=num_retries,
        timeout=timeout,
    )
    return list(response.data[0]["embedding"])
