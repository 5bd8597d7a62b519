from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, OpenAICompatibleProvider


def create_llm_provider(kind: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different
    provider kinds. Which backend a model id talks to is decided by the
    provider registry; this only builds the client.

    Args:
        kind: Provider kind ('openai' for any OpenAI-compatible API,
            'anthropic')
        **config: Provider-specific configuration
            - api_key: str (required)
            - model: str
            - base_url: str | None

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider kind is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_llm_provider(
        ...     "openai",
        ...     api_key="gsk-...",
        ...     base_url="https://api.groq.com/openai/v1",
        ... )
    """
    kind_lower = kind.lower()

    if kind_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI-compatible provider requires 'api_key' in config")
        return OpenAICompatibleProvider(**config)

    if kind_lower in ("anthropic", "claude"):
        if "api_key" not in config:
            raise TypeError("Anthropic provider requires 'api_key' in config")
        return AnthropicProvider(**config)

    raise ValueError(
        f"Unsupported provider kind: {kind}. "
        f"Supported kinds: 'openai', 'anthropic'"
    )
