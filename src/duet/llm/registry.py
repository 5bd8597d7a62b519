"""Provider registry: which backend serves a given model id.

Hides the mapping from a user-facing model identifier to
- the credential that authorizes it,
- the endpoint that serves it,
- the model name that endpoint expects.

Routes are checked in order and the first match wins, so specific routes
sit before the OpenAI catch-all. Adding a backend means registering a
route; nothing in the conversation layer changes.
"""

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ConfigurationError
from .base import LLMProvider
from .factory import create_llm_provider

ModelNormalizer = Callable[[str], str]


def _identity(model: str) -> str:
    return model


def _groq_model_name(model: str) -> str:
    lowered = model.lower()
    if "llama-3.1-8b" in lowered or lowered == "groq-llama-8b":
        return "llama-3.1-8b-instant"
    if "llama-3.1-70b" in lowered or lowered == "groq-llama-70b":
        return "llama-3.1-70b-versatile"
    if "mixtral" in lowered:
        return "mixtral-8x7b-32768"
    if "gemma" in lowered:
        return "gemma2-9b-it"
    return model


def _deepseek_model_name(model: str) -> str:
    if model.lower() == "deepseek-reasoner":
        return "deepseek-reasoner"
    return "deepseek-chat"


_CLAUDE_ALIASES = {
    "claude-3-opus": "claude-3-opus-20240229",
    "claude-3-sonnet": "claude-3-sonnet-20240229",
    "claude-3-haiku": "claude-3-haiku-20240307",
}


def _claude_model_name(model: str) -> str:
    return _CLAUDE_ALIASES.get(model.lower(), model)


@dataclass(frozen=True)
class ProviderRoute:
    """One entry of the registry.

    Attributes:
        name: Human-readable service name used in messages
        pattern: Regex searched (case-insensitively) in the model id
        api_key_env: Environment variable holding the credential
        kind: Provider kind passed to create_llm_provider
        base_url_env: Environment variable overriding the endpoint
        default_base_url: Endpoint when the override is unset (None = SDK default)
        normalize: Maps the user-facing id to the backend's model name
        key_hint: Remediation text shown when the credential is missing
        example_models: Sample ids listed by the `duet models` table
    """

    name: str
    pattern: str
    api_key_env: str
    kind: str = "openai"
    base_url_env: str | None = None
    default_base_url: str | None = None
    normalize: ModelNormalizer = _identity
    key_hint: str = ""
    example_models: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, model: str) -> bool:
        return re.search(self.pattern, model, re.IGNORECASE) is not None


DEFAULT_ROUTES: tuple[ProviderRoute, ...] = (
    ProviderRoute(
        name="Groq",
        pattern=r"^groq-|llama|mixtral|gemma",
        api_key_env="GROQ_API_KEY",
        base_url_env="GROQ_BASE_URL",
        default_base_url="https://api.groq.com/openai/v1",
        normalize=_groq_model_name,
        key_hint="Get your free API key at: https://console.groq.com/keys",
        example_models=("groq-llama-8b", "groq-llama-70b", "groq-mixtral"),
    ),
    ProviderRoute(
        name="DeepSeek",
        pattern=r"^deepseek",
        api_key_env="DEEPSEEK_API_KEY",
        base_url_env="DEEPSEEK_BASE_URL",
        default_base_url="https://api.deepseek.com",
        normalize=_deepseek_model_name,
        key_hint="Get your API key at: https://platform.deepseek.com/usage",
        example_models=("deepseek-chat",),
    ),
    ProviderRoute(
        name="Anthropic",
        pattern=r"^claude",
        api_key_env="ANTHROPIC_API_KEY",
        kind="anthropic",
        base_url_env="ANTHROPIC_BASE_URL",
        normalize=_claude_model_name,
        key_hint="Get your API key at: https://console.anthropic.com/settings/keys",
        example_models=("claude-3-opus", "claude-3-sonnet"),
    ),
    ProviderRoute(
        name="OpenAI",
        pattern=r".*",
        api_key_env="OPENAI_API_KEY",
        base_url_env="OPENAI_BASE_URL",
        key_hint="Set OPENAI_API_KEY in your .env file.",
        example_models=("gpt-4", "gpt-3.5-turbo"),
    ),
)


class ProviderRegistry:
    """Ordered model-id -> provider lookup table.

    Provider clients are created lazily and cached per route, so both
    participants share a client when they use the same backend.

    Example:
        registry = ProviderRegistry()
        provider, model_name = registry.provider_for("groq-llama-8b")
        # provider talks to Groq, model_name == "llama-3.1-8b-instant"
    """

    def __init__(
        self,
        routes: tuple[ProviderRoute, ...] | list[ProviderRoute] = DEFAULT_ROUTES,
        env: Mapping[str, str] | None = None,
        provider_factory: Callable[..., LLMProvider] = create_llm_provider,
    ) -> None:
        """Initialize the registry.

        Args:
            routes: Routes in priority order
            env: Variable source; None reads os.environ at lookup time
            provider_factory: Builds a provider from (kind, **config)
        """
        self._routes: list[ProviderRoute] = list(routes)
        self._env = env
        self._provider_factory = provider_factory
        self._providers: dict[str, LLMProvider] = {}

    @property
    def routes(self) -> list[ProviderRoute]:
        return list(self._routes)

    def register(self, route: ProviderRoute) -> "ProviderRegistry":
        """Add a route ahead of the existing ones.

        Returns:
            Self for method chaining
        """
        self._routes.insert(0, route)
        self._providers.pop(route.name, None)
        return self

    def _getenv(self, name: str | None) -> str | None:
        if name is None:
            return None
        source = os.environ if self._env is None else self._env
        value = source.get(name)
        return value or None

    def resolve(self, model: str) -> ProviderRoute:
        """Find the route serving a model id.

        Raises:
            ConfigurationError: If the model id is empty or nothing matches
        """
        if not model or not model.strip():
            raise ConfigurationError("Model is required.")
        for route in self._routes:
            if route.matches(model):
                return route
        raise ConfigurationError(f"No provider is registered for model {model!r}.")

    def has_credentials(self, route: ProviderRoute) -> bool:
        return self._getenv(route.api_key_env) is not None

    def api_key(self, route: ProviderRoute) -> str:
        """Look up the credential for a route.

        Raises:
            ConfigurationError: If the credential variable is unset
        """
        api_key = self._getenv(route.api_key_env)
        if api_key is None:
            raise ConfigurationError(
                f"API key not configured for {route.name}. "
                f"Please set {route.api_key_env} in your .env file.",
                remediation=route.key_hint or None,
            )
        return api_key

    def base_url(self, route: ProviderRoute) -> str | None:
        return self._getenv(route.base_url_env) or route.default_base_url

    def check_credentials(self, model: str) -> ProviderRoute:
        """Resolve a model and make sure its credential exists."""
        route = self.resolve(model)
        self.api_key(route)
        return route

    def provider_for(self, model: str) -> tuple[LLMProvider, str]:
        """Get a (cached) provider and the backend model name for a model id.

        Raises:
            ConfigurationError: If the model has no route or no credential
        """
        route = self.resolve(model)
        provider = self._providers.get(route.name)
        if provider is None:
            config: dict[str, Any] = {"api_key": self.api_key(route)}
            base_url = self.base_url(route)
            if base_url:
                config["base_url"] = base_url
            provider = self._provider_factory(route.kind, **config)
            self._providers[route.name] = provider
        return provider, route.normalize(model)

    def describe(self, model: str) -> str:
        """Short routing description for logs: 'Groq:llama-3.1-8b-instant'."""
        route = self.resolve(model)
        return f"{route.name}:{route.normalize(model)}"

    async def close(self) -> None:
        """Close every cached provider client."""
        providers = list(self._providers.values())
        self._providers.clear()
        for provider in providers:
            await provider.close()
