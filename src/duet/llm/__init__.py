from .base import LLMProvider
from .factory import create_llm_provider
from .models import ChatMessage, LLMResponse, Role, StreamingResponse
from .providers import AnthropicProvider, OpenAICompatibleProvider
from .registry import DEFAULT_ROUTES, ProviderRegistry, ProviderRoute

__all__ = [
    "DEFAULT_ROUTES",
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "LLMResponse",
    "Role",
    "StreamingResponse",
    "AnthropicProvider",
    "OpenAICompatibleProvider",
    "ProviderRegistry",
    "ProviderRoute",
]
