from .anthropic import AnthropicProvider
from .openai import OpenAICompatibleProvider

__all__ = ["AnthropicProvider", "OpenAICompatibleProvider"]
