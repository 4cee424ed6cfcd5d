"""
LLM Provider abstraction layer.

Supports multiple AI providers (Anthropic, OpenAI, Google) with a unified
interface for describing images.
"""

from .base import LLMProvider, LLMResponse, ProviderCapabilities
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider
from .google import GoogleProvider
from .factory import CAPTION_PROVIDERS, create_caption_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "ProviderCapabilities",
    "AnthropicProvider",
    "OpenAIProvider",
    "GoogleProvider",
    "CAPTION_PROVIDERS",
    "create_caption_provider",
]
