"""
Base LLM provider interface.

Defines the abstract interface that all provider implementations must follow.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ProviderCapabilities:
    """Describes what features a provider supports."""
    max_image_bytes: int = 5 * 1024 * 1024


@dataclass
class LLMResponse:
    """Standardized response from any LLM provider."""
    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    metadata: dict = field(default_factory=dict)


def encode_image(image_bytes: bytes) -> str:
    """Base64-encode image bytes for inline transport."""
    return base64.b64encode(image_bytes).decode("ascii")


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All provider implementations must inherit from this class and implement
    the required methods. This ensures a consistent interface across
    Anthropic, OpenAI, Google, and any future providers.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'anthropic', 'openai', 'google')."""
        pass

    @property
    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        """Return the provider's capabilities."""
        pass

    @abstractmethod
    def describe_image(
        self,
        image_bytes: bytes,
        media_type: str,
        prompt: str,
        model: str | None = None,
        max_tokens: int = 150,
    ) -> LLMResponse:
        """
        Describe an image in natural language.

        Args:
            image_bytes: Raw image data
            media_type: MIME type of the image (e.g., 'image/png')
            prompt: Instruction for the description
            model: Specific model to use (defaults to provider's default)
            max_tokens: Maximum tokens in response

        Returns:
            LLMResponse with the description text
        """
        pass

    async def describe_image_async(
        self,
        image_bytes: bytes,
        media_type: str,
        prompt: str,
        model: str | None = None,
        max_tokens: int = 150,
    ) -> LLMResponse:
        """
        Async version of describe_image.

        Default implementation wraps sync call in executor.
        Providers with native async support should override this.
        """
        import asyncio
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.describe_image(
                image_bytes=image_bytes,
                media_type=media_type,
                prompt=prompt,
                model=model,
                max_tokens=max_tokens,
            )
        )
