"""
Anthropic Claude provider implementation.

Sends images inline as base64 content blocks.
"""

import anthropic

from .base import LLMProvider, LLMResponse, ProviderCapabilities, encode_image


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude provider with image input support.
    """

    # Model aliases for convenience
    MODEL_ALIASES = {
        "haiku": "claude-haiku-4-5-20251001",
        "sonnet": "claude-sonnet-4-5-20250514",
        "opus": "claude-opus-4-5-20251218",
        # Legacy aliases
        "claude-haiku-4-5": "claude-haiku-4-5-20251001",
        "claude-sonnet-4-5": "claude-sonnet-4-5-20250514",
        "claude-opus-4-5": "claude-opus-4-5-20251218",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "claude-haiku-4-5-20251001",
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            default_model: Default model to use
        """
        self.client = anthropic.Anthropic(api_key=api_key)
        self._default_model = self._resolve_model(default_model)

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(max_image_bytes=5 * 1024 * 1024)

    def describe_image(
        self,
        image_bytes: bytes,
        media_type: str,
        prompt: str,
        model: str | None = None,
        max_tokens: int = 150,
    ) -> LLMResponse:
        """
        Describe an image using Claude.

        Args:
            image_bytes: Raw image data
            media_type: MIME type of the image
            prompt: Instruction for the description
            model: Model to use (defaults to instance default)
            max_tokens: Maximum response tokens

        Returns:
            LLMResponse with generated text
        """
        resolved_model = self._resolve_model(model) if model else self._default_model

        response = self.client.messages.create(
            model=resolved_model,
            max_tokens=max_tokens,
            messages=[{
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": media_type,
                            "data": encode_image(image_bytes),
                        },
                    },
                    {"type": "text", "text": prompt},
                ],
            }],
        )

        usage = response.usage
        return LLMResponse(
            text=response.content[0].text if response.content else "",
            model=resolved_model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            metadata={
                "stop_reason": response.stop_reason,
                "provider": "anthropic",
            }
        )
