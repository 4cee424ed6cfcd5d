"""
OpenAI provider implementation.

Sends images as data URLs through the chat completions API.
"""

from openai import OpenAI

from .base import LLMProvider, LLMResponse, ProviderCapabilities, encode_image


class OpenAIProvider(LLMProvider):
    """
    OpenAI GPT provider with image input support.
    """

    # Model aliases for convenience
    MODEL_ALIASES = {
        "gpt5": "gpt-5.2",
        "gpt5-mini": "gpt-5.2-mini",
        "gpt-5": "gpt-5.2",
        "fast": "gpt-5.2-mini",
        "standard": "gpt-5.2",
        # Legacy aliases
        "gpt4": "gpt-4o",
        "gpt4-mini": "gpt-4o-mini",
        "gpt-4": "gpt-4o",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4o",
        organization: str | None = None,
        detail: str = "low",
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            default_model: Default model to use
            organization: Optional organization ID
            detail: Image detail level ("low" keeps vision costs down)
        """
        self.client = OpenAI(api_key=api_key, organization=organization)
        self._default_model = self._resolve_model(default_model)
        self.detail = detail

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "openai"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(max_image_bytes=20 * 1024 * 1024)

    def describe_image(
        self,
        image_bytes: bytes,
        media_type: str,
        prompt: str,
        model: str | None = None,
        max_tokens: int = 150,
    ) -> LLMResponse:
        """
        Describe an image using GPT.

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
        data_url = f"data:{media_type};base64,{encode_image(image_bytes)}"

        response = self.client.chat.completions.create(
            model=resolved_model,
            max_tokens=max_tokens,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": data_url, "detail": self.detail},
                    },
                ],
            }],
        )

        choice = response.choices[0]
        usage = response.usage

        return LLMResponse(
            text=choice.message.content or "",
            model=resolved_model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            metadata={
                "finish_reason": choice.finish_reason,
                "provider": "openai",
            }
        )
