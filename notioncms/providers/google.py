"""
Google Gemini provider implementation.

Sends images inline as byte parts. Uses the google-genai SDK.
"""

from google import genai
from google.genai import types

from .base import LLMProvider, LLMResponse, ProviderCapabilities


class GoogleProvider(LLMProvider):
    """
    Google Gemini provider with image input support.
    """

    # Model aliases for convenience
    MODEL_ALIASES = {
        "flash": "gemini-3.0-flash",
        "pro": "gemini-3.0-pro",
        "gemini-flash": "gemini-3.0-flash",
        "gemini-pro": "gemini-3.0-pro",
        "fast": "gemini-3.0-flash",
        "standard": "gemini-3.0-pro",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "gemini-3.0-flash",
    ):
        """
        Initialize Google Gemini provider.

        Args:
            api_key: Google AI API key
            default_model: Default model to use
        """
        self.client = genai.Client(api_key=api_key)
        self._default_model = self._resolve_model(default_model)

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "google"

    @property
    def capabilities(self) -> ProviderCapabilities:
        # Inline request data is capped at 20MB
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
        Describe an image using Gemini.

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

        response = self.client.models.generate_content(
            model=resolved_model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=media_type),
                prompt,
            ],
            config=types.GenerateContentConfig(max_output_tokens=max_tokens),
        )

        input_tokens = 0
        output_tokens = 0
        if hasattr(response, "usage_metadata") and response.usage_metadata:
            input_tokens = response.usage_metadata.prompt_token_count or 0
            output_tokens = response.usage_metadata.candidates_token_count or 0

        return LLMResponse(
            text=response.text or "",
            model=resolved_model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            metadata={
                "provider": "google",
            }
        )
