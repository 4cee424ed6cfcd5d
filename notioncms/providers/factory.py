"""
Caption provider selection.

Alt text is written by whichever vision model the deployment holds a key
for. LLM_PROVIDER pins the vendor and LLM_MODEL overrides its default model.
"""

import logging

from .base import LLMProvider
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider
from .google import GoogleProvider

logger = logging.getLogger(__name__)

# Vendor name -> (provider class, Config attribute holding its key), in fallback order
CAPTION_PROVIDERS: dict[str, tuple[type[LLMProvider], str]] = {
    "anthropic": (AnthropicProvider, "ANTHROPIC_API_KEY"),
    "openai": (OpenAIProvider, "OPENAI_API_KEY"),
    "google": (GoogleProvider, "GOOGLE_API_KEY"),
}


def create_caption_provider(config) -> LLMProvider | None:
    """
    Build the vision provider used for image captions.

    The vendor named by LLM_PROVIDER is tried first; when it has no key (or
    the name is unknown) the first vendor with a key is used instead.

    Returns:
        Configured LLMProvider, or None when no vendor key is set
    """
    preferred = (config.LLM_PROVIDER or "").strip().lower()
    order = list(CAPTION_PROVIDERS)
    if preferred in CAPTION_PROVIDERS:
        order.remove(preferred)
        order.insert(0, preferred)
    elif preferred:
        logger.warning(
            f"Unknown LLM_PROVIDER '{config.LLM_PROVIDER}', "
            f"available: {', '.join(CAPTION_PROVIDERS)}"
        )

    for vendor in order:
        provider_class, key_attr = CAPTION_PROVIDERS[vendor]
        api_key = getattr(config, key_attr, "")
        if not api_key:
            continue
        if preferred in CAPTION_PROVIDERS and vendor != preferred:
            logger.info(f"Captioning with {vendor}; no key set for '{preferred}'")
        if config.LLM_MODEL:
            return provider_class(api_key=api_key, default_model=config.LLM_MODEL)
        return provider_class(api_key=api_key)

    return None
