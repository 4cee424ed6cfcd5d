"""
Configuration and application state management.
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .images import ImageDownloader
    from .notion import NotionClient
    from .providers import LLMProvider
    from .storage import ObjectStorage

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


STORAGE_BACKENDS = ("supabase", "bunny")


def _first_env(*names: str) -> str:
    """Return the first non-empty environment variable among several aliases."""
    for name in names:
        value = os.getenv(name, "")
        if value:
            return value
    return ""


class Config:
    """Application configuration from environment."""
    # Notion source database
    NOTION_KEY: str = os.getenv("NOTION_KEY", "")
    NOTION_DB: str = os.getenv("NOTION_DB", "")

    # Widen the getPage filter to entries with the "private" status
    INCLUDE_PRIVATE: bool = _parse_bool(os.getenv("INCLUDE_PRIVATE"))

    # Durable image storage: "supabase" or "bunny"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "supabase")

    # The SUPASPACE_* names are what the deployed site already uses
    SUPABASE_PROJECT_URL: str = _first_env("SUPABASE_PROJECT_URL", "SUPASPACE_PROJECT_URL")
    SUPABASE_ACCESS_KEY: str = _first_env(
        "SUPABASE_ACCESS_KEY", "SUPASPACE_ACCESS_KEY", "SUPASPACE_SERVICE_KEY"
    )
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "notion-images")

    BUNNY_ACCESS_KEY: str = os.getenv("BUNNY_ACCESS_KEY", "")
    BUNNY_STORAGE_ZONE: str = os.getenv("BUNNY_STORAGE_ZONE", "")
    BUNNY_CDN_URL: str = os.getenv("BUNNY_CDN_URL", "")
    BUNNY_ROOT_FOLDER: str = os.getenv("BUNNY_ROOT_FOLDER", "")

    # LLM provider for alt-text captions
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "")
    CAPTION_DELAY_SECONDS: float = float(os.getenv("CAPTION_DELAY_SECONDS", "1.0"))

    # Static page generation
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "./generated"))
    STYLESHEET_HREF: str = os.getenv("STYLESHEET_HREF", "")

    # Outbound HTTP
    FETCH_CONCURRENCY: int = int(os.getenv("FETCH_CONCURRENCY", "8"))
    HTTP_TIMEOUT: int = int(os.getenv("HTTP_TIMEOUT", "30"))

    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Include tracebacks in 500 responses
    EXPOSE_STACK_TRACES: bool = _parse_bool(os.getenv("EXPOSE_STACK_TRACES"))

    @classmethod
    def has_notion_config(cls) -> bool:
        return bool(cls.NOTION_KEY and cls.NOTION_DB)

    @classmethod
    def storage_backend(cls) -> str | None:
        """Normalized STORAGE_BACKEND name, or None when it names no known backend."""
        name = (cls.STORAGE_BACKEND or "supabase").strip().lower()
        return name if name in STORAGE_BACKENDS else None

    @classmethod
    def has_storage_config(cls) -> bool:
        """Check if the selected storage backend is known and has credentials."""
        backend = cls.storage_backend()
        if backend == "bunny":
            return bool(cls.BUNNY_ACCESS_KEY and cls.BUNNY_STORAGE_ZONE and cls.BUNNY_CDN_URL)
        if backend == "supabase":
            return bool(cls.SUPABASE_PROJECT_URL and cls.SUPABASE_ACCESS_KEY)
        return False

    @classmethod
    def has_llm_key(cls) -> bool:
        """Check if any LLM API key is configured."""
        return bool(cls.ANTHROPIC_API_KEY or cls.OPENAI_API_KEY or cls.GOOGLE_API_KEY)


config = Config()


class AppState:
    """Shared application state."""
    notion: "NotionClient | None" = None
    storage: "ObjectStorage | None" = None
    provider: "LLMProvider | None" = None
    downloader: "ImageDownloader | None" = None


state = AppState()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the server and CLI."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def require_notion_config() -> None:
    """Fail with a 500 before any network call when Notion is not configured."""
    if not config.has_notion_config():
        raise HTTPException(
            status_code=500,
            detail="Missing NOTION_KEY or NOTION_DB environment variables",
        )


def require_storage_config() -> None:
    """Fail with a 500 when the storage backend is not configured."""
    if not config.has_storage_config():
        backend = config.storage_backend()
        if backend is None:
            detail = (
                f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}'. "
                f"Available: {', '.join(STORAGE_BACKENDS)}"
            )
        elif backend == "bunny":
            detail = "Missing BUNNY_ACCESS_KEY, BUNNY_STORAGE_ZONE or BUNNY_CDN_URL environment variables"
        else:
            detail = "Missing SUPABASE_PROJECT_URL or SUPABASE_ACCESS_KEY environment variables"
        raise HTTPException(status_code=500, detail=detail)


def require_llm_config() -> None:
    """Fail with a 500 when no caption provider key is configured."""
    if not config.has_llm_key():
        raise HTTPException(
            status_code=500,
            detail="Missing ANTHROPIC_API_KEY, OPENAI_API_KEY or GOOGLE_API_KEY environment variable",
        )
