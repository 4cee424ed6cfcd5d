"""
Notion CMS API Server

FastAPI application providing endpoints for:
- Published entries (raw and with resolved content)
- Tag options for the front-end filter
- Image relocation to durable storage
- AI alt-text captions
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import config, configure_logging, state
from .images import ImageDownloader
from .notion import NotionClient
from .providers import create_caption_provider
from .routes import content_router, maintenance_router, misc_router
from .schemas import ErrorResponse
from .storage import get_storage_from_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    configure_logging()
    owned = []

    # Startup - skip if already initialized (e.g., by tests)
    if state.notion is None:
        if config.has_notion_config():
            state.notion = NotionClient(config.NOTION_KEY, timeout=config.HTTP_TIMEOUT)
            owned.append(state.notion)
        else:
            logger.warning("NOTION_KEY or NOTION_DB not set. Content endpoints will return 500.")

        state.downloader = ImageDownloader(timeout=config.HTTP_TIMEOUT)
        owned.append(state.downloader)

        state.storage = get_storage_from_config(config)
        if state.storage:
            owned.append(state.storage)
            logger.info(f"Image storage initialized: {state.storage.name}")
        else:
            logger.warning("Image storage not configured. Image relocation disabled.")

        state.provider = create_caption_provider(config)
        if state.provider:
            logger.info(f"LLM provider initialized: {state.provider.name}")
        else:
            logger.warning(
                "No LLM API key configured. Set ANTHROPIC_API_KEY, OPENAI_API_KEY, "
                "or GOOGLE_API_KEY. Caption generation disabled."
            )

    yield

    # Shutdown
    for resource in owned:
        try:
            await resource.close()
        except Exception as e:
            logger.warning(f"Error closing {type(resource).__name__}: {e}")
    if owned:
        state.notion = None
        state.storage = None
        state.provider = None
        state.downloader = None


app = FastAPI(
    title="Notion CMS API",
    version=__version__,
    lifespan=lifespan
)


def _error_response(status_code: int, message: str, exc: Exception | None = None) -> JSONResponse:
    body = ErrorResponse(error=message)
    if exc is not None and config.EXPOSE_STACK_TRACES:
        body.stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(422, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return _error_response(500, str(exc) or type(exc).__name__, exc)


# Include routers
app.include_router(misc_router)
app.include_router(content_router)
app.include_router(maintenance_router)
