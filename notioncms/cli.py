"""Command-line entrypoint: static page build and image maintenance"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import aiohttp
import typer

from .config import config, configure_logging
from .images import ImageDownloader
from .models import Entry
from .notion import NotionClient
from .pages import write_pages
from .providers import create_caption_provider
from .services import ContentService
from .storage import get_storage_from_config

app = typer.Typer(name="notioncms", no_args_is_help=True, help="Notion portfolio content pipeline")


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _require_notion() -> None:
    if not config.has_notion_config():
        _fail("Missing NOTION_KEY or NOTION_DB environment variables")


def build_service(**kwargs) -> ContentService:
    """Service wired from environment configuration."""
    return ContentService(
        client=NotionClient(config.NOTION_KEY, timeout=config.HTTP_TIMEOUT),
        database_id=config.NOTION_DB,
        concurrency=config.FETCH_CONCURRENCY,
        downloader=ImageDownloader(timeout=config.HTTP_TIMEOUT),
        **kwargs,
    )


async def _close(service: ContentService) -> None:
    await service.client.close()
    await service.downloader.close()
    if service.storage:
        await service.storage.close()


def _run(service: ContentService, coro_factory):
    """Run one service coroutine and release its HTTP sessions."""
    async def runner():
        try:
            return await coro_factory(service)
        finally:
            await _close(service)

    return asyncio.run(runner())


async def _fetch_remote_pages(source_url: str) -> list[Entry]:
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT)) as session:
        async with session.get(source_url) as resp:
            resp.raise_for_status()
            pages = await resp.json(content_type=None)
    return [Entry.from_page_dict(page) for page in pages]


@app.callback()
def main(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level")] = None,
):
    """Configure logging for every command."""
    configure_logging(log_level)


@app.command("generate-pages")
def generate_pages_cmd(
    out: Annotated[Optional[Path], typer.Option("--out-dir", help="Output directory")] = None,
    stylesheet: Annotated[Optional[str], typer.Option("--stylesheet", help="Stylesheet href to link instead of inlining")] = None,
    source_url: Annotated[Optional[str], typer.Option("--source-url", help="Deployed getPage endpoint to read from")] = None,
    include_private: Annotated[bool, typer.Option("--include-private", help="Also render private entries")] = False,
):
    """Render every published entry to <out-dir>/<slug>.html."""
    output_dir = out or config.OUTPUT_DIR
    href = stylesheet or config.STYLESHEET_HREF or None

    try:
        if source_url:
            entries = asyncio.run(_fetch_remote_pages(source_url))
            report = write_pages(entries, output_dir, stylesheet_href=href)
        else:
            _require_notion()
            report = _run(
                build_service(),
                lambda s: s.generate_site(output_dir, stylesheet_href=href, include_private=include_private),
            )
    except typer.Exit:
        raise
    except Exception as e:
        _fail("Page generation failed", e)

    for path in report.written:
        typer.echo(f"  {path}")
    for entry_id, slug in report.renamed.items():
        typer.echo(f"  renamed {entry_id} -> {slug}.html")
    typer.echo(f"Generated {len(report.written)} file(s) in {report.output_dir}/")


@app.command("relocate-images")
def relocate_images_cmd():
    """Move Notion-hosted images to durable storage and update Notion."""
    _require_notion()
    storage = get_storage_from_config(config)
    if storage is None:
        if config.storage_backend() is None:
            _fail(f"Unknown storage backend '{config.STORAGE_BACKEND}'")
        _fail(f"Missing credentials for storage backend '{config.STORAGE_BACKEND}'")

    try:
        report = _run(build_service(storage=storage), lambda s: s.relocate_images())
    except Exception as e:
        _fail("Image relocation failed", e)

    for image in report.images:
        status = "ok" if image.ok else "failed"
        typer.echo(f"  {status}: {image.original_url} -> {image.new_url or image.error}")
    title_images = sum(1 for image in report.uploaded if image.kind == "titleImage")
    typer.echo(
        f"Processed {len(report.images)} images across {report.processed_pages} pages - "
        f"{len(report.uploaded)} uploaded ({title_images} title images), "
        f"{len(report.failed)} failed"
    )


@app.command("describe-images")
def describe_images_cmd(
    delay: Annotated[Optional[float], typer.Option("--delay", help="Seconds to wait between images")] = None,
):
    """Write AI alt-text captions for images that have none."""
    _require_notion()
    provider = create_caption_provider(config)
    if provider is None:
        _fail("Missing ANTHROPIC_API_KEY, OPENAI_API_KEY or GOOGLE_API_KEY environment variable")

    delay_seconds = config.CAPTION_DELAY_SECONDS if delay is None else delay
    try:
        report = _run(build_service(provider=provider), lambda s: s.generate_captions(delay_seconds))
    except Exception as e:
        _fail("Caption generation failed", e)

    for image in report.images:
        mark = "updated" if image.updated else "skipped"
        typer.echo(f"  {mark}: [{image.page_name}] {image.image_url}")
        typer.echo(f"    {image.description}")
    typer.echo(
        f"Processed {len(report.images)} images - "
        f"{len(report.updated)} updated, {len(report.failed)} not updated"
    )


@app.command("tag-options")
def tag_options_cmd(
    as_json: Annotated[bool, typer.Option("--json", help="Print options as JSON")] = False,
):
    """List the declared choices of the tag property."""
    _require_notion()
    try:
        options = _run(build_service(), lambda s: s.get_tag_options())
    except Exception as e:
        _fail("Could not read tag options", e)

    if as_json:
        typer.echo(json.dumps([{"name": o.name, "color": o.color} for o in options], indent=2))
        return

    for i, option in enumerate(options, start=1):
        typer.echo(f"{i}. {option.name} ({option.color})")
    typer.echo(f'For AI prompts: "{", ".join(o.name for o in options)}"')


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[Optional[int], typer.Option("--port", help="Port (defaults to PORT)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
):
    """Run the API server."""
    import uvicorn

    uvicorn.run("notioncms.server:app", host=host, port=port or config.PORT, reload=reload)


if __name__ == "__main__":
    app()
