"""
Page Generator - Write one static HTML document per entry.

Each page is self-contained: it inlines a default stylesheet (or links one
when an href is configured) and carries a link back to the site root. An
index.html with one card per entry is written alongside.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from .models import Entry
from .renderer import render_blocks

logger = logging.getLogger(__name__)

_UNSAFE_SLUG_CHARS = re.compile(r"[^A-Za-z0-9_-]")

DEFAULT_STYLESHEET = """
body { font-family: system-ui, sans-serif; line-height: 1.6; margin: 0 auto; max-width: 48rem; padding: 2rem 1rem; color: #222; }
img, iframe { max-width: 100%; }
figure { margin: 1.5rem 0; }
figcaption { color: #666; font-size: 0.9rem; }
figure.video iframe { aspect-ratio: 16 / 9; width: 100%; height: auto; }
pre { background: #f5f5f5; overflow-x: auto; padding: 1rem; }
blockquote { border-left: 3px solid #ccc; margin-left: 0; padding-left: 1rem; color: #555; }
.columns { display: flex; gap: 1.5rem; flex-wrap: wrap; }
.column { flex: 1 1 0; min-width: 12rem; }
.back-link { display: inline-block; margin-bottom: 1.5rem; }
.title-image { width: 100%; }
.card-container { display: grid; gap: 1.5rem; grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); }
.card { border: 1px solid #ddd; border-radius: 6px; overflow: hidden; }
.card__image { width: 100%; }
.card__heading, .card__content { padding: 0 1rem; }
""".strip()


def sanitize_slug(slug: str | None, fallback: str = "") -> str:
    """
    Make a slug safe for use as a file name.

    Every character outside [A-Za-z0-9_-] becomes "-" and the result is
    lower-cased. An empty result falls back to the raw fallback (the entry id).
    """
    cleaned = _UNSAFE_SLUG_CHARS.sub("-", slug or "").lower()
    return cleaned or fallback


def _style_tag(stylesheet_href: str | None) -> str:
    if stylesheet_href:
        return f'<link rel="stylesheet" href="{html.escape(stylesheet_href)}" />'
    return f"<style>\n{DEFAULT_STYLESHEET}\n</style>"


def generate_html(entry: Entry, stylesheet_href: str | None = None) -> str:
    """Render a complete HTML document for one entry."""
    title = html.escape(entry.title)
    body = render_blocks(entry.content)

    header_parts = [f"<h1>{title}</h1>"]
    if entry.title_image.url:
        header_parts.insert(
            0, f'<img class="title-image" src="{html.escape(entry.title_image.url)}" alt="{title}" />'
        )
    if entry.description:
        header_parts.append(f'<p class="description">{html.escape(entry.description)}</p>')
    header = "\n    ".join(header_parts)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title}</title>
  {_style_tag(stylesheet_href)}
</head>
<body>
  <a class="back-link" href="/">&larr; Back</a>
  <article>
    {header}
    {body}
  </article>
</body>
</html>
"""


def generate_index(entries: list[Entry], links: dict[str, str], stylesheet_href: str | None = None) -> str:
    """Render the card listing for all entries."""
    cards = []
    for entry in entries:
        image = ""
        if entry.title_image.url:
            image = (
                f'<img src="{html.escape(entry.title_image.url)}" '
                f'alt="{html.escape(entry.title)}" class="card__image">'
            )
        tags = html.escape(",".join(entry.tags))
        href = html.escape(links.get(entry.id, ""))
        cards.append(
            f'<article class="card" data-tags="{tags}">\n'
            f'  <a href="{href}">{image}</a>\n'
            f'  <h2 class="card__heading"><a href="{href}">{html.escape(entry.title)}</a></h2>\n'
            f'  <div class="card__content"><p>{html.escape(entry.description)}</p></div>\n'
            f"</article>"
        )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>Portfolio</title>
  {_style_tag(stylesheet_href)}
</head>
<body>
  <section class="card-container">
{chr(10).join(cards)}
  </section>
</body>
</html>
"""


@dataclass
class GenerationReport:
    """Files written by one generation run."""
    output_dir: Path
    written: list[Path] = field(default_factory=list)
    renamed: dict[str, str] = field(default_factory=dict)  # entry id -> disambiguated slug


def assign_file_slugs(entries: list[Entry], reserved: set[str] | None = None) -> dict[str, str]:
    """
    Map entry ids to unique sanitized slugs.

    The first entry to claim a slug keeps it; later entries sanitizing to the
    same slug get the first 8 characters of their id appended, plus a
    numeric suffix when that name is claimed too.
    """
    taken: set[str] = set(reserved or ())
    slugs: dict[str, str] = {}
    for entry in entries:
        slug = sanitize_slug(entry.slug, fallback=entry.id)
        if slug in taken:
            suffix = sanitize_slug(entry.id.replace("-", ""))[:8] or str(len(taken))
            candidate = f"{slug}-{suffix}"
            n = 2
            while candidate in taken:
                candidate = f"{slug}-{suffix}-{n}"
                n += 1
            logger.warning(
                f"Slug '{slug}' already used; writing '{entry.title}' as '{candidate}'"
            )
            slug = candidate
        taken.add(slug)
        slugs[entry.id] = slug
    return slugs


def write_pages(
    entries: list[Entry],
    output_dir: Path,
    stylesheet_href: str | None = None,
    write_index: bool = True,
) -> GenerationReport:
    """Write <output_dir>/<slug>.html for every entry, plus index.html."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    report = GenerationReport(output_dir=output_dir)

    slugs = assign_file_slugs(entries, reserved={"index"} if write_index else None)
    for entry in entries:
        slug = slugs[entry.id]
        if slug != sanitize_slug(entry.slug, fallback=entry.id):
            report.renamed[entry.id] = slug

        path = output_dir / f"{slug}.html"
        path.write_text(generate_html(entry, stylesheet_href), encoding="utf-8")
        report.written.append(path)
        logger.info(f"Generated: {path}")

    if write_index:
        links = {entry_id: f"{slug}.html" for entry_id, slug in slugs.items()}
        index_path = output_dir / "index.html"
        index_path.write_text(generate_index(entries, links, stylesheet_href), encoding="utf-8")
        report.written.append(index_path)
        logger.info(f"Generated: {index_path}")

    return report
