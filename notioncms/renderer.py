"""
Block Renderer - Turn Notion content blocks into HTML fragments.

Pure functions only: no I/O, and the same tree always renders to the same
string.
"""

import html
from urllib.parse import parse_qs, urlparse

from .models import BlockType, ContentBlock, RichTextRun, plain_text

YOUTUBE_EMBED = "https://www.youtube.com/embed/{video_id}"
VIMEO_EMBED = "https://player.vimeo.com/video/{video_id}"

LIST_TAGS = {
    BlockType.BULLETED_LIST_ITEM: "ul",
    BlockType.NUMBERED_LIST_ITEM: "ol",
}

TEXT_TAGS = {
    BlockType.PARAGRAPH: "p",
    BlockType.HEADING_1: "h1",
    BlockType.HEADING_2: "h2",
    BlockType.HEADING_3: "h3",
    BlockType.QUOTE: "blockquote",
}


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


def _color_style(color: str) -> str:
    if color.endswith("_background"):
        return f"background-color:{color[:-len('_background')]}"
    return f"color:{color}"


def render_run(run: RichTextRun) -> str:
    """Render one run, wrapping innermost-first in each active annotation."""
    text = _escape(run.plain_text)
    marks = run.annotations
    if marks.bold:
        text = f"<strong>{text}</strong>"
    if marks.italic:
        text = f"<em>{text}</em>"
    if marks.underline:
        text = f"<u>{text}</u>"
    if marks.strikethrough:
        text = f"<s>{text}</s>"
    if marks.code:
        text = f"<code>{text}</code>"
    if marks.color and marks.color != "default":
        text = f'<span style="{_escape(_color_style(marks.color))}">{text}</span>'
    if run.href:
        text = f'<a href="{_escape(run.href)}">{text}</a>'
    return text


def render_rich_text(runs: list[RichTextRun]) -> str:
    return "".join(render_run(run) for run in runs)


# ─────────────────────────────────────────────────────────────
# Video URLs
# ─────────────────────────────────────────────────────────────

def _on_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith(f".{domain}")


def video_embed_url(url: str) -> str:
    """
    Rewrite a YouTube or Vimeo watch URL to its embeddable player URL.

    Any other URL is returned unchanged.
    """
    parsed = urlparse(url)
    host = parsed.hostname or ""

    if _on_domain(host, "youtu.be"):
        video_id = parsed.path.strip("/").split("/")[0]
        if video_id:
            return YOUTUBE_EMBED.format(video_id=video_id)
    elif _on_domain(host, "youtube.com"):
        video_id = parse_qs(parsed.query).get("v", [None])[0]
        if video_id:
            return YOUTUBE_EMBED.format(video_id=video_id)
    elif _on_domain(host, "vimeo.com") and host != "player.vimeo.com":
        video_id = parsed.path.strip("/").split("/")[0]
        if video_id:
            return VIMEO_EMBED.format(video_id=video_id)

    return url


# ─────────────────────────────────────────────────────────────
# Blocks
# ─────────────────────────────────────────────────────────────

def _render_image(block: ContentBlock) -> str:
    media = block.media
    if media is None or not media.url:
        return ""
    alt = _escape(plain_text(media.caption))
    img = f'<img src="{_escape(media.url)}" alt="{alt}" />'
    if not media.caption:
        return img
    return f"<figure>{img}<figcaption>{render_rich_text(media.caption)}</figcaption></figure>"


def _render_video(block: ContentBlock) -> str:
    media = block.media
    if media is None or not media.url:
        return ""
    src = _escape(video_embed_url(media.url))
    iframe = (
        f'<iframe src="{src}" frameborder="0" '
        f'allow="autoplay; fullscreen; picture-in-picture" allowfullscreen></iframe>'
    )
    caption = ""
    if media.caption:
        caption = f"<figcaption>{render_rich_text(media.caption)}</figcaption>"
    return f'<figure class="video">{iframe}{caption}</figure>'


def _render_code(block: ContentBlock) -> str:
    code = _escape(plain_text(block.rich_text))
    if block.language:
        return f'<pre><code class="language-{_escape(block.language)}">{code}</code></pre>'
    return f"<pre><code>{code}</code></pre>"


def render_block(block: ContentBlock) -> str:
    """Render a single block (and its resolved children) to HTML."""
    children = block.children or []

    if block.type in TEXT_TAGS:
        tag = TEXT_TAGS[block.type]
        return f"<{tag}>{render_rich_text(block.rich_text)}</{tag}>"

    if block.type in LIST_TAGS:
        nested = render_blocks(children) if children else ""
        return f"<li>{render_rich_text(block.rich_text)}{nested}</li>"

    if block.type == BlockType.CODE:
        return _render_code(block)
    if block.type == BlockType.IMAGE:
        return _render_image(block)
    if block.type == BlockType.VIDEO:
        return _render_video(block)
    if block.type == BlockType.COLUMN_LIST:
        return f'<div class="columns">{render_blocks(children)}</div>'
    if block.type == BlockType.COLUMN:
        return f'<div class="column">{render_blocks(children)}</div>'

    # Unknown or unsupported type: keep whatever it contains, drop the rest
    if children:
        return f'<div class="block-{_escape(block.type_name)}">{render_blocks(children)}</div>'
    return ""


def render_blocks(blocks: list[ContentBlock]) -> str:
    """
    Render a sibling sequence.

    Consecutive list items of the same kind are grouped into one <ul>/<ol>.
    """
    parts: list[str] = []
    open_list: str | None = None

    for block in blocks:
        list_tag = LIST_TAGS.get(block.type)
        if list_tag != open_list:
            if open_list:
                parts.append(f"</{open_list}>")
            if list_tag:
                parts.append(f"<{list_tag}>")
            open_list = list_tag

        fragment = render_block(block)
        if fragment:
            parts.append(fragment)

    if open_list:
        parts.append(f"</{open_list}>")

    return "\n".join(parts)
