"""
Typed views over Notion API payloads.

The Notion API returns loosely shaped JSON. These dataclasses pin down the
parts the renderer, page generator and image relocator rely on. Every
constructor accepts the raw payload and tolerates missing keys; unknown
block types map to BlockType.OTHER so new Notion features render nothing
instead of raising.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ─────────────────────────────────────────────────────────────
# Rich text
# ─────────────────────────────────────────────────────────────

@dataclass
class Annotations:
    """Style flags attached to a rich text run."""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    color: str = "default"

    @classmethod
    def from_api(cls, raw: dict | None) -> "Annotations":
        raw = raw or {}
        return cls(
            bold=bool(raw.get("bold")),
            italic=bool(raw.get("italic")),
            underline=bool(raw.get("underline")),
            strikethrough=bool(raw.get("strikethrough")),
            code=bool(raw.get("code")),
            color=raw.get("color") or "default",
        )


@dataclass
class RichTextRun:
    """A span of plain text with its annotations."""
    plain_text: str
    annotations: Annotations = field(default_factory=Annotations)
    href: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "RichTextRun":
        text = raw.get("plain_text")
        if text is None:
            # Payloads we build ourselves (captions) only carry text.content
            text = (raw.get("text") or {}).get("content", "")
        return cls(
            plain_text=text or "",
            annotations=Annotations.from_api(raw.get("annotations")),
            href=raw.get("href"),
        )


def parse_rich_text(raw: list | None) -> list[RichTextRun]:
    """Parse a list of raw rich text objects."""
    return [RichTextRun.from_api(item) for item in raw or [] if isinstance(item, dict)]


def plain_text(runs: list[RichTextRun]) -> str:
    """Concatenate the unstyled text of several runs."""
    return "".join(run.plain_text for run in runs)


# ─────────────────────────────────────────────────────────────
# Media references
# ─────────────────────────────────────────────────────────────

class ImageKind(Enum):
    """Where the bytes behind a media reference live."""
    EXTERNAL = "external"        # Durable URL hosted elsewhere
    FILE = "file"                # Notion hosted, time-limited URL
    FILE_UPLOAD = "file_upload"  # Uploaded through the API; left alone
    NONE = "none"


@dataclass
class ImageReference:
    """A media reference from an image/video block or a files property."""
    kind: ImageKind = ImageKind.NONE
    url: str = ""
    caption: list[RichTextRun] = field(default_factory=list)
    name: str | None = None

    @property
    def is_temporary(self) -> bool:
        """True when the reference must be relocated before its URL expires."""
        return self.kind == ImageKind.FILE and bool(self.url)

    @property
    def is_external(self) -> bool:
        return self.kind == ImageKind.EXTERNAL

    @classmethod
    def from_api(cls, raw: dict | None) -> "ImageReference":
        if not raw:
            return cls()
        caption = parse_rich_text(raw.get("caption"))
        name = raw.get("name")

        try:
            kind = ImageKind(raw.get("type", "none"))
        except ValueError:
            kind = ImageKind.NONE

        # Older payloads omit "type"; infer it from whichever key is present
        if kind == ImageKind.NONE:
            if raw.get("external"):
                kind = ImageKind.EXTERNAL
            elif raw.get("file"):
                kind = ImageKind.FILE

        url = ""
        if kind == ImageKind.EXTERNAL:
            url = (raw.get("external") or {}).get("url", "")
        elif kind == ImageKind.FILE:
            url = (raw.get("file") or {}).get("url", "")

        return cls(kind=kind, url=url or "", caption=caption, name=name)

    def mark_external(self, url: str) -> None:
        """Point this reference at a durable URL."""
        self.kind = ImageKind.EXTERNAL
        self.url = url


# ─────────────────────────────────────────────────────────────
# Blocks
# ─────────────────────────────────────────────────────────────

class BlockType(Enum):
    """Block types the renderer knows about."""
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    QUOTE = "quote"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "BlockType":
        try:
            block_type = cls(value)
        except ValueError:
            return cls.OTHER
        return block_type


MEDIA_TYPES = {BlockType.IMAGE, BlockType.VIDEO}


@dataclass
class ContentBlock:
    """One node of an entry's content tree."""
    id: str
    type: BlockType
    type_name: str
    has_children: bool = False
    rich_text: list[RichTextRun] = field(default_factory=list)
    language: str | None = None
    media: ImageReference | None = None
    children: list["ContentBlock"] | None = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: dict) -> "ContentBlock":
        type_name = raw.get("type") or "unsupported"
        block_type = BlockType.parse(type_name)
        payload = raw.get(type_name) or {}

        media = None
        rich_text: list[RichTextRun] = []
        if block_type in MEDIA_TYPES:
            media = ImageReference.from_api(payload)
        else:
            rich_text = parse_rich_text(payload.get("rich_text"))

        children = None
        if raw.get("children") is not None:
            children = [cls.from_api(child) for child in raw["children"]]

        return cls(
            id=raw.get("id", ""),
            type=block_type,
            type_name=type_name,
            has_children=bool(raw.get("has_children")),
            rich_text=rich_text,
            language=payload.get("language") if block_type == BlockType.CODE else None,
            media=media,
            children=children,
            raw=raw,
        )

    def iter_tree(self):
        """Yield this block and all its descendants depth-first."""
        yield self
        for child in self.children or []:
            yield from child.iter_tree()

    def to_dict(self) -> dict:
        """Raw API payload with resolved children attached."""
        data = {key: value for key, value in self.raw.items() if key != "children"}
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


# ─────────────────────────────────────────────────────────────
# Entries
# ─────────────────────────────────────────────────────────────

def _property_text(prop: dict | None) -> str:
    """Display text of a title/rich_text property, every run concatenated."""
    if not prop:
        return ""
    runs = prop.get("title") or prop.get("rich_text") or []
    return "".join(run.get("plain_text") or "" for run in runs if isinstance(run, dict))


def _property_number(prop: dict | None) -> float | None:
    if not prop:
        return None
    value = prop.get("number")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


@dataclass
class Entry:
    """A published row of the Notion database."""
    id: str
    title: str = "Untitled"
    slug: str = ""
    description: str = ""
    title_image: ImageReference = field(default_factory=ImageReference)
    ordering: float | None = None
    status: str | None = None
    tags: list[str] = field(default_factory=list)
    content: list[ContentBlock] = field(default_factory=list)
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: dict) -> "Entry":
        props = raw.get("properties") or {}
        page_id = raw.get("id", "")

        files = (props.get("titleImage") or {}).get("files") or []
        title_image = ImageReference.from_api(files[0]) if files else ImageReference()

        status = (props.get("Status") or {}).get("status") or {}
        tags = [
            option.get("name", "")
            for option in (props.get("tag") or {}).get("multi_select") or []
        ]

        return cls(
            id=page_id,
            title=_property_text(props.get("Name")) or "Untitled",
            slug=_property_text(props.get("slug")) or page_id,
            description=_property_text(props.get("description")),
            title_image=title_image,
            ordering=_property_number(props.get("ordering")),
            status=status.get("name"),
            tags=tags,
            raw=raw,
        )

    @classmethod
    def from_page_dict(cls, data: dict) -> "Entry":
        """Inverse of to_page_dict, for pages served by a deployed getPage endpoint."""
        title_image = ImageReference()
        if data.get("titleImage"):
            title_image = ImageReference(kind=ImageKind.EXTERNAL, url=data["titleImage"])
        page_id = data.get("page_id", "")
        return cls(
            id=page_id,
            title=data.get("title") or "Untitled",
            slug=data.get("slug") or page_id,
            description=data.get("description") or "",
            title_image=title_image,
            content=[ContentBlock.from_api(block) for block in data.get("content") or []],
            raw=data,
        )

    def iter_blocks(self):
        """Yield every block of the content tree depth-first."""
        for block in self.content:
            yield from block.iter_tree()

    def to_page_dict(self) -> dict[str, Any]:
        """Shape served by the getPage endpoint."""
        return {
            "page_id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "titleImage": self.title_image.url if self.title_image.is_external else "",
            "content": [block.to_dict() for block in self.content],
        }


@dataclass
class TagOption:
    """A declared choice of the multi-select tag property."""
    name: str
    color: str = "default"

    @classmethod
    def from_api(cls, raw: dict) -> "TagOption":
        return cls(name=raw.get("name", ""), color=raw.get("color") or "default")
