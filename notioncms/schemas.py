"""
Pydantic models for API responses.
"""

from pydantic import BaseModel

from .captions import CaptionReport
from .images import RelocationReport
from .models import Entry, TagOption


# ─────────────────────────────────────────────────────────────
# Content Schemas
# ─────────────────────────────────────────────────────────────

class PageResponse(BaseModel):
    """One entry with its resolved content tree."""
    page_id: str
    title: str
    slug: str
    description: str
    titleImage: str
    content: list[dict]

    @classmethod
    def from_entry(cls, entry: Entry) -> "PageResponse":
        return cls(**entry.to_page_dict())


class TagOptionResponse(BaseModel):
    """A declared tag choice."""
    name: str
    color: str

    @classmethod
    def from_option(cls, option: TagOption) -> "TagOptionResponse":
        return cls(name=option.name, color=option.color)


class TagOptionsResponse(BaseModel):
    """Tag options for the front-end filter."""
    success: bool = True
    tagOptions: list[TagOptionResponse]
    tagChoicesString: str
    count: int

    @classmethod
    def from_options(cls, options: list[TagOption]) -> "TagOptionsResponse":
        return cls(
            tagOptions=[TagOptionResponse.from_option(o) for o in options],
            tagChoicesString=", ".join(o.name for o in options),
            count=len(options),
        )


# ─────────────────────────────────────────────────────────────
# Maintenance Schemas
# ─────────────────────────────────────────────────────────────

class RelocationResponse(BaseModel):
    """Summary of an image relocation run."""
    success: bool = True
    message: str
    processedPages: int
    uploadedImages: int
    failedImages: int
    uploadedUrls: list[dict]

    @classmethod
    def from_report(cls, report: RelocationReport) -> "RelocationResponse":
        return cls(
            message=f"Processed {report.processed_pages} pages",
            processedPages=report.processed_pages,
            uploadedImages=len(report.uploaded),
            failedImages=len(report.failed),
            uploadedUrls=[image.to_dict() for image in report.uploaded],
        )


class CaptionResponse(BaseModel):
    """Summary of a caption generation run."""
    success: bool = True
    message: str
    processedPages: int
    processedImages: int
    updatedImages: int
    failedImages: int
    images: list[dict]

    @classmethod
    def from_report(cls, report: CaptionReport) -> "CaptionResponse":
        return cls(
            message=f"Processed {len(report.images)} images across {report.processed_pages} pages",
            processedPages=report.processed_pages,
            processedImages=len(report.images),
            updatedImages=len(report.updated),
            failedImages=len(report.failed),
            images=[image.to_dict() for image in report.images],
        )


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str
    stack: str | None = None
