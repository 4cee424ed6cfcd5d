"""
Error types.

Raised by the Notion client, the storage backends, the image pipeline and
the tag schema lookup. Routes translate them into JSON error responses.
"""


class NotionAPIError(Exception):
    """Raised when the Notion API answers with a non-2xx status."""

    def __init__(self, status: int, message: str, code: str | None = None):
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"Notion API error {status}: {message}")


class StorageError(Exception):
    """Raised when an upload to durable storage fails."""

    pass


class ImageDownloadError(Exception):
    """Raised when an image cannot be downloaded."""

    pass


class TagPropertyMissing(LookupError):
    """The database schema has no "tag" property."""

    pass


class TagPropertyTypeError(TypeError):
    """The "tag" property exists but is not a multi_select."""

    pass
