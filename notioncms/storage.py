"""
Durable object storage for relocated images.

Defines the interface every storage backend follows, plus Supabase Storage
and Bunny.net implementations over their REST APIs.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

import aiohttp

from .exceptions import StorageError

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}

ALLOWED_MIME_TYPES = sorted(set(MIME_TYPES.values()) | {"image/jpg"})
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def content_type_for(file_name: str) -> str:
    """Guess an image MIME type from a file name, defaulting to JPEG."""
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return MIME_TYPES.get(extension, "image/jpeg")


class ObjectStorage(ABC):
    """
    Abstract base class for durable storage backends.

    Implementations upload raw bytes under a bucket-relative path and return
    a stable public URL for them.
    """

    def __init__(self, timeout: int = 30, session: aiohttp.ClientSession | None = None):
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name (e.g., 'supabase', 'bunny')."""
        pass

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """
        Upload bytes and return their public URL.

        Args:
            path: Destination path relative to the bucket/zone root
            data: File contents
            content_type: MIME type (guessed from the path if omitted)

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the backend rejects the upload
        """
        pass

    async def ensure_bucket(self) -> None:
        """Create the destination container if the backend needs one."""
        return None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None


class SupabaseStorage(ObjectStorage):
    """Supabase Storage backend (public bucket)."""

    def __init__(
        self,
        project_url: str,
        access_key: str,
        bucket: str = "notion-images",
        timeout: int = 30,
        session: aiohttp.ClientSession | None = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self.project_url = project_url.rstrip("/")
        self.bucket = bucket
        self.headers = {
            "Authorization": f"Bearer {access_key}",
            "apikey": access_key,
        }
        self._bucket_checked = False

    @property
    def name(self) -> str:
        return "supabase"

    @property
    def api_url(self) -> str:
        return f"{self.project_url}/storage/v1"

    def public_url(self, path: str) -> str:
        return f"{self.api_url}/object/public/{self.bucket}/{path}"

    async def ensure_bucket(self) -> None:
        """Create the public bucket on first use if it does not exist."""
        if self._bucket_checked:
            return

        session = self._get_session()
        async with session.get(f"{self.api_url}/bucket", headers=self.headers) as resp:
            buckets = await resp.json(content_type=None) if resp.status < 400 else []

        if not any(b.get("name") == self.bucket for b in buckets or []):
            logger.info(f"Creating bucket: {self.bucket}")
            async with session.post(
                f"{self.api_url}/bucket",
                headers=self.headers,
                json={
                    "id": self.bucket,
                    "name": self.bucket,
                    "public": True,
                    "allowed_mime_types": ALLOWED_MIME_TYPES,
                    "file_size_limit": MAX_FILE_SIZE,
                },
            ) as resp:
                if resp.status >= 400:
                    raise StorageError(f"Failed to create bucket: {await resp.text()}")

        self._bucket_checked = True

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        await self.ensure_bucket()

        logger.info(f"Uploading to Supabase: {path}")
        session = self._get_session()
        async with session.post(
            f"{self.api_url}/object/{self.bucket}/{path}",
            data=data,
            headers={
                **self.headers,
                "Content-Type": content_type or content_type_for(path),
                "x-upsert": "true",
            },
        ) as resp:
            if resp.status >= 400:
                raise StorageError(f"Failed to upload to Supabase: {resp.status} {await resp.text()}")

        url = self.public_url(path)
        logger.info(f"Uploaded successfully: {url}")
        return url


class BunnyStorage(ObjectStorage):
    """Bunny.net edge storage backend served through its pull zone."""

    STORAGE_API_URL = "https://storage.bunnycdn.com"

    def __init__(
        self,
        access_key: str,
        storage_zone: str,
        cdn_base_url: str,
        root_folder: str = "",
        timeout: int = 30,
        session: aiohttp.ClientSession | None = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self.access_key = access_key
        self.storage_zone = storage_zone
        self.cdn_base_url = cdn_base_url.rstrip("/")
        self.root_folder = root_folder.strip("/")

    @property
    def name(self) -> str:
        return "bunny"

    def _full_path(self, path: str) -> str:
        return f"{self.root_folder}/{path}" if self.root_folder else path

    def public_url(self, path: str) -> str:
        return f"{self.cdn_base_url}/{self._full_path(path)}"

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        full_path = self._full_path(path)
        logger.info(f"Uploading to Bunny.net: {full_path}")

        session = self._get_session()
        async with session.put(
            f"{self.STORAGE_API_URL}/{self.storage_zone}/{full_path}",
            data=data,
            headers={
                "AccessKey": self.access_key,
                "Content-Type": "application/octet-stream",
            },
        ) as resp:
            if resp.status >= 400:
                raise StorageError(f"Failed to upload to Bunny.net: {resp.status} {await resp.text()}")

        url = self.public_url(path)
        logger.info(f"Uploaded successfully: {url}")
        return url


class StorageType(Enum):
    """Available storage backends."""
    SUPABASE = "supabase"
    BUNNY = "bunny"


def create_storage(storage_type: StorageType | str, **kwargs) -> ObjectStorage:
    """
    Create a storage backend instance.

    Raises:
        ValueError: If storage_type is unknown
    """
    if isinstance(storage_type, str):
        try:
            storage_type = StorageType(storage_type.lower())
        except ValueError:
            raise ValueError(
                f"Unknown storage backend: {storage_type}. "
                f"Available: {[s.value for s in StorageType]}"
            )

    if storage_type == StorageType.SUPABASE:
        return SupabaseStorage(
            project_url=kwargs["project_url"],
            access_key=kwargs["access_key"],
            bucket=kwargs.get("bucket") or "notion-images",
            timeout=kwargs.get("timeout", 30),
        )
    elif storage_type == StorageType.BUNNY:
        return BunnyStorage(
            access_key=kwargs["access_key"],
            storage_zone=kwargs["storage_zone"],
            cdn_base_url=kwargs["cdn_base_url"],
            root_folder=kwargs.get("root_folder") or "",
            timeout=kwargs.get("timeout", 30),
        )
    else:
        raise ValueError(f"Unknown storage backend: {storage_type}")


def get_storage_from_config(config) -> ObjectStorage | None:
    """Build the configured backend, or None when it is unknown or lacks credentials."""
    backend = config.storage_backend()
    if backend is None:
        logger.warning(
            f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}', "
            f"available: {[s.value for s in StorageType]}"
        )
        return None
    if not config.has_storage_config():
        return None

    if backend == StorageType.BUNNY.value:
        return create_storage(
            StorageType.BUNNY,
            access_key=config.BUNNY_ACCESS_KEY,
            storage_zone=config.BUNNY_STORAGE_ZONE,
            cdn_base_url=config.BUNNY_CDN_URL,
            root_folder=config.BUNNY_ROOT_FOLDER,
            timeout=config.HTTP_TIMEOUT,
        )
    return create_storage(
        StorageType.SUPABASE,
        project_url=config.SUPABASE_PROJECT_URL,
        access_key=config.SUPABASE_ACCESS_KEY,
        bucket=config.SUPABASE_BUCKET,
        timeout=config.HTTP_TIMEOUT,
    )
