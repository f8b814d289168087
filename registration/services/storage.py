import logging
import mimetypes
import uuid
from urllib.parse import unquote, urlparse

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


class DjangoStorage:
    """
    Storage collaborator backed by Django's configured file storage.

    Objects are addressed by the URL the storage backend hands out, so the
    workflow never needs to know whether files live on disk, in memory or in
    a bucket.
    """

    def __init__(self, storage=None, folder: str = "documents"):
        self.storage = storage or default_storage
        self.folder = folder.strip("/")

    def store(self, content: bytes, content_type: str, name: str = None) -> str:
        """
        Save bytes and return the URL of the stored object.

        Args:
            content: Raw file bytes
            content_type: MIME type, used to pick an extension when name is missing
            name: Optional object name inside the folder

        Returns:
            str: Public URL of the stored object
        """
        if not name:
            extension = mimetypes.guess_extension(content_type or "") or ""
            name = f"{uuid.uuid4().hex}{extension}"
        saved_name = self.storage.save(f"{self.folder}/{name}", ContentFile(content))
        url = self.storage.url(saved_name)
        logger.info(f"Stored {len(content)} bytes ({content_type}) at {saved_name}")
        return url

    def delete(self, url: str) -> None:
        """Remove the object behind a URL previously returned by store()."""
        name = self._name_from_url(url)
        if name and self.storage.exists(name):
            self.storage.delete(name)
            logger.info(f"Deleted stored object {name}")

    def _name_from_url(self, url: str) -> str:
        if not url:
            return ""
        base_url = getattr(self.storage, "base_url", None)
        if base_url and url.startswith(base_url):
            return unquote(url[len(base_url):])
        return unquote(urlparse(url).path).lstrip("/")
