import io
import logging
import mimetypes
from typing import List, Tuple

from django.conf import settings
from django.core.files.base import File
from django.core.files.storage import Storage
from django.utils import timezone
from django.utils.deconstruct import deconstructible
from supabase import create_client

logger = logging.getLogger(__name__)

_supabase_client = None


def _get_client():
    global _supabase_client  # noqa: PLW0603
    if _supabase_client is None:
        url = getattr(settings, "SUPABASE_PROJECT_URL", "")
        key = (
            getattr(settings, "SUPABASE_SERVICE_ROLE_KEY", None)
            or getattr(settings, "SUPABASE_ANON_KEY", "")
        )
        if not url or not key:
            raise RuntimeError("SUPABASE_PROJECT_URL and service/anon key must be set")
        _supabase_client = create_client(url, key)
    return _supabase_client


def reset_client() -> None:
    """Drop the cached client so the next call rebuilds it from settings."""
    global _supabase_client  # noqa: PLW0603
    _supabase_client = None


@deconstructible
class SupabaseMediaStorage(Storage):
    """Django Storage backend for a public Supabase Storage bucket.

    Files are addressed by their bucket key; ``url()`` returns the public
    object URL so no round-trip is needed to resolve it.
    """

    def __init__(self, bucket: str = None) -> None:
        super().__init__()
        self.bucket_name = bucket

    @property
    def bucket(self) -> str:
        name = self.bucket_name or getattr(settings, "SUPABASE_BUCKET", "images")
        if not name:
            raise RuntimeError("SUPABASE_BUCKET must be set")
        return name

    @property
    def public_base(self) -> str:
        base = getattr(settings, "SUPABASE_PROJECT_URL", "")
        if not base:
            raise RuntimeError("SUPABASE_PROJECT_URL must be set to the project API URL")
        return f"{base.rstrip('/')}/storage/v1/object/public/{self.bucket}"

    def _full_path(self, name: str) -> str:
        return name.lstrip("/")

    def _open(self, name: str, mode: str = "rb") -> File:
        client = _get_client()
        path = self._full_path(name)
        resp = client.storage.from_(self.bucket).download(path)
        data = getattr(resp, "content", None) or resp
        return File(io.BytesIO(data), name=name)

    def _save(self, name: str, content: File) -> str:
        client = _get_client()
        path = self._full_path(name)
        if hasattr(content, "seek"):
            content.seek(0)
        data = content.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        ctype = (
            getattr(content, "content_type", None)
            or mimetypes.guess_type(path)[0]
            or "application/octet-stream"
        )
        client.storage.from_(self.bucket).upload(path, data, {"content-type": ctype})
        logger.info("Uploaded %s to bucket %s (%d bytes)", path, self.bucket, len(data))
        return name

    def get_available_name(self, name, max_length=None):
        # Upload keys carry a random component, collisions are not expected.
        return name

    def exists(self, name: str) -> bool:
        client = _get_client()
        path = self._full_path(name)
        from_pos = path.rfind("/")
        prefix = path[:from_pos] if from_pos != -1 else ""
        target = path[from_pos + 1 :] if from_pos != -1 else path
        items = client.storage.from_(self.bucket).list(prefix or None)
        for it in items:
            item_name = it.get("name") if isinstance(it, dict) else getattr(it, "name", None)
            if item_name == target:
                return True
        return False

    def url(self, name: str) -> str:
        return f"{self.public_base}/{self._full_path(name)}"

    def delete(self, name: str) -> None:
        client = _get_client()
        path = self._full_path(name)
        client.storage.from_(self.bucket).remove([path])
        logger.info("Removed %s from bucket %s", path, self.bucket)

    def size(self, name: str) -> int:
        return 0

    def path(self, name: str) -> str:
        raise NotImplementedError("Supabase storage has no local path")

    def listdir(self, path: str) -> Tuple[List[str], List[str]]:
        client = _get_client()
        files: List[str] = []
        dirs: List[str] = []
        for it in client.storage.from_(self.bucket).list(path or None):
            # Supabase returns objects with name; folders are not flagged reliably
            files.append(it.get("name", "") if isinstance(it, dict) else getattr(it, "name", ""))
        return dirs, files

    def get_modified_time(self, name: str):
        return timezone.now()

    def get_created_time(self, name: str):
        return timezone.now()

    def get_accessed_time(self, name: str):
        return timezone.now()
