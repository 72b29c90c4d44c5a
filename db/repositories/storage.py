"""
Object storage backends for the import bucket.

Uploaded workbooks are read from here and, when enabled, the derived
`processed/{file_id}.json` artifact is written back.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import quote

import requests

from db.repositories.errors import ObjectStorageError
from db.repositories.types import StoredObject

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """
    Path-addressed blob store scoped to one bucket.
    """

    bucket: str

    def download(self, path: str) -> bytes:
        ...

    def upload(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObject:
        ...


def _normalize_object_path(path: str) -> str:
    """
    Reject absolute paths and parent traversal; return a clean posix path.
    """

    candidate = PurePosixPath((path or "").strip().replace("\\", "/"))
    parts = [part for part in candidate.parts if part not in ("", ".", "/")]
    if not parts or candidate.is_absolute() or ".." in parts:
        raise ObjectStorageError(f"Invalid object path: {path!r}")
    return "/".join(parts)


class LocalObjectStorage:
    """
    Filesystem-backed bucket: `<root_dir>/<bucket>/<path>`.
    """

    def __init__(self, root_dir: str | Path = "data/storage", bucket: str = "metrics-import") -> None:
        self.bucket = bucket
        self._bucket_dir = Path(root_dir) / bucket

    def download(self, path: str) -> bytes:
        target = self._bucket_dir / _normalize_object_path(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise ObjectStorageError(f"Object not found: {self.bucket}/{path}") from exc
        except OSError as exc:
            raise ObjectStorageError(f"Failed to read object {self.bucket}/{path}: {exc}") from exc

    def upload(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObject:
        relative = _normalize_object_path(path)
        target = self._bucket_dir / relative
        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise ObjectStorageError(f"Failed to write object {self.bucket}/{path}: {exc}") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        return StoredObject(
            bucket=self.bucket,
            path=relative,
            size_bytes=len(content),
            content_type=content_type,
        )


class HTTPObjectStorage:
    """
    Storage REST API backend (`/storage/v1/object/{bucket}/{path}`).
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        bucket: str = "metrics-import",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.bucket = bucket
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _object_url(self, path: str) -> str:
        relative = _normalize_object_path(path)
        return f"{self._base_url}/storage/v1/object/{quote(self.bucket)}/{quote(relative)}"

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "apikey": self._api_key,
        }
        if extra:
            headers.update(extra)
        return headers

    def download(self, path: str) -> bytes:
        url = self._object_url(path)
        try:
            response = self._session.get(url, headers=self._headers(), timeout=self._timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Object download failed bucket=%s path=%s error=%s", self.bucket, path, exc)
            raise ObjectStorageError(f"Failed to download {self.bucket}/{path}: {exc}") from exc
        return response.content

    def upload(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObject:
        url = self._object_url(path)
        headers = self._headers(
            {
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "true",
            }
        )
        try:
            response = self._session.post(
                url,
                data=content,
                headers=headers,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Object upload failed bucket=%s path=%s error=%s", self.bucket, path, exc)
            raise ObjectStorageError(f"Failed to upload {self.bucket}/{path}: {exc}") from exc

        return StoredObject(
            bucket=self.bucket,
            path=_normalize_object_path(path),
            size_bytes=len(content),
            content_type=content_type,
        )
