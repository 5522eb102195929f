"""S3-compatible object storage backend using s3fs."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from doclib_export._backend import Backend
from doclib_export._errors import (
    BackendUnavailable,
    NotFound,
    PermissionDenied,
    RemoteStoreError,
)
from doclib_export._models import FileInfo
from doclib_export._path import RemotePath

if TYPE_CHECKING:
    from collections.abc import Iterator
    from urllib.parse import SplitResult

    from doclib_export._types import BackendOptions


class S3Backend(Backend):
    """S3-compatible object storage backend using s3fs.

    A site is a key prefix inside a bucket; containers are the prefixes
    directly below it.

    :param bucket: S3 bucket name (required, non-empty).
    :param endpoint_url: Custom endpoint URL (e.g. for MinIO).
    :param key: AWS access key ID.
    :param secret: AWS secret access key.
    :param region_name: AWS region name.
    :param anon: Use anonymous access for public buckets.
    :param client_options: Additional options passed to s3fs.
    """

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        key: str | None = None,
        secret: str | None = None,
        region_name: str | None = None,
        anon: bool = False,
        client_options: dict[str, Any] | None = None,
    ) -> None:
        if not bucket or not bucket.strip():
            raise ValueError("bucket must be a non-empty string")
        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._key = key
        self._secret = secret
        self._region_name = region_name
        self._anon = anon
        self._client_options = client_options or {}
        self._fs_instance: Any = None

    @property
    def name(self) -> str:
        return "s3"

    @classmethod
    def from_url(cls, url: SplitResult, options: BackendOptions) -> tuple[Backend, str]:
        return cls(bucket=url.netloc, **options), url.path.strip("/")  # type: ignore[arg-type]

    # region: lazy filesystem

    @property
    def _fs(self) -> Any:
        if self._fs_instance is None:
            import s3fs  # type: ignore[import-untyped]

            opts: dict[str, Any] = dict(self._client_options)
            if self._endpoint_url is not None:
                opts["endpoint_url"] = self._endpoint_url
            if self._key is not None:
                opts["key"] = self._key
            if self._secret is not None:
                opts["secret"] = self._secret
            if self._region_name is not None:
                client_kwargs: dict[str, Any] = opts.setdefault("client_kwargs", {})
                client_kwargs["region_name"] = self._region_name
            opts.setdefault("anon", self._anon)
            self._fs_instance = s3fs.S3FileSystem(**opts)
        return self._fs_instance

    # endregion

    # region: path helpers

    def _s3_path(self, path: str) -> str:
        if path:
            return f"{self._bucket}/{path}"
        return self._bucket

    def _rel_path(self, s3_path: str) -> str:
        prefix = f"{self._bucket}/"
        s3_path = s3_path.rstrip("/")
        if s3_path.startswith(prefix):
            return s3_path[len(prefix) :]
        return s3_path

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map s3fs/botocore exceptions to doclib_export errors."""
        try:
            yield
        except RemoteStoreError:
            raise
        except FileNotFoundError:
            raise NotFound(f"Not found: {path}", path=path, backend=self.name) from None
        except PermissionError:  # pragma: no cover -- moto doesn't raise PermissionError
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        except Exception as exc:
            raise self._classify_error(exc, path) from None

    def _classify_error(self, exc: Exception, path: str) -> RemoteStoreError:
        """Classify an unknown exception into a doclib_export error type."""
        msg = str(exc).lower()
        if "404" in msg or "nosuchkey" in msg or "nosuchbucket" in msg or "not found" in msg:
            return NotFound(f"Not found: {path}", path=path, backend=self.name)
        if "403" in msg or "accessdenied" in msg or "access denied" in msg:
            return PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name)
        if any(kw in msg for kw in ("endpoint", "connect", "timeout", "dns", "name or service")):
            return BackendUnavailable(str(exc), path=path, backend=self.name)
        return RemoteStoreError(str(exc), path=path, backend=self.name)

    # endregion

    def _info_to_fileinfo(self, info: dict[str, Any], path: str) -> FileInfo:
        """Convert an s3fs info dict to a FileInfo."""
        size = info.get("size", info.get("Size", 0)) or 0
        modified = info.get("LastModified", info.get("last_modified"))
        if isinstance(modified, str):
            modified = datetime.fromisoformat(modified)
        if modified is not None and modified.tzinfo is None:
            modified = modified.replace(tzinfo=timezone.utc)
        if modified is None:
            modified = datetime.now(tz=timezone.utc)
        etag = info.get("ETag")
        return FileInfo(
            path=RemotePath(path),
            name=path.rsplit("/", 1)[-1],
            size=int(size),
            modified_at=modified,
            checksum=etag.strip('"') if isinstance(etag, str) else None,
        )

    def _ls(self, path: str) -> list[dict[str, Any]]:
        with self._errors(path):
            s3_path = self._s3_path(path)
            try:
                entries: list[dict[str, Any]] = self._fs.ls(s3_path, detail=True)
            except FileNotFoundError:
                return []
            return sorted(entries, key=lambda info: info["name"])

    def is_folder(self, path: str) -> bool:
        with self._errors(path):
            try:
                info = self._fs.info(self._s3_path(path))
                return bool(info.get("type") == "directory")
            except FileNotFoundError:
                return False

    def list_files(self, path: str) -> Iterator[FileInfo]:
        for info in self._ls(path):
            rel = self._rel_path(info["name"])
            # Zero-byte "folder/" marker objects show up as files named like their prefix.
            if info.get("type") == "file" and rel != path:
                yield self._info_to_fileinfo(info, rel)

    def list_folders(self, path: str) -> Iterator[str]:
        for info in self._ls(path):
            if info.get("type") == "directory":
                yield self._rel_path(info["name"]).rsplit("/", 1)[-1]

    def read_bytes(self, path: str) -> bytes:
        with self._errors(path):
            return bytes(self._fs.cat_file(self._s3_path(path)))

    def close(self) -> None:
        self._fs_instance = None
