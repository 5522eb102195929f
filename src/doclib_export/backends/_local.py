"""Local filesystem backend — a directory tree served as a site, stdlib only."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.request import url2pathname

from doclib_export._backend import Backend
from doclib_export._errors import InvalidPath, NotFound, PermissionDenied, RemoteStoreError
from doclib_export._models import FileInfo
from doclib_export._path import RemotePath

if TYPE_CHECKING:
    from collections.abc import Iterator
    from urllib.parse import SplitResult

    from doclib_export._types import BackendOptions


class LocalBackend(Backend):
    """Local filesystem backend using only the Python standard library.

    Useful for exporting from mounted shares and synced library folders.

    :param root: Path to an existing directory acting as the site root.
    :raises NotFound: If ``root`` is not an existing directory.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise NotFound(f"Site root is not a directory: {root}", path=root, backend=self.name)

    @property
    def name(self) -> str:
        return "local"

    @classmethod
    def from_url(cls, url: SplitResult, options: BackendOptions) -> tuple[Backend, str]:
        root = url2pathname(url.path) if url.scheme == "file" else url.path
        return cls(root=root, **options), ""  # type: ignore[arg-type]

    # region: path safety
    def _resolve(self, path: str) -> Path:
        """Resolve a relative path to an absolute path within root.

        ``.resolve()`` follows symlinks, and ``relative_to(self._root)``
        then rejects anything that escapes the root, symlinks included.

        :raises InvalidPath: If the resolved path escapes the root.
        """
        resolved = (self._root / path).resolve()
        try:
            resolved.relative_to(self._root)
        except ValueError:
            raise InvalidPath(f"Path escapes root directory: {path}", path=path, backend=self.name) from None
        return resolved

    def to_key(self, native_path: str) -> str:
        """Convert an absolute local path under root to a backend-relative key."""
        normalized = native_path.replace("\\", "/")
        root_prefix = str(self._root).replace("\\", "/")
        if normalized.startswith(root_prefix + "/"):
            return normalized[len(root_prefix) + 1 :]
        if normalized == root_prefix:
            return ""
        return native_path

    def _entries(self, path: str) -> list[Path]:
        full = self._resolve(path)
        if not full.is_dir():
            return []
        try:
            return sorted(full.iterdir(), key=lambda p: p.name)
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        except OSError as exc:
            raise RemoteStoreError(str(exc), path=path, backend=self.name) from None

    # endregion

    def is_folder(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def list_files(self, path: str) -> Iterator[FileInfo]:
        for item in self._entries(path):
            if item.is_file():
                st = item.stat()
                yield FileInfo(
                    path=RemotePath(self.to_key(str(item))),
                    name=item.name,
                    size=st.st_size,
                    modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )

    def list_folders(self, path: str) -> Iterator[str]:
        for item in self._entries(path):
            if item.is_dir():
                yield item.name

    def read_bytes(self, path: str) -> bytes:
        full = self._resolve(path)
        try:
            return full.read_bytes()
        except FileNotFoundError:
            raise NotFound(f"File not found: {path}", path=path, backend=self.name) from None
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
        except OSError as exc:
            raise RemoteStoreError(str(exc), path=path, backend=self.name) from None
