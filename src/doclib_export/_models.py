"""Remote tree views and the manifest record model."""

from __future__ import annotations

import dataclasses
import functools
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from doclib_export._backend import Backend
    from doclib_export._path import RemotePath


@dataclasses.dataclass(frozen=True, eq=False)
class FileInfo:
    """Immutable snapshot of file metadata as reported by a backend.

    :param path: Normalized remote path.
    :param name: File name (final path component).
    :param size: File size in bytes.
    :param modified_at: Last modification time.
    :param checksum: Optional checksum (e.g. ETag).
    :param extra: Backend-specific metadata.
    """

    path: RemotePath
    name: str
    size: int
    modified_at: datetime
    checksum: str | None = None
    extra: dict[str, object] = dataclasses.field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileInfo):
            return self.path == other.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.path)


@dataclasses.dataclass(frozen=True, eq=False)
class RemoteFile:
    """Handle to a document inside a remote folder.

    Content is not held; :meth:`read_bytes` fetches it from the backend
    each time it is called.

    :param info: Metadata reported by the backend.
    :param parent: Path of the folder the file was listed from.
    """

    info: FileInfo
    parent: RemotePath
    _backend: Backend = dataclasses.field(repr=False)

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def path(self) -> RemotePath:
        return self.info.path

    @property
    def url(self) -> str:
        """Server-relative address of the file."""
        return self.info.path.url

    def read_bytes(self) -> bytes:
        """Retrieve the full content of the file.

        :raises RemoteStoreError: If the backend cannot deliver the content.
        """
        return self._backend.read_bytes(str(self.info.path))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemoteFile):
            return self.path == other.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.path)


@dataclasses.dataclass(frozen=True, eq=False)
class RemoteFolder:
    """Read-only view of a folder node in the remote tree.

    ``files`` and ``folders`` are listed from the backend on first access
    and cached for the lifetime of the view, in the order the backend
    reports them.

    :param path: Normalized remote path.
    """

    path: RemotePath
    _backend: Backend = dataclasses.field(repr=False)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def url(self) -> str:
        return self.path.url

    @functools.cached_property
    def files(self) -> tuple[RemoteFile, ...]:
        return tuple(
            RemoteFile(info=info, parent=self.path, _backend=self._backend)
            for info in self._backend.list_files(str(self.path))
        )

    @functools.cached_property
    def folders(self) -> tuple[RemoteFolder, ...]:
        return tuple(
            RemoteFolder(path=self.path / name, _backend=self._backend)
            for name in self._backend.list_folders(str(self.path))
        )

    def is_empty(self) -> bool:
        """Return ``True`` if the folder has no files and no subfolders."""
        return not self.files and not self.folders

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemoteFolder):
            return self.path == other.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.path)


MANIFEST_COLUMNS = ("FileName", "RemoteRelativeUrl", "RemoteParentFolder", "LocalFileName")


@dataclasses.dataclass(frozen=True)
class ExportRecord:
    """One manifest row: where a remote file ended up locally.

    :param file_name: Name of the remote file.
    :param remote_relative_url: Server-relative address of the file.
    :param remote_parent_folder: Server-relative address of its folder.
    :param local_file_name: Path of the written local file.
    """

    file_name: str
    remote_relative_url: str
    remote_parent_folder: str
    local_file_name: str

    def as_row(self) -> dict[str, str]:
        """Return the record keyed by manifest column name."""
        return dict(zip(MANIFEST_COLUMNS, dataclasses.astuple(self)))

    @classmethod
    def from_row(cls, row: dict[str, str]) -> ExportRecord:
        """Build a record from a manifest row keyed by column name."""
        return cls(*(row[column] for column in MANIFEST_COLUMNS))
