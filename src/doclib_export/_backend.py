"""Backend abstract base class — the read-only remote store contract."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from urllib.parse import SplitResult

    from doclib_export._models import FileInfo
    from doclib_export._types import BackendOptions


class Backend(abc.ABC):
    """Abstract base class for all remote store backends.

    Backends only need to enumerate folders and deliver file content.
    Paths are backend-relative, ``/``-separated and never start with a
    slash. Backend-native exceptions must never leak; they are mapped to
    :class:`~doclib_export.RemoteStoreError` subclasses.

    Listings are returned in a stable order (sorted by name) so that
    repeated exports of the same tree produce identical manifests.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique identifier for this backend type (e.g. ``'local'``, ``'s3'``)."""

    @classmethod
    @abc.abstractmethod
    def from_url(cls, url: SplitResult, options: BackendOptions) -> tuple[Backend, str]:
        """Build a backend from a parsed site address.

        :returns: The backend and the site root path inside it.
        """

    @abc.abstractmethod
    def is_folder(self, path: str) -> bool:
        """Return ``True`` if ``path`` is an existing folder. Never raises ``NotFound``."""

    @abc.abstractmethod
    def list_files(self, path: str) -> Iterator[FileInfo]:
        """List the files directly inside ``path``."""

    @abc.abstractmethod
    def list_folders(self, path: str) -> Iterator[str]:
        """List immediate subfolder names under ``path``."""

    @abc.abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read the full content of a file as bytes.

        :raises NotFound: If the file does not exist.
        """

    def close(self) -> None:  # noqa: B027
        """Release the session. Default is a no-op."""
