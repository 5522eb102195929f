"""Normalized error hierarchy for doclib_export."""

from __future__ import annotations

from typing import Optional


class ExportError(Exception):
    """Base class for all doclib_export errors.

    :param message: Human-readable error description.
    :param path: The remote or local path involved, if any.
    :param container: The container being exported, if any.
    :param backend: The backend name involved, if any.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        container: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> None:
        self.path = path
        self.container = container
        self.backend = backend
        super().__init__(message)

    def _fields(self) -> list[tuple[str, str]]:
        fields = []
        for key in ("path", "container", "backend"):
            value = getattr(self, key)
            if value is not None:
                fields.append((key, value))
        return fields

    def __str__(self) -> str:
        parts = [super().__str__()]
        parts.extend(f"{key}={value!r}" for key, value in self._fields())
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__())]
        args.extend(f"{key}={value!r}" for key, value in self._fields())
        return f"{cls}({', '.join(args)})"


# region: remote store errors


class RemoteStoreError(ExportError):
    """Raised by a backend; native backend exceptions are mapped to subclasses."""


class NotFound(RemoteStoreError):
    """Raised when a remote file or folder does not exist."""


class PermissionDenied(RemoteStoreError):
    """Raised when access is denied by the remote store."""


class InvalidPath(RemoteStoreError):
    """Raised for malformed, unsafe, or out-of-scope paths."""


class BackendUnavailable(RemoteStoreError):
    """Raised when the remote store cannot be reached or initialized."""


# endregion

# region: export errors


class ContainerNotFound(ExportError):
    """Raised when a requested container does not exist on the site."""


class OutputAlreadyExists(ExportError):
    """Raised when a container's local output directory already exists."""


class DirectoryCreateError(ExportError):
    """Raised when a local directory cannot be created."""


class RemoteReadError(ExportError):
    """Raised when a remote file's content cannot be retrieved."""


class LocalWriteError(ExportError):
    """Raised when a local file or manifest cannot be written."""


class ExportCancelled(ExportError):
    """Raised when a run is cancelled between two export steps."""


# endregion
