"""Site — one open remote store session scoped to a root path."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doclib_export._errors import ContainerNotFound, InvalidPath
from doclib_export._models import RemoteFolder
from doclib_export._path import RemotePath

if TYPE_CHECKING:
    from types import TracebackType

    from doclib_export._backend import Backend

log = logging.getLogger(__name__)


class Site:
    """A remote site whose top-level folders are the exportable containers.

    :param backend: The backend to delegate listing and reads to.
    :param root_path: Path of the site inside the backend (may be empty).
    """

    def __init__(self, backend: Backend, root_path: str = "") -> None:
        self._backend = backend
        self._root = str(RemotePath(root_path)) if root_path.strip("/") else ""

    def __repr__(self) -> str:
        return f"Site(backend={self._backend.name!r}, root_path={self._root!r})"

    @property
    def backend(self) -> Backend:
        return self._backend

    def close(self) -> None:
        """Close the underlying backend, releasing the session."""
        log.debug("Closing %r", self)
        self._backend.close()

    def __enter__(self) -> Site:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _container_path(self, name: str) -> RemotePath:
        validated = RemotePath(name)
        if self._root:
            return RemotePath(f"{self._root}/{validated}")
        return validated

    def get_container(self, name: str) -> RemoteFolder:
        """Resolve a container by name.

        :raises ContainerNotFound: If no such folder exists at the site root,
            or the name is not a valid path.
        """
        try:
            path = self._container_path(name)
        except InvalidPath as exc:
            raise ContainerNotFound(
                f"Invalid container name: {exc.args[0]}", container=name, backend=self._backend.name
            ) from None
        if not self._backend.is_folder(str(path)):
            raise ContainerNotFound(
                f"Container not found: {name}", container=name, path=path.url, backend=self._backend.name
            )
        log.debug("Resolved container %r to %s", name, path.url)
        return RemoteFolder(path=path, _backend=self._backend)
