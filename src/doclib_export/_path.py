"""RemotePath — immutable, validated address of a node within a site."""

from __future__ import annotations

from typing import Final

from doclib_export._errors import InvalidPath


class RemotePath:
    """An immutable, normalized ``/``-separated path within a site.

    Remote names end up as local file and directory names, so any segment
    that could climb out of the export directory is rejected.

    :param raw: The raw path string to normalize and validate.
    :raises InvalidPath: If the path is empty, malformed, or unsafe.
    """

    __slots__ = ("_path",)
    _path: Final[str]  # type: ignore[misc]

    def __init__(self, raw: str) -> None:
        object.__setattr__(self, "_path", self._normalize(raw))

    @staticmethod
    def _normalize(raw: str) -> str:
        if "\0" in raw:
            raise InvalidPath("Path contains null byte", path=raw)
        segments = [s for s in raw.replace("\\", "/").split("/") if s not in ("", ".")]
        if ".." in segments:
            raise InvalidPath("Path contains '..' segment", path=raw)
        if not segments:
            raise InvalidPath("Path is empty after normalization", path=raw)
        return "/".join(segments)

    @property
    def name(self) -> str:
        """Final component of the path."""
        return self._path.rsplit("/", 1)[-1]

    @property
    def url(self) -> str:
        """Server-relative form, e.g. ``/sites/hr/Docs/a.pdf``."""
        return f"/{self._path}"

    def __truediv__(self, other: str) -> RemotePath:
        return RemotePath(f"{self._path}/{other}")

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"RemotePath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RemotePath):
            return self._path == other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._path)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"RemotePath is immutable: cannot delete '{name}'")
