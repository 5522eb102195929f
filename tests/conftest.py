"""Shared test fixtures and marker registration."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import pytest

from doclib_export._backend import Backend
from doclib_export._errors import NotFound, RemoteStoreError
from doclib_export._models import FileInfo
from doclib_export._path import RemotePath

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path
    from urllib.parse import SplitResult

# Nested dicts describe a tree: folder name -> dict, file name -> bytes.
Tree = dict[str, Any]

DOCS_TREE: Tree = {
    "Docs": {
        "a.pdf": b"%PDF a",
        "b.pdf": b"%PDF b",
        "Sub": {"c.pdf": b"%PDF c"},
        "Empty": {},
    },
}

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: starts a local service (moto S3 server)")


class MemoryBackend(Backend):
    """Dict-backed backend that reports entries in insertion order.

    :param tree: Nested dict tree served as the site.
    :param fail_reads: Paths whose ``read_bytes`` raises ``RemoteStoreError``.
    :param fail_lists: Paths whose listing raises ``RemoteStoreError``.
    """

    def __init__(
        self,
        tree: Tree,
        *,
        fail_reads: set[str] | None = None,
        fail_lists: set[str] | None = None,
    ) -> None:
        self.tree = tree
        self.fail_reads = fail_reads or set()
        self.fail_lists = fail_lists or set()
        self.reads: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "memory"

    @classmethod
    def from_url(cls, url: SplitResult, options: dict[str, object]) -> tuple[Backend, str]:
        return cls({}), ""

    def _node(self, path: str) -> Any:
        node: Any = self.tree
        for part in path.split("/") if path else []:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def is_folder(self, path: str) -> bool:
        return isinstance(self._node(path), dict)

    def _children(self, path: str) -> dict[str, Any]:
        if path in self.fail_lists:
            raise RemoteStoreError("listing failed", path=path, backend=self.name)
        node = self._node(path)
        return node if isinstance(node, dict) else {}

    def list_files(self, path: str) -> Iterator[FileInfo]:
        for name, value in self._children(path).items():
            if isinstance(value, bytes):
                yield FileInfo(path=RemotePath(f"{path}/{name}"), name=name, size=len(value), modified_at=NOW)

    def list_folders(self, path: str) -> Iterator[str]:
        for name, value in self._children(path).items():
            if isinstance(value, dict):
                yield name

    def read_bytes(self, path: str) -> bytes:
        self.reads.append(path)
        if path in self.fail_reads:
            raise RemoteStoreError("connection reset", path=path, backend=self.name)
        node = self._node(path)
        if not isinstance(node, bytes):
            raise NotFound(f"File not found: {path}", path=path, backend=self.name)
        return node

    def close(self) -> None:
        self.closed = True


def build_tree(root: Path, tree: Tree) -> Path:
    """Materialize a nested dict tree under ``root`` and return ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for name, value in tree.items():
        if isinstance(value, dict):
            build_tree(root / name, value)
        else:
            (root / name).write_bytes(value)
    return root


@pytest.fixture
def memory_backend() -> Callable[..., MemoryBackend]:
    """Factory for in-memory backends."""
    return MemoryBackend


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[Tree], Path]:
    """Factory materializing a tree as a local site under ``tmp_path/site``."""

    def _make(tree: Tree) -> Path:
        return build_tree(tmp_path / "site", tree)

    return _make


@pytest.fixture
def docs_site(make_tree: Callable[[Tree], Path]) -> Path:
    """Local site holding the ``Docs`` library (``Sub`` and an empty folder)."""
    return make_tree(DOCS_TREE)


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Existing, empty output directory."""
    out = tmp_path / "out"
    out.mkdir()
    return out
