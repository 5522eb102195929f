"""File saver — copies one remote file into a local directory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doclib_export._errors import LocalWriteError, RemoteReadError, RemoteStoreError

if TYPE_CHECKING:
    from pathlib import Path

    from doclib_export._models import RemoteFile

log = logging.getLogger(__name__)


def save_file(file: RemoteFile, destination: Path, *, overwrite: bool = True) -> Path:
    """Write ``file``'s content to ``destination / file.name``.

    An existing local file of the same name is replaced without warning
    unless ``overwrite`` is false. Collisions are guarded once per
    container by the exporter, not per file.

    :returns: The path of the written file.
    :raises RemoteReadError: If the content cannot be retrieved.
    :raises LocalWriteError: If the file cannot be written, or exists and
        ``overwrite`` is false.
    """
    target = destination / file.name
    if not overwrite and target.exists():
        raise LocalWriteError(f"Local file already exists: {target}", path=str(target))

    try:
        data = file.read_bytes()
    except RemoteStoreError as exc:
        raise RemoteReadError(
            f"Cannot read {file.name}: {exc.args[0] if exc.args else exc}", path=file.url, backend=exc.backend
        ) from exc

    try:
        target.write_bytes(data)
    except OSError as exc:
        raise LocalWriteError(f"Cannot write {target}: {exc.strerror or exc}", path=str(target)) from exc

    log.debug("Saved %s -> %s (%d bytes)", file.url, target, len(data))
    return target
