"""Tree exporter — depth-first walk of a remote folder into local directories."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doclib_export._config import FORMS_FOLDER_NAME
from doclib_export._errors import DirectoryCreateError, RemoteReadError, RemoteStoreError
from doclib_export._models import ExportRecord
from doclib_export._saver import save_file

if TYPE_CHECKING:
    from collections.abc import Collection
    from pathlib import Path

    from doclib_export._cancel import CancellationToken
    from doclib_export._models import RemoteFolder

log = logging.getLogger(__name__)


def _load_listing(folder: RemoteFolder) -> None:
    try:
        folder.files, folder.folders  # noqa: B018
    except RemoteStoreError as exc:
        raise RemoteReadError(
            f"Cannot list folder {folder.name}: {exc.args[0] if exc.args else exc}",
            path=folder.url,
            backend=exc.backend,
        ) from exc


def _make_dir(local_dir: Path) -> None:
    """Create ``local_dir`` along with any ancestors not yet materialized."""
    try:
        local_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(
            f"Cannot create directory {local_dir}: {exc.strerror or exc}", path=str(local_dir)
        ) from exc


def export_tree(
    folder: RemoteFolder,
    destination_parent: Path,
    *,
    recurse: bool = False,
    excluded_folders: Collection[str] = (FORMS_FOLDER_NAME,),
    overwrite_files: bool = True,
    cancel: CancellationToken | None = None,
) -> list[ExportRecord]:
    """Export ``folder`` into ``destination_parent / folder.name``.

    Files of a folder are saved in listing order before any of its
    subfolders are visited, so the returned records follow depth-first,
    files-before-children discovery order. A local directory is created
    only when the first file below it is saved, so excluded and empty
    folders, and folders holding nothing but those, leave no trace on
    disk. Any failure stops the walk; files already written stay on disk.

    :param recurse: Visit subfolders; otherwise only the folder's own files.
    :param excluded_folders: Folder names skipped at every depth.
    :param overwrite_files: Passed to :func:`save_file`.
    :param cancel: Checked before each file and each subfolder.
    :raises DirectoryCreateError: If a local directory cannot be created.
    :raises RemoteReadError: If a listing or file content cannot be retrieved.
    :raises LocalWriteError: If a local file cannot be written.
    :raises ExportCancelled: If ``cancel`` is set during the walk.
    """
    if folder.name in excluded_folders:
        log.debug("Skipping excluded folder %s", folder.url)
        return []

    _load_listing(folder)
    if folder.is_empty():
        log.debug("Skipping empty folder %s", folder.url)
        return []

    local_dir = destination_parent / folder.name
    records: list[ExportRecord] = []
    for file in folder.files:
        if cancel is not None:
            cancel.raise_if_cancelled(path=file.url)
        if not records:
            _make_dir(local_dir)
        local_path = save_file(file, local_dir, overwrite=overwrite_files)
        records.append(
            ExportRecord(
                file_name=file.name,
                remote_relative_url=file.url,
                remote_parent_folder=file.parent.url,
                local_file_name=str(local_path),
            )
        )

    if recurse:
        for subfolder in folder.folders:
            if cancel is not None:
                cancel.raise_if_cancelled(path=subfolder.url)
            records.extend(
                export_tree(
                    subfolder,
                    local_dir,
                    recurse=True,
                    excluded_folders=excluded_folders,
                    overwrite_files=overwrite_files,
                    cancel=cancel,
                )
            )

    log.debug("Exported %d file(s) from %s", len(records), folder.url)
    return records
