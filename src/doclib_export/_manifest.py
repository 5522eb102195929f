"""Manifest files — one CSV table of export records per container."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import TYPE_CHECKING

from doclib_export._errors import LocalWriteError
from doclib_export._models import MANIFEST_COLUMNS, ExportRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from doclib_export._types import PathLike


def write_manifest(records: Iterable[ExportRecord], path: PathLike) -> Path:
    """Write ``records`` as CSV, header first, rows in the given order.

    :returns: The manifest path.
    :raises LocalWriteError: If the file cannot be written.
    """
    target = Path(path)
    try:
        with target.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=MANIFEST_COLUMNS)
            writer.writeheader()
            writer.writerows(record.as_row() for record in records)
    except OSError as exc:
        raise LocalWriteError(f"Cannot write manifest {target}: {exc.strerror or exc}", path=str(target)) from exc
    return target


def read_manifest(path: PathLike) -> list[ExportRecord]:
    """Read a manifest written by :func:`write_manifest`.

    :raises ValueError: If the header does not match the manifest columns.
    """
    with Path(path).open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if tuple(reader.fieldnames or ()) != MANIFEST_COLUMNS:
            raise ValueError(f"Not a manifest file: {path} (columns {reader.fieldnames})")
        return [ExportRecord.from_row(row) for row in reader]
