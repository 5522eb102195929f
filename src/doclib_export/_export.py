"""Export orchestration — containers in order, one manifest each."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from doclib_export._config import MANIFEST_SUFFIX, ExistingOutputPolicy, ExportConfig
from doclib_export._errors import OutputAlreadyExists
from doclib_export._manifest import write_manifest
from doclib_export._registry import open_site
from doclib_export._tree import export_tree

if TYPE_CHECKING:
    from collections.abc import Sequence

    from doclib_export._cancel import CancellationToken
    from doclib_export._models import ExportRecord
    from doclib_export._site import Site
    from doclib_export._types import BackendOptions, ConfirmCallback, PathLike

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ContainerResult:
    """Outcome of one container export.

    :param container: The requested container name.
    :param directory: Local directory mirroring the container.
    :param manifest_path: Written manifest, or ``None`` if skipped.
    :param records: Exported files in discovery order.
    :param skipped: ``True`` if confirmation to reuse an existing
        directory was declined.
    """

    container: str
    directory: Path
    manifest_path: Path | None
    records: tuple[ExportRecord, ...] = ()
    skipped: bool = False


def _validate_inputs(output_root: PathLike, container_names: Sequence[str]) -> Path:
    root = Path(output_root)
    if not root.is_dir():
        raise ValueError(f"Output directory does not exist: {root}")
    if isinstance(container_names, str) or not container_names:
        raise ValueError("At least one container name is required")
    return root


def _decline(container: str, directory: Path) -> bool:
    return False


class Exporter:
    """Exports containers of an open site into ``output_root``.

    ``results`` accumulates one entry per finished container, so callers
    can still report what was written when a later container aborts the
    run.

    :param site: An open site session; the caller owns its lifetime.
    :param output_root: Existing local directory receiving the exports.
    :param config: Export behaviour; defaults to :class:`ExportConfig`.
    :param confirm: Called as ``confirm(container, directory)`` when the
        output directory exists and the policy is ``CONFIRM``.
    :param cancel: Token checked between export steps.
    :raises ValueError: If ``output_root`` is missing, the config is
        invalid, or ``CONFIRM`` is requested without a callback.
    """

    def __init__(
        self,
        site: Site,
        output_root: PathLike,
        *,
        config: ExportConfig | None = None,
        confirm: ConfirmCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        self._site = site
        self._output_root = Path(output_root)
        if not self._output_root.is_dir():
            raise ValueError(f"Output directory does not exist: {self._output_root}")
        self._config = config or ExportConfig()
        self._config.validate()
        if self._config.on_existing is ExistingOutputPolicy.CONFIRM and confirm is None:
            raise ValueError("The 'confirm' existing-output policy requires a confirm callback")
        self._confirm: ConfirmCallback = confirm or _decline
        self._cancel = cancel
        self.results: list[ContainerResult] = []

    def __repr__(self) -> str:
        return f"Exporter(site={self._site!r}, output_root={str(self._output_root)!r})"

    def _may_write_into(self, name: str, directory: Path) -> bool:
        """Apply the existing-output policy to a pre-existing ``directory``."""
        policy = self._config.on_existing
        if policy is ExistingOutputPolicy.OVERWRITE:
            log.warning("Exporting %r into existing directory %s", name, directory)
            return True
        if policy is ExistingOutputPolicy.CONFIRM:
            if self._confirm(name, directory):
                log.info("Confirmed export of %r into existing directory %s", name, directory)
                return True
            log.warning("Skipping %r: export into existing directory %s declined", name, directory)
            return False
        raise OutputAlreadyExists(
            f"Output directory already exists: {directory}", path=str(directory), container=name
        )

    def export_container(self, name: str) -> ContainerResult:
        """Export one container and write its manifest.

        :raises ContainerNotFound: If the site has no such container.
        :raises OutputAlreadyExists: If the output directory exists and the
            policy is ``ABORT``.
        :raises ExportCancelled: If the cancellation token is already set.
        """
        if self._cancel is not None:
            self._cancel.raise_if_cancelled(container=name)
        folder = self._site.get_container(name)
        directory = self._output_root / folder.name
        if directory.exists() and not self._may_write_into(name, directory):
            result = ContainerResult(container=name, directory=directory, manifest_path=None, skipped=True)
            self.results.append(result)
            return result

        log.info("Exporting container %r (%s) to %s", name, folder.url, directory)
        records = export_tree(
            folder,
            self._output_root,
            recurse=self._config.recurse,
            excluded_folders=self._config.excluded_folders,
            overwrite_files=self._config.overwrite_files,
            cancel=self._cancel,
        )
        manifest_path = write_manifest(records, self._output_root / f"{folder.name}{MANIFEST_SUFFIX}")
        log.info("Exported %d file(s) from %r; manifest %s", len(records), name, manifest_path)

        result = ContainerResult(
            container=name, directory=directory, manifest_path=manifest_path, records=tuple(records)
        )
        self.results.append(result)
        return result

    def run(self, container_names: Sequence[str]) -> list[ContainerResult]:
        """Export ``container_names`` in order, stopping at the first error.

        Nothing is rolled back: containers finished before the error keep
        their files and manifests.
        """
        _validate_inputs(self._output_root, container_names)
        for name in container_names:
            self.export_container(name)
        return list(self.results)


def export(
    site_address: str,
    output_root: PathLike,
    container_names: Sequence[str],
    recurse: bool | None = None,
    *,
    config: ExportConfig | None = None,
    site_options: BackendOptions | None = None,
    confirm: ConfirmCallback | None = None,
    cancel: CancellationToken | None = None,
) -> list[ContainerResult]:
    """Export containers from the site at ``site_address`` into ``output_root``.

    The site session is opened once and closed when the run ends, whether
    it succeeds or fails.

    :param recurse: Overrides ``config.recurse`` when given.
    :raises ValueError: If ``output_root`` does not exist or no container
        names are given.
    :raises ExportError: On the first container or file that cannot be
        exported; later containers are not attempted.
    """
    _validate_inputs(output_root, container_names)
    config = config or ExportConfig()
    if recurse is not None:
        config = dataclasses.replace(config, recurse=recurse)
    with open_site(site_address, site_options) as site:
        exporter = Exporter(site, output_root, config=config, confirm=confirm, cancel=cancel)
        return exporter.run(container_names)
