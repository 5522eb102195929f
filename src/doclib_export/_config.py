"""Configuration model — immutable data containers describing a site and an export run."""

from __future__ import annotations

import dataclasses
import enum
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from doclib_export._types import PathLike

FORMS_FOLDER_NAME = "Forms"
MANIFEST_SUFFIX = ".manifest"


class ExistingOutputPolicy(enum.Enum):
    """What to do when a container's output directory already exists."""

    ABORT = "abort"
    CONFIRM = "confirm"
    OVERWRITE = "overwrite"


@dataclasses.dataclass(frozen=True)
class SiteConfig:
    """Describes the remote site to export from.

    :param address: Site address (local path, ``file://``, ``s3://`` or ``sftp://``).
    :param options: Backend-specific constructor options.
    """

    address: str = ""
    options: dict[str, object] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ExportConfig:
    """Describes how containers are exported.

    :param recurse: Descend into subfolders.
    :param on_existing: Policy for a pre-existing container output directory.
    :param overwrite_files: Replace existing local files silently.
    :param excluded_folders: Folder names skipped at every depth.
    """

    recurse: bool = False
    on_existing: ExistingOutputPolicy = ExistingOutputPolicy.ABORT
    overwrite_files: bool = True
    excluded_folders: frozenset[str] = frozenset({FORMS_FOLDER_NAME})

    def validate(self) -> None:
        """Check field types that ``from_dict`` cannot coerce.

        :raises ValueError: If a field holds an unusable value.
        """
        if not isinstance(self.on_existing, ExistingOutputPolicy):
            raise ValueError(f"on_existing must be an ExistingOutputPolicy, got {self.on_existing!r}")
        if any(not name or "/" in name for name in self.excluded_folders):
            raise ValueError(f"excluded_folders must be plain folder names, got {sorted(self.excluded_folders)}")


@dataclasses.dataclass(frozen=True)
class AppConfig:
    """Top-level configuration container.

    :param site: The site to export from.
    :param export: Export behaviour.
    """

    site: SiteConfig = dataclasses.field(default_factory=SiteConfig)
    export: ExportConfig = dataclasses.field(default_factory=ExportConfig)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AppConfig:
        """Construct from a plain dict (e.g. parsed TOML).

        :param data: Dict with optional ``site`` and ``export`` tables.
        :raises TypeError: If a table has the wrong shape.
        :raises ValueError: If a value is invalid.
        """
        raw_site = data.get("site", {})
        raw_export = data.get("export", {})
        if not isinstance(raw_site, dict) or not isinstance(raw_export, dict):
            msg = "Expected 'site' and 'export' to be tables"
            raise TypeError(msg)

        raw_options = raw_site.get("options", {})
        if not isinstance(raw_options, dict):
            msg = "Site options must be a table"
            raise TypeError(msg)
        site = SiteConfig(address=str(raw_site.get("address", "")), options=dict(raw_options))

        kwargs: dict[str, object] = {}
        if "recurse" in raw_export:
            kwargs["recurse"] = bool(raw_export["recurse"])
        if "on_existing" in raw_export:
            kwargs["on_existing"] = ExistingOutputPolicy(str(raw_export["on_existing"]))
        if "overwrite_files" in raw_export:
            kwargs["overwrite_files"] = bool(raw_export["overwrite_files"])
        if "excluded_folders" in raw_export:
            excluded = raw_export["excluded_folders"]
            if not isinstance(excluded, list):
                msg = "excluded_folders must be a list of names"
                raise TypeError(msg)
            kwargs["excluded_folders"] = frozenset(str(name) for name in excluded)
        export = ExportConfig(**kwargs)  # type: ignore[arg-type]
        export.validate()
        return cls(site=site, export=export)

    @classmethod
    def load(cls, path: PathLike) -> AppConfig:
        """Read configuration from a TOML file.

        :raises FileNotFoundError: If the file does not exist.
        :raises ValueError: If the file is not valid TOML or holds invalid values.
        """
        with Path(path).open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ValueError(f"Invalid config file {path}: {exc}") from exc
        return cls.from_dict(data)
