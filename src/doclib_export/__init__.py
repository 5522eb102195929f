"""Export remote document libraries to local disk with a per-library manifest."""

from doclib_export._backend import Backend
from doclib_export._cancel import CancellationToken
from doclib_export._config import AppConfig, ExistingOutputPolicy, ExportConfig, SiteConfig
from doclib_export._errors import (
    BackendUnavailable,
    ContainerNotFound,
    DirectoryCreateError,
    ExportCancelled,
    ExportError,
    InvalidPath,
    LocalWriteError,
    NotFound,
    OutputAlreadyExists,
    PermissionDenied,
    RemoteReadError,
    RemoteStoreError,
)
from doclib_export._export import ContainerResult, Exporter, export
from doclib_export._manifest import read_manifest, write_manifest
from doclib_export._models import ExportRecord, FileInfo, RemoteFile, RemoteFolder
from doclib_export._path import RemotePath
from doclib_export._registry import open_site, register_backend
from doclib_export._saver import save_file
from doclib_export._site import Site
from doclib_export._tree import export_tree

__version__ = "0.1.0"

__all__ = [
    # Export
    "export",
    "Exporter",
    "ContainerResult",
    "export_tree",
    "save_file",
    "CancellationToken",
    # Manifest
    "ExportRecord",
    "read_manifest",
    "write_manifest",
    # Remote store
    "Site",
    "Backend",
    "open_site",
    "register_backend",
    "RemotePath",
    "FileInfo",
    "RemoteFile",
    "RemoteFolder",
    # Config
    "AppConfig",
    "SiteConfig",
    "ExportConfig",
    "ExistingOutputPolicy",
    # Errors
    "ExportError",
    "ContainerNotFound",
    "OutputAlreadyExists",
    "DirectoryCreateError",
    "RemoteReadError",
    "LocalWriteError",
    "ExportCancelled",
    "RemoteStoreError",
    "NotFound",
    "PermissionDenied",
    "InvalidPath",
    "BackendUnavailable",
    # Version
    "__version__",
]
