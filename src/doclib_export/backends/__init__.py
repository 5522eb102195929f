"""Backend implementations."""

from doclib_export.backends._local import LocalBackend
from doclib_export.backends._s3 import S3Backend
from doclib_export.backends._sftp import HostKeyPolicy, SFTPBackend

__all__ = ["HostKeyPolicy", "LocalBackend", "S3Backend", "SFTPBackend"]
