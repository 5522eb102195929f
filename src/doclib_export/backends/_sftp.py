"""SFTP backend using pure paramiko."""

from __future__ import annotations

import contextlib
import errno
import logging
import os
import stat
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

from doclib_export._backend import Backend
from doclib_export._errors import (
    BackendUnavailable,
    NotFound,
    PermissionDenied,
    RemoteStoreError,
)
from doclib_export._models import FileInfo
from doclib_export._path import RemotePath

if TYPE_CHECKING:
    from collections.abc import Iterator
    from urllib.parse import SplitResult

    from doclib_export._types import BackendOptions

log = logging.getLogger(__name__)

_HOST_KEYS_ENV = "SFTP_KNOWN_HOST_KEYS"


class HostKeyPolicy(Enum):
    """Controls how unknown remote host keys are handled.

    :cvar STRICT: Reject unknown hosts (production default).
    :cvar TRUST_ON_FIRST_USE: Save on first connect, verify after.
    :cvar AUTO_ADD: Accept any key (dev/testing ONLY).
    """

    STRICT = "strict"
    TRUST_ON_FIRST_USE = "tofu"
    AUTO_ADD = "auto"


def _load_host_keys_from_string(ssh: Any, keys_content: str) -> None:  # pragma: no cover
    """Parse a known_hosts-formatted string into an SSHClient's host keys."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".known_hosts", delete=True) as tmp:
        tmp.write(keys_content)
        tmp.flush()
        ssh.load_host_keys(tmp.name)


class SFTPBackend(Backend):
    """SFTP backend using pure paramiko.

    The connection is opened on first use and retried with exponential
    backoff; file transfers themselves are never retried.

    :param host: SFTP server hostname (required, non-empty).
    :param port: SSH port (default: 22).
    :param username: SSH username.
    :param password: SSH password.
    :param key_filename: Path to a private key file for key-based auth.
    :param base_path: Root path on the remote server (default: ``/``).
    :param host_key_policy: Host key verification policy (enum or its value).
    :param known_host_keys: Known hosts string (overrides the environment).
    :param host_keys_path: Path to known_hosts file (default: ``~/.ssh/known_hosts``).
    :param timeout: SSH connection timeout in seconds.
    :param connect_kwargs: Extra kwargs passed to ``SSHClient.connect()``.
    """

    def __init__(
        self,
        host: str,
        *,
        port: int = 22,
        username: str | None = None,
        password: str | None = None,
        key_filename: str | None = None,
        base_path: str = "/",
        host_key_policy: HostKeyPolicy | str = HostKeyPolicy.STRICT,
        known_host_keys: str | None = None,
        host_keys_path: str | None = None,
        timeout: float = 10,
        connect_kwargs: dict[str, Any] | None = None,
    ) -> None:
        if not host or not host.strip():
            raise ValueError("host must be a non-empty string")
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._key_filename = key_filename
        self._base_path = base_path.rstrip("/") or "/"
        self._host_key_policy = HostKeyPolicy(host_key_policy)
        self._host_keys_path = host_keys_path
        self._timeout = float(timeout)
        self._connect_kwargs = connect_kwargs or {}
        self._known_host_keys = known_host_keys or os.environ.get(_HOST_KEYS_ENV)

        self._ssh_client: Any = None
        self._sftp_client: Any = None

    @property
    def name(self) -> str:
        return "sftp"

    @classmethod
    def from_url(cls, url: SplitResult, options: BackendOptions) -> tuple[Backend, str]:
        if not url.hostname:
            raise ValueError(f"SFTP address has no host: {url.geturl()!r}")
        kwargs: dict[str, Any] = {"host": url.hostname}
        if url.port is not None:
            kwargs["port"] = url.port
        if url.username:
            kwargs["username"] = unquote(url.username)
        if url.password:
            kwargs["password"] = unquote(url.password)
        kwargs.update(options)
        return cls(**kwargs), unquote(url.path).strip("/")

    # region: lazy connection

    @property
    def _sftp(self) -> Any:
        """Lazy SFTP client, reconnecting if the session went stale."""
        if not self._is_connected():
            self._connect()
        return self._sftp_client

    def _connect(self) -> None:
        """Establish SSH + SFTP connection with tenacity retry."""
        import paramiko
        from tenacity import (
            before_sleep_log,
            retry,
            retry_if_exception_type,
            retry_if_not_exception_type,
            stop_after_attempt,
            wait_exponential,
        )

        self._close_clients()
        ssh = self._create_ssh_client()

        @retry(
            retry=(
                retry_if_exception_type((paramiko.SSHException, OSError, EOFError))
                & retry_if_not_exception_type(paramiko.AuthenticationException)
            ),
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )
        def _do_connect() -> None:
            log.info("Connecting to %s:%d as %s", self._host, self._port, self._username)
            ssh.connect(
                hostname=self._host,
                port=self._port,
                username=self._username,
                password=self._password,
                key_filename=self._key_filename,
                timeout=self._timeout,
                banner_timeout=self._timeout,
                auth_timeout=self._timeout,
                **self._connect_kwargs,
            )

        try:
            _do_connect()
        except paramiko.AuthenticationException as exc:
            raise PermissionDenied(f"Authentication failed: {exc}", backend=self.name) from None
        except (paramiko.SSHException, OSError, EOFError) as exc:
            raise BackendUnavailable(
                f"Cannot connect to {self._host}:{self._port}: {exc}", backend=self.name
            ) from None
        self._ssh_client = ssh
        self._sftp_client = ssh.open_sftp()
        log.info("SFTP connection established.")

    def _create_ssh_client(self) -> Any:
        """Create and configure an SSHClient with host key policy."""
        import paramiko

        ssh = paramiko.SSHClient()

        if self._known_host_keys:  # pragma: no cover
            _load_host_keys_from_string(ssh, self._known_host_keys)
        elif self._host_key_policy is not HostKeyPolicy.AUTO_ADD:
            keys_path = self._host_keys_path or os.path.expanduser("~/.ssh/known_hosts")
            if os.path.isfile(keys_path):
                ssh.load_host_keys(keys_path)

        if self._host_key_policy is HostKeyPolicy.TRUST_ON_FIRST_USE:  # pragma: no cover
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        elif self._host_key_policy is HostKeyPolicy.AUTO_ADD:
            log.warning("AUTO_ADD host key policy -- NOT safe for production.")
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        return ssh

    def _is_connected(self) -> bool:
        if self._sftp_client is None or self._ssh_client is None:
            return False
        try:
            self._sftp_client.stat(".")
            return True
        except Exception:  # pragma: no cover -- requires transport failure
            return False

    def _close_clients(self) -> None:
        if self._sftp_client is not None:
            with contextlib.suppress(Exception):
                self._sftp_client.close()
            self._sftp_client = None
        if self._ssh_client is not None:
            with contextlib.suppress(Exception):
                self._ssh_client.close()
            self._ssh_client = None

    # endregion

    # region: path helpers

    def _sftp_path(self, path: str) -> str:
        """Convert a backend-relative path to an absolute SFTP path."""
        if path:
            if self._base_path == "/":
                return f"/{path}"
            return f"{self._base_path}/{path}"
        return self._base_path

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map paramiko/OS exceptions to doclib_export errors."""
        import paramiko

        try:
            yield
        except RemoteStoreError:
            raise
        except OSError as exc:
            code = getattr(exc, "errno", None)
            if code == errno.ENOENT:
                raise NotFound(f"Not found: {path}", path=path, backend=self.name) from None
            if code == errno.EACCES:
                raise PermissionDenied(f"Permission denied: {path}", path=path, backend=self.name) from None
            raise RemoteStoreError(str(exc), path=path, backend=self.name) from None
        except paramiko.SSHException as exc:  # pragma: no cover -- requires SSH failure
            raise BackendUnavailable(str(exc), path=path, backend=self.name) from None

    # endregion

    def _listdir(self, path: str) -> list[Any]:
        """List ``path`` sorted by name, linked entries carrying their target's attributes.

        Listings report symlinks as links; each one is stat'ed so linked
        documents and folders are exported like real ones. Dangling links are
        left out.
        """
        with self._errors(path):
            try:
                entries = self._sftp.listdir_attr(self._sftp_path(path))
            except FileNotFoundError:
                return []
            resolved: list[Any] = []
            for attr in entries:
                if stat.S_ISLNK(attr.st_mode or 0):
                    rel = f"{path}/{attr.filename}" if path else attr.filename
                    try:
                        target = self._sftp.stat(self._sftp_path(rel))
                    except FileNotFoundError:
                        log.debug("Skipping dangling link %s", rel)
                        continue
                    target.filename = attr.filename
                    attr = target
                resolved.append(attr)
            return sorted(resolved, key=lambda attr: attr.filename)

    def is_folder(self, path: str) -> bool:
        with self._errors(path):
            try:
                attrs = self._sftp.stat(self._sftp_path(path))
            except FileNotFoundError:
                return False
            return bool(stat.S_ISDIR(attrs.st_mode))

    def list_files(self, path: str) -> Iterator[FileInfo]:
        for attr in self._listdir(path):
            if stat.S_ISREG(attr.st_mode or 0):
                rel = f"{path}/{attr.filename}" if path else attr.filename
                mtime = attr.st_mtime
                yield FileInfo(
                    path=RemotePath(rel),
                    name=attr.filename,
                    size=int(attr.st_size or 0),
                    modified_at=(
                        datetime.fromtimestamp(mtime, tz=timezone.utc)
                        if mtime is not None
                        else datetime.now(tz=timezone.utc)
                    ),
                )

    def list_folders(self, path: str) -> Iterator[str]:
        for attr in self._listdir(path):
            if stat.S_ISDIR(attr.st_mode or 0):
                yield attr.filename

    def read_bytes(self, path: str) -> bytes:
        with self._errors(path), self._sftp.file(self._sftp_path(path), "r") as f:
            f.prefetch()
            return bytes(f.read())

    def close(self) -> None:
        self._close_clients()
