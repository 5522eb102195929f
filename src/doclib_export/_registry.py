"""Registry — maps site addresses to backend classes and opens sites."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import SplitResult, urlsplit

from doclib_export._site import Site

if TYPE_CHECKING:
    from doclib_export._backend import Backend
    from doclib_export._types import BackendOptions

log = logging.getLogger(__name__)

# Global backend factory registry: maps URL schemes to backend classes.
_BACKEND_FACTORIES: dict[str, type[Backend]] = {}


def register_backend(scheme: str, cls: type[Backend]) -> None:
    """Register a backend class for a site address scheme.

    :param scheme: The URL scheme (e.g. ``"s3"``), matched case-insensitively.
    :param cls: The backend class; its ``from_url`` builds instances.
    """
    _BACKEND_FACTORIES[scheme.lower()] = cls


def _register_builtin_backends() -> None:
    """Register the built-in backends."""
    from doclib_export.backends._local import LocalBackend
    from doclib_export.backends._s3 import S3Backend
    from doclib_export.backends._sftp import SFTPBackend

    for scheme, cls in (("file", LocalBackend), ("s3", S3Backend), ("sftp", SFTPBackend)):
        _BACKEND_FACTORIES.setdefault(scheme, cls)


def parse_site_address(address: str) -> SplitResult:
    """Split a site address; anything without ``scheme://`` is a local path.

    :raises ValueError: If the address is empty.
    """
    if not address or not address.strip():
        raise ValueError("Site address must be a non-empty string")
    if "://" not in address:
        return SplitResult(scheme="file", netloc="", path=address, query="", fragment="")
    return urlsplit(address)


def open_site(address: str, options: BackendOptions | None = None) -> Site:
    """Open a site session for ``address``.

    :param address: ``file:///srv/libs``, ``/srv/libs``, ``s3://bucket/prefix``
        or ``sftp://user@host:22/sites/hr``.
    :param options: Extra keyword arguments for the backend constructor.
    :raises ValueError: If the scheme is unknown or the options are invalid.
    """
    _register_builtin_backends()
    url = parse_site_address(address)
    scheme = url.scheme.lower()
    if scheme not in _BACKEND_FACTORIES:
        raise ValueError(
            f"Unknown site address scheme '{url.scheme}'. Registered schemes: {sorted(_BACKEND_FACTORIES)}"
        )
    factory = _BACKEND_FACTORIES[scheme]
    opts = dict(options or {})
    try:
        backend, root_path = factory.from_url(url, opts)
    except TypeError as exc:
        raise ValueError(
            f"Invalid options for backend '{scheme}': {exc}. Provided options: {sorted(opts)}"
        ) from exc
    log.info("Opened %s site (host=%r, root=%r)", backend.name, url.hostname, root_path)
    return Site(backend=backend, root_path=root_path)
