"""Backend test fixtures -- parameterized for conformance testing."""

from __future__ import annotations

import shutil
import socket
import tempfile
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from doclib_export.backends._local import LocalBackend

if TYPE_CHECKING:
    from collections.abc import Iterator

    from doclib_export._backend import Backend

# Files keyed by path; folders are implied by the keys.
SITE_FILES = {
    "sites/hr/Docs/a.pdf": b"%PDF a",
    "sites/hr/Docs/b.pdf": b"%PDF b",
    "sites/hr/Docs/Sub/c.pdf": b"%PDF c",
    "sites/hr/Docs/Sub/Deep/d.txt": b"d",
    "sites/hr/Policies/p.docx": b"p",
}


def _s3_available() -> bool:
    try:
        import moto  # noqa: F401
        import s3fs  # noqa: F401

        return True
    except ImportError:
        return False


def _sftp_available() -> bool:
    try:
        import paramiko  # noqa: F401
        import tenacity  # noqa: F401

        return True
    except ImportError:
        return False


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("", 0))
        return s.getsockname()[1]


def write_files(root: Path, files: dict[str, bytes]) -> None:
    for key, data in files.items():
        target = root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


@pytest.fixture(scope="session")
def moto_server() -> Iterator[str | None]:
    """Start a moto HTTP server for the test session.

    Server mode instead of ``mock_aws()``: s3fs talks to S3 through
    aiobotocore, which the in-process mock does not patch.
    """
    if not _s3_available():
        yield None
        return
    from moto.moto_server.threaded_moto_server import ThreadedMotoServer

    port = _free_port()
    server = ThreadedMotoServer(port=port, verbose=False)
    server.start()
    yield f"http://127.0.0.1:{port}"
    server.stop()


@pytest.fixture(scope="session")
def sftp_server() -> Iterator[tuple[int, Path] | None]:
    """Start an in-process SFTP server for the test session.

    Yields the port and the local directory the server exposes as ``/``.
    """
    if not _sftp_available():
        yield None
        return

    from tests.backends.sftp_server import start_sftp_server, stop_sftp_server

    tmpdir = tempfile.mkdtemp(prefix="sftp_test_")
    thread, port, _host_key, stop_event, server_socket = start_sftp_server(root=tmpdir, host="127.0.0.1")
    yield port, Path(tmpdir)
    stop_sftp_server(thread, stop_event, server_socket)
    shutil.rmtree(tmpdir, ignore_errors=True)


def make_s3_backend(endpoint: str, files: dict[str, bytes]) -> Backend:
    """Create a fresh bucket holding ``files`` and an S3Backend for it."""
    import boto3

    from doclib_export.backends._s3 import S3Backend

    bucket = f"doclib-{uuid.uuid4().hex[:8]}"
    client = boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )
    client.create_bucket(Bucket=bucket)
    for key, data in files.items():
        client.put_object(Bucket=bucket, Key=key, Body=data)
    return S3Backend(
        bucket=bucket,
        key="testing",
        secret="testing",
        region_name="us-east-1",
        endpoint_url=endpoint,
    )


def make_sftp_backend(server: tuple[int, Path], files: dict[str, bytes]) -> Backend:
    """Write ``files`` below a fresh base path on the server and connect to it."""
    from doclib_export.backends._sftp import HostKeyPolicy, SFTPBackend

    port, served_root = server
    base = f"test_{uuid.uuid4().hex[:8]}"
    write_files(served_root / base, files)
    return SFTPBackend(
        host="127.0.0.1",
        port=port,
        username="testuser",
        password="testpass",
        base_path=f"/{base}",
        host_key_policy=HostKeyPolicy.AUTO_ADD,
        connect_kwargs={"allow_agent": False, "look_for_keys": False},
    )


def make_local_backend(root: Path, files: dict[str, bytes]) -> Backend:
    write_files(root, files)
    return LocalBackend(root=str(root))


_s3_param = pytest.param(
    "s3",
    marks=[
        pytest.mark.integration,
        pytest.mark.skipif(not _s3_available(), reason="moto/s3fs not installed"),
    ],
)

_sftp_param = pytest.param(
    "sftp",
    marks=[
        pytest.mark.integration,
        pytest.mark.skipif(not _sftp_available(), reason="paramiko/tenacity not installed"),
    ],
)


@pytest.fixture(params=["local", _s3_param, _sftp_param])
def backend(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[Backend]:
    """Backend serving ``SITE_FILES``. Add new backends here."""
    if request.param == "local":
        b = make_local_backend(tmp_path / "site", SITE_FILES)
    elif request.param == "s3":
        b = make_s3_backend(request.getfixturevalue("moto_server"), SITE_FILES)
    else:
        b = make_sftp_backend(request.getfixturevalue("sftp_server"), SITE_FILES)
    yield b
    b.close()
