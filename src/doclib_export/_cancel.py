"""Cooperative cancellation for export runs."""

from __future__ import annotations

import threading

from doclib_export._errors import ExportCancelled


class CancellationToken:
    """Thread-safe flag checked by the tree walk between export steps.

    Cancelling never interrupts a file transfer in progress; the walk
    stops before the next file or folder.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, *, path: str | None = None, container: str | None = None) -> None:
        """Raise :class:`ExportCancelled` if :meth:`cancel` has been called."""
        if self._event.is_set():
            raise ExportCancelled("Export cancelled", path=path, container=container)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
