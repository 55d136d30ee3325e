"""Failure taxonomy for cloud synchronization."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every sync failure."""


class ConfigurationError(SyncError):
    """Sync was attempted without an enabled, complete cloud configuration."""


class TransportError(SyncError):
    """The remote store could not be read or written.

    ``status`` holds the HTTP status code when the server answered with a
    non-success response, and ``None`` for network-level failures.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PartialConsistencyError(TransportError):
    """The merged state was written locally but the remote push failed.

    Local storage and the remote document now disagree until a later sync
    succeeds.  The local write is not rolled back.
    """
