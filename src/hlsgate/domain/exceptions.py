"""Playlist gateway error taxonomy."""

from __future__ import annotations


class HlsGateError(Exception):
    """Base class for all gateway errors."""


class InvalidRequestError(HlsGateError):
    """Required identifying fields are missing or malformed."""


class StorageUnavailableError(HlsGateError):
    """The backing store could not be queried."""


class PersistFailureError(HlsGateError):
    """Writing a manifest to the backing store failed."""


class UpstreamFetchError(HlsGateError):
    """The manifest origin was unreachable or returned non-HLS content."""


class SweepEntryDeleteError(HlsGateError):
    """A single entry could not be deleted during a retention sweep."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"Failed to delete {location}: {reason}")
        self.location = location
        self.reason = reason


class ProviderError(HlsGateError):
    """The content-resolution provider failed to produce a result."""
