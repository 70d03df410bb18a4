"""Port for the content-resolution provider."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from hlsgate.domain.entities.media import MediaDescriptor, ProviderOutput


@runtime_checkable
class ContentProviderPort(Protocol):
    """Resolves a media object to a playable stream.

    The provider is a black box: it either returns a ``ProviderOutput``
    or raises ``ProviderError``.
    """

    async def run_all(self, media: MediaDescriptor) -> ProviderOutput: ...

    def describe(self) -> dict[str, Any]:
        """Self-test information for the ``/api/test`` endpoint."""
        ...
