from .media import (
    MediaDescriptor,
    ProviderOutput,
    ProviderStream,
    ScrapeResult,
    StreamSource,
)
from .playlist import (
    HLS_CONTENT_TYPE,
    CacheEntry,
    MediaType,
    StorageType,
    StoredPlaylist,
    derive_key,
)

__all__ = [
    "HLS_CONTENT_TYPE",
    "CacheEntry",
    "MediaDescriptor",
    "MediaType",
    "ProviderOutput",
    "ProviderStream",
    "ScrapeResult",
    "StorageType",
    "StoredPlaylist",
    "StreamSource",
    "derive_key",
]
