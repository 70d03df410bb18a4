from .content_provider import ContentProviderPort
from .playlist_store import ListPage, PlaylistStorePort, StoreBackend

__all__ = [
    "ContentProviderPort",
    "ListPage",
    "PlaylistStorePort",
    "StoreBackend",
]
