from .local_adapter import LocalPlaylistStore
from .storage_factory import create_playlist_store
from .vercel_blob_adapter import VercelBlobStore

__all__ = ["LocalPlaylistStore", "VercelBlobStore", "create_playlist_store"]
