from .playlist_cache import PlaylistCache

__all__ = ["PlaylistCache"]
