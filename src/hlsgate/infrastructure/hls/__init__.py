from .upstream import (
    FetchedManifest,
    SegmentStream,
    fetch_manifest,
    is_hls_manifest,
    looks_like_playlist_url,
    open_segment_stream,
)

__all__ = [
    "FetchedManifest",
    "SegmentStream",
    "fetch_manifest",
    "is_hls_manifest",
    "looks_like_playlist_url",
    "open_segment_stream",
]
