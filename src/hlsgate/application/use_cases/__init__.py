from .scrape_playlist import ScrapePlaylistUseCase, ScrapeRequest

__all__ = ["ScrapePlaylistUseCase", "ScrapeRequest"]
