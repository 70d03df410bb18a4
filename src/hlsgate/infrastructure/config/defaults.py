"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "hlsgate",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "storage": {
        "backend": "auto",
        "namespace": "playlists/",
        "playlists_dir": "./playlists",
        "blob_api_url": "https://blob.vercel-storage.com",
    },
    "retention": {
        "enabled": True,
        "interval_days": 15.0,
        "retention_hours": 24.0,
        "list_limit": 1000,
    },
    "provider": {
        "base_url": None,
        "timeout_seconds": 60.0,
    },
}
