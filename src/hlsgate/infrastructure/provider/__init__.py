from .client import HttpxContentProvider, parse_provider_output

__all__ = ["HttpxContentProvider", "parse_provider_output"]
