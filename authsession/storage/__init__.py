"""Credential storage backends."""

from .token_store import FileTokenStore, InMemoryTokenStore, TokenStore  # noqa: F401

__all__ = ["TokenStore", "InMemoryTokenStore", "FileTokenStore"]
