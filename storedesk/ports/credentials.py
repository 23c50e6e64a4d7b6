"""
Credential store port.

A single durable slot holding the bearer token between process restarts.
Validity is never decided locally; only the server accepts or rejects a token.
"""

from __future__ import annotations

from typing import Protocol


class CredentialStorePort(Protocol):
    """Port for the persisted bearer token."""

    def read(self) -> str | None:
        """
        Return the stored token.

        Returns None when nothing is stored or storage is unavailable.
        Never raises.
        """
        ...

    def write(self, token: str) -> None:
        """Store the token, replacing any previous value."""
        ...

    def clear(self) -> None:
        """Remove the stored token. Clearing an empty store is a no-op."""
        ...
