"""
Local credential storage adapters.

Implements CredentialStorePort for the persisted bearer token.

Layout: {data_dir}/credentials.json -> {"<key>": "<token>"}

Invariants:
- read() never raises; absence or unreadable storage reads as None
- only the token is persisted, never the profile
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "credentials.json"
DEFAULT_TOKEN_KEY = "token"


class LocalTokenStorage:
    """
    File-backed implementation of CredentialStorePort.

    Other keys in the credentials file are preserved, so several profiles
    can share one data directory under different keys.
    """

    def __init__(self, data_dir: str | Path, *, key: str = DEFAULT_TOKEN_KEY) -> None:
        """
        Initialize local token storage.

        Args:
            data_dir: Directory holding the credentials file (created on first write)
            key: Storage key for the token
        """
        self.data_dir = Path(data_dir)
        self.key = key

    @property
    def path(self) -> Path:
        return self.data_dir / CREDENTIALS_FILENAME

    def _load(self) -> dict[str, str]:
        """Load the credentials file, treating any failure as empty."""
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed credentials file {self.path}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: dict[str, str]) -> None:
        """Write the credentials file atomically, readable by the owner only."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".credentials-")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def read(self) -> str | None:
        token = self._load().get(self.key)
        return token or None

    def write(self, token: str) -> None:
        data = self._load()
        data[self.key] = token
        self._dump(data)

    def clear(self) -> None:
        data = self._load()
        if self.key not in data:
            return

        del data[self.key]
        if data:
            self._dump(data)
        else:
            self.path.unlink(missing_ok=True)


class InMemoryTokenStorage:
    """In-memory token storage - for tests and contexts without a data dir."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def read(self) -> str | None:
        return self._token

    def write(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
