"""
Token storage for authrelay clients.

This module defines the storage interface the bearer-token machinery reads
and writes, plus two implementations:

- InMemoryTokenStorage: process-local, lost on exit
- FileTokenStorage: plaintext JSON file with user-only permissions

Only the refresh coordinator writes tokens during normal operation, so
implementations need not serialize concurrent writers. Clearing tokens
(e.g. on logout) is left to the application.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import TokenStorageError
from ..models import TokenPair

logger = logging.getLogger(__name__)


class TokenStorage(ABC):
    """Storage interface for the access/refresh token pair."""

    @abstractmethod
    def get_access_token(self) -> Optional[str]:
        """Return the current access token, or None if there is none."""

    @abstractmethod
    def get_refresh_token(self) -> Optional[str]:
        """Return the current refresh token, or None if there is none."""

    @abstractmethod
    def save_access_token(self, token: str) -> None:
        """
        Persist a new access token.

        Raises:
            TokenStorageError: If the write fails
        """

    @abstractmethod
    def save_refresh_token(self, token: str) -> None:
        """
        Persist a new refresh token.

        Raises:
            TokenStorageError: If the write fails
        """

    @abstractmethod
    def clear_tokens(self) -> None:
        """
        Remove both tokens. Calling it on empty storage is a no-op.

        Raises:
            TokenStorageError: If the removal fails
        """

    def save_token_pair(self, tokens: TokenPair) -> None:
        """
        Persist both tokens of a pair.

        If the refresh token cannot be written, the previous access token
        is put back so storage never holds half of a pair.

        Args:
            tokens: New token pair

        Raises:
            TokenStorageError: If either write fails (custom storages may
                raise other exceptions, which are re-raised after the rollback)
        """
        previous_access = self.get_access_token()
        self.save_access_token(tokens.access_token)
        try:
            self.save_refresh_token(tokens.refresh_token)
        except Exception:
            logger.error("Failed to save refresh token, restoring previous access token")
            try:
                if previous_access is None:
                    self.clear_tokens()
                else:
                    self.save_access_token(previous_access)
            except Exception as restore_error:
                logger.error(f"Could not restore previous access token: {restore_error}")
            raise

    def has_tokens(self) -> bool:
        """True if a refresh token is available."""
        return self.get_refresh_token() is not None


class InMemoryTokenStorage(TokenStorage):
    """Token storage backed by a dict. Useful for tests and short-lived scripts."""

    def __init__(self, tokens: Optional[TokenPair] = None):
        self._lock = threading.Lock()
        self._tokens: Dict[str, str] = {}
        if tokens is not None:
            self._tokens = {
                "access_token": tokens.access_token,
                "refresh_token": tokens.refresh_token,
            }

    def get_access_token(self) -> Optional[str]:
        with self._lock:
            return self._tokens.get("access_token")

    def get_refresh_token(self) -> Optional[str]:
        with self._lock:
            return self._tokens.get("refresh_token")

    def save_access_token(self, token: str) -> None:
        with self._lock:
            self._tokens["access_token"] = token

    def save_refresh_token(self, token: str) -> None:
        with self._lock:
            self._tokens["refresh_token"] = token

    def clear_tokens(self) -> None:
        with self._lock:
            self._tokens.clear()


class FileTokenStorage(TokenStorage):
    """
    File-based token storage (plaintext JSON).

    The file holds ``{"access_token": ..., "refresh_token": ...}``. Writes go
    to a temporary file in the same directory which then replaces the token
    file, so readers never observe a half-written file.
    """

    def __init__(self, token_file: str):
        """
        Initialize token storage.

        Args:
            token_file: Path to the token storage file
        """
        self.token_file = Path(token_file)
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Create parent directory if needed."""
        self.token_file.parent.mkdir(parents=True, exist_ok=True)

    def _set_secure_permissions(self) -> None:
        """Set file permissions to user-only read/write (600)."""
        try:
            self.token_file.chmod(0o600)
            logger.debug(f"Set secure permissions (600) on {self.token_file}")
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not set secure permissions: {e}")

    def _load(self) -> Dict[str, str]:
        """
        Read the token file.

        Returns:
            Token dict, empty if the file is missing or unreadable
        """
        if not self.token_file.exists():
            return {}

        try:
            with open(self.token_file, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid token file at {self.token_file}: {e}")
            return {}
        except (IOError, OSError) as e:
            logger.warning(f"Could not read token file: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Invalid token file at {self.token_file}: expected an object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        """
        Atomically replace the token file with ``data``.

        Raises:
            TokenStorageError: If the write fails
        """
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.token_file.parent, prefix=f".{self.token_file.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.token_file)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise

            self._set_secure_permissions()
            logger.info(f"Tokens saved to {self.token_file}")
        except (IOError, OSError) as e:
            logger.error(f"Failed to save tokens: {e}")
            raise TokenStorageError(f"Failed to save tokens: {e}") from e

    def get_access_token(self) -> Optional[str]:
        return self._load().get("access_token")

    def get_refresh_token(self) -> Optional[str]:
        return self._load().get("refresh_token")

    def save_access_token(self, token: str) -> None:
        data = self._load()
        data["access_token"] = token
        self._write(data)

    def save_refresh_token(self, token: str) -> None:
        data = self._load()
        data["refresh_token"] = token
        self._write(data)

    def save_token_pair(self, tokens: TokenPair) -> None:
        """Persist both tokens in a single file replace."""
        self._write(
            {"access_token": tokens.access_token, "refresh_token": tokens.refresh_token}
        )

    def clear_tokens(self) -> None:
        """
        Delete the token file.

        Raises:
            TokenStorageError: If the file exists but cannot be removed
        """
        if not self.token_file.exists():
            logger.debug(f"Token file does not exist: {self.token_file}")
            return

        try:
            self.token_file.unlink()
            logger.info(f"Token file deleted: {self.token_file}")
        except FileNotFoundError:
            pass
        except (OSError, PermissionError) as e:
            logger.error(f"Failed to delete token file: {e}")
            raise TokenStorageError(f"Failed to delete token file: {e}") from e
