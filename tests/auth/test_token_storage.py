"""Tests for token storage implementations."""

import json
import os
import stat
import tempfile
from pathlib import Path
from unittest import mock

import pytest

from authrelay.auth.token_storage import FileTokenStorage, InMemoryTokenStorage, TokenStorage
from authrelay.exceptions import TokenStorageError
from authrelay.models import TokenPair


class TestInMemoryTokenStorage:
    """Tests for InMemoryTokenStorage."""

    def test_empty_storage_returns_none(self):
        """New storage has no tokens."""
        storage = InMemoryTokenStorage()

        assert storage.get_access_token() is None
        assert storage.get_refresh_token() is None
        assert storage.has_tokens() is False

    def test_initial_tokens(self):
        """Storage can be seeded with a token pair."""
        storage = InMemoryTokenStorage(TokenPair("a", "r"))

        assert storage.get_access_token() == "a"
        assert storage.get_refresh_token() == "r"
        assert storage.has_tokens() is True

    def test_save_and_clear(self):
        """Saved tokens are returned until cleared; clearing twice is fine."""
        storage = InMemoryTokenStorage()
        storage.save_token_pair(TokenPair("a", "r"))

        assert storage.get_access_token() == "a"
        assert storage.get_refresh_token() == "r"

        storage.clear_tokens()
        storage.clear_tokens()

        assert storage.get_access_token() is None
        assert storage.get_refresh_token() is None


class FlakyStorage(InMemoryTokenStorage):
    """Storage whose refresh-token writes fail."""

    def save_refresh_token(self, token: str) -> None:
        raise TokenStorageError("keychain locked")


class TestSaveTokenPair:
    """Tests for the default save_token_pair implementation."""

    def test_failed_refresh_token_write_restores_access_token(self):
        """A half-written pair is rolled back to the previous access token."""
        storage = FlakyStorage(TokenPair("old_a", "old_r"))

        with pytest.raises(TokenStorageError):
            storage.save_token_pair(TokenPair("new_a", "new_r"))

        assert storage.get_access_token() == "old_a"
        assert storage.get_refresh_token() == "old_r"

    def test_failed_write_on_empty_storage_leaves_it_empty(self):
        """Rollback on empty storage clears the access token again."""
        storage = FlakyStorage()

        with pytest.raises(TokenStorageError):
            storage.save_token_pair(TokenPair("new_a", "new_r"))

        assert storage.get_access_token() is None

    def test_rollback_on_non_storage_error(self):
        """Any exception from the refresh-token write triggers the rollback."""

        class KeyringStorage(InMemoryTokenStorage):
            def save_refresh_token(self, token: str) -> None:
                raise OSError("keyring locked")

        storage = KeyringStorage(TokenPair("old_a", "old_r"))

        with pytest.raises(OSError, match="keyring locked"):
            storage.save_token_pair(TokenPair("new_a", "new_r"))

        assert storage.get_access_token() == "old_a"
        assert storage.get_refresh_token() == "old_r"

    def test_failed_restore_keeps_original_error(self):
        """If the restore also fails, the refresh-token error is still raised."""
        storage = FlakyStorage(TokenPair("old_a", "old_r"))
        writes = []

        def save_access(token):
            writes.append(token)
            if len(writes) > 1:
                raise OSError("restore failed")
            InMemoryTokenStorage.save_access_token(storage, token)

        storage.save_access_token = save_access

        with pytest.raises(TokenStorageError, match="keychain locked"):
            storage.save_token_pair(TokenPair("new_a", "new_r"))

        assert writes == ["new_a", "old_a"]

    def test_token_storage_is_abstract(self):
        """TokenStorage cannot be instantiated directly."""
        with pytest.raises(TypeError):
            TokenStorage()


class TestFileTokenStorage:
    """Tests for FileTokenStorage."""

    @pytest.fixture
    def token_file(self):
        """Path to a token file in a temporary directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir) / "tokens.json"

    def test_storage_creates_parent_directory(self):
        """FileTokenStorage creates parent directory if needed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            token_file = Path(tmpdir) / "subdir" / "tokens.json"
            FileTokenStorage(str(token_file))

            assert token_file.parent.exists()

    def test_missing_file_returns_none(self, token_file):
        """No file means no tokens."""
        storage = FileTokenStorage(str(token_file))

        assert storage.get_access_token() is None
        assert storage.get_refresh_token() is None

    def test_save_token_pair_writes_json(self, token_file):
        """Both tokens land in the file in one write."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))

        with open(token_file) as f:
            data = json.load(f)

        assert data == {"access_token": "a", "refresh_token": "r"}
        assert storage.get_access_token() == "a"
        assert storage.get_refresh_token() == "r"

    def test_individual_saves_keep_other_token(self, token_file):
        """Saving one token leaves the other one in place."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))

        storage.save_access_token("a2")

        assert storage.get_access_token() == "a2"
        assert storage.get_refresh_token() == "r"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_file_permissions_are_user_only(self, token_file):
        """Token file is chmod 600."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))

        mode = stat.S_IMODE(token_file.stat().st_mode)
        assert mode == 0o600

    def test_no_temporary_files_left_behind(self, token_file):
        """Atomic writes clean up after themselves."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))
        storage.save_refresh_token("r2")

        assert [p.name for p in token_file.parent.iterdir()] == ["tokens.json"]

    def test_corrupted_file_returns_none(self, token_file):
        """Invalid JSON is treated as no tokens."""
        token_file.write_text("{ not json")
        storage = FileTokenStorage(str(token_file))

        assert storage.get_access_token() is None
        assert storage.get_refresh_token() is None

    def test_non_object_file_returns_none(self, token_file):
        """A JSON value that is not an object is treated as no tokens."""
        token_file.write_text('["a", "r"]')
        storage = FileTokenStorage(str(token_file))

        assert storage.get_refresh_token() is None

    def test_save_failure_raises_storage_error(self, token_file):
        """OS errors during save become TokenStorageError."""
        storage = FileTokenStorage(str(token_file))

        with mock.patch("authrelay.auth.token_storage.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(TokenStorageError, match="Failed to save tokens"):
                storage.save_token_pair(TokenPair("a", "r"))

        assert not token_file.exists()
        assert list(token_file.parent.iterdir()) == []

    def test_clear_tokens_deletes_file(self, token_file):
        """clear_tokens removes the file and is idempotent."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))

        storage.clear_tokens()
        storage.clear_tokens()

        assert not token_file.exists()
        assert storage.get_access_token() is None

    def test_clear_failure_raises_storage_error(self, token_file):
        """OS errors during delete become TokenStorageError."""
        storage = FileTokenStorage(str(token_file))
        storage.save_token_pair(TokenPair("a", "r"))

        with mock.patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with pytest.raises(TokenStorageError, match="Failed to delete token file"):
                storage.clear_tokens()
