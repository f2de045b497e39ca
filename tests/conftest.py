"""Shared test fixtures."""

import pytest

from authrelay.auth.token_storage import InMemoryTokenStorage
from authrelay.models import TokenPair


@pytest.fixture
def new_tokens():
    """Token pair returned by a successful refresh."""
    return TokenPair(access_token="new_a", refresh_token="new_r")


@pytest.fixture
def storage():
    """In-memory storage holding an expired session."""
    return InMemoryTokenStorage(TokenPair(access_token="old_a", refresh_token="old_r"))
