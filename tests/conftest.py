"""Root pytest configuration for all tests."""

import pytest

from src.agent.credential_store import MemoryCredentialStore
from src.agent.session import Session
from src.confluence_client.api_wrapper import ConfluenceClient
from tests.fixtures import TEST_CREDENTIALS, FakeHttp


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep real credentials and config out of every test."""
    for name in ('CONFLUENCE_URL', 'CONFLUENCE_USER', 'CONFLUENCE_API_TOKEN', 'OPENAI_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('HOME', str(tmp_path))
    # Relative paths written by the code under test land in tmp_path
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def http():
    """Fake requests session with an empty response queue."""
    return FakeHttp()


@pytest.fixture
def anonymous_session():
    """Session with no stored credential."""
    return Session(MemoryCredentialStore())


@pytest.fixture
def authenticated_session():
    """Session holding TEST_CREDENTIALS."""
    return Session(MemoryCredentialStore(TEST_CREDENTIALS))


@pytest.fixture
def client(authenticated_session, http):
    """ConfluenceClient bound to the authenticated session and fake HTTP."""
    return ConfluenceClient(authenticated_session, timeout=5, http=http)
