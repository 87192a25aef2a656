"""Pytest configuration and shared fixtures for srclib-client-core tests."""

import httpx
import pytest

from srclib_client_core.auth.store import CredentialStore
from srclib_client_core.config import ClientConfig


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear client-related environment variables before each test.

    This prevents the developer's own SRC_* settings from leaking into
    credential and endpoint resolution tests.
    """
    import os

    test_prefixes = ("SRC_", "SRCLIB_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def cache_dir(tmp_path):
    """A fresh cache directory for one test."""
    return tmp_path / "cache"


@pytest.fixture
def empty_store(tmp_path):
    """A credential store whose file does not exist."""
    return CredentialStore(tmp_path / "missing-src-auth")


@pytest.fixture
def sent_requests():
    """Requests that reached the mock network, in order."""
    return []


@pytest.fixture
def network(sent_requests):
    """Mock network transport that records requests and returns 200."""

    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


@pytest.fixture
def make_config(empty_store, cache_dir, network):
    """Build a ClientConfig from an environment dict, wired to the mock network."""

    def _make(environ=None, **overrides):
        fields = {"store": empty_store, "cache_dir": cache_dir, "base_transport": network}
        fields.update(overrides)
        return ClientConfig(environ=environ or {}, **fields)

    return _make
