"""Tests for transport stack composition."""

import base64
import logging

import httpx
import pytest

from srclib_client_core.auth.models import Credential, Ticket
from srclib_client_core.exceptions import CacheError
from srclib_client_core.transport import (
    BasicAuthTransport,
    CachingTransport,
    TicketAuthTransport,
    compose_transport,
)

URL = "https://sourcegraph.com/api/repos"
BASIC_42 = "Basic " + base64.b64encode(b"42:secret").decode()


def layers(transport):
    """List the transport classes from outermost to innermost."""
    chain = []
    while True:
        chain.append(type(transport))
        if not hasattr(transport, "wrapped_transport"):
            return chain
        transport = transport.wrapped_transport


@pytest.fixture
def unusable_cache_dir(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    return blocker / "cache"


class TestLayering:
    """Test which layers are added, and in what order."""

    @pytest.mark.unit
    def test_neither_ticket_nor_credential(self, network, cache_dir):
        """Only the cache wraps the base transport."""
        transport = compose_transport(None, None, cache_dir=cache_dir, base_transport=network)

        assert layers(transport) == [CachingTransport, httpx.MockTransport]

    @pytest.mark.unit
    def test_ticket_only(self, network, cache_dir):
        transport = compose_transport(Ticket("t"), None, cache_dir=cache_dir, base_transport=network)

        assert layers(transport) == [TicketAuthTransport, CachingTransport, httpx.MockTransport]

    @pytest.mark.unit
    def test_credential_only(self, network, cache_dir):
        transport = compose_transport(None, Credential(42, "secret"), cache_dir=cache_dir, base_transport=network)

        assert layers(transport) == [BasicAuthTransport, CachingTransport, httpx.MockTransport]

    @pytest.mark.unit
    def test_ticket_and_credential(self, network, cache_dir):
        """Basic auth is outermost, ticket auth next, the cache innermost."""
        transport = compose_transport(
            Ticket("t"), Credential(42, "secret"), cache_dir=cache_dir, base_transport=network
        )

        assert layers(transport) == [
            BasicAuthTransport,
            TicketAuthTransport,
            CachingTransport,
            httpx.MockTransport,
        ]

    @pytest.mark.unit
    def test_default_base_transport(self, cache_dir):
        """Without a base transport a real HTTP transport is used."""
        transport = compose_transport(None, None, cache_dir=cache_dir)

        assert layers(transport) == [CachingTransport, httpx.HTTPTransport]
        transport.close()

    @pytest.mark.unit
    def test_deterministic(self, network, cache_dir):
        """The same inputs always give the same stack."""
        first = compose_transport(Ticket("t"), Credential(1, "k"), cache_dir=cache_dir, base_transport=network)
        second = compose_transport(Ticket("t"), Credential(1, "k"), cache_dir=cache_dir, base_transport=network)

        assert layers(first) == layers(second)


class TestRequests:
    """Test what reaches the network through the composed stack."""

    @pytest.mark.unit
    def test_no_auth_leaves_requests_untouched(self, network, sent_requests, cache_dir):
        """Without ticket or credential no Authorization header is added."""
        transport = compose_transport(None, None, cache_dir=cache_dir, base_transport=network)

        with httpx.Client(transport=transport) as client:
            client.get(URL)

        assert "Authorization" not in sent_requests[0].headers

    @pytest.mark.unit
    def test_both_auths_sent(self, network, sent_requests, cache_dir):
        """A request carries the basic auth value and the ticket value."""
        transport = compose_transport(
            Ticket("signed"), Credential(42, "secret"), cache_dir=cache_dir, base_transport=network
        )

        with httpx.Client(transport=transport) as client:
            client.get(URL)

        assert sent_requests[0].headers.get_list("Authorization") == [BASIC_42, "Sourcegraph-Ticket signed"]

    @pytest.mark.unit
    def test_cache_sits_below_auth(self, cache_dir):
        """Cached responses are served below the auth layers, without reaching the network."""
        seen_by_network = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_by_network.append(request.headers.get_list("Authorization"))
            return httpx.Response(200, headers={"Cache-Control": "max-age=60"}, text="cached")

        transport = compose_transport(
            Ticket("signed"),
            Credential(42, "secret"),
            cache_dir=cache_dir,
            base_transport=httpx.MockTransport(handler),
        )

        with httpx.Client(transport=transport) as client:
            client.get(URL)
            second = client.get(URL)

        assert seen_by_network == [[BASIC_42, "Sourcegraph-Ticket signed"]]
        assert second.text == "cached"
        assert second.headers["X-From-Cache"] == "1"


class TestCacheFailure:
    """Test the policy for an unusable cache directory."""

    @pytest.mark.unit
    def test_bypass(self, network, sent_requests, unusable_cache_dir, caplog):
        """With "bypass" the stack is built without the cache and a warning is logged."""
        with caplog.at_level(logging.WARNING, logger="srclib_client_core"):
            transport = compose_transport(
                Ticket("t"), None, cache_dir=unusable_cache_dir, base_transport=network, on_cache_error="bypass"
            )

        assert layers(transport) == [TicketAuthTransport, httpx.MockTransport]
        assert "continuing without HTTP cache" in caplog.text

        with httpx.Client(transport=transport) as client:
            client.get(URL)
        assert len(sent_requests) == 1

    @pytest.mark.unit
    def test_raise(self, network, unusable_cache_dir):
        """With "raise" the CacheError propagates."""
        with pytest.raises(CacheError):
            compose_transport(None, None, cache_dir=unusable_cache_dir, base_transport=network, on_cache_error="raise")

    @pytest.mark.unit
    def test_raise_closes_default_base_transport(self, unusable_cache_dir, monkeypatch):
        """The HTTP transport created for the stack is closed when the stack is not returned."""
        created = []

        class RecordingHTTPTransport(httpx.HTTPTransport):
            closed = False

            def __init__(self, *args, **kwargs):
                super().__init__(*args, **kwargs)
                created.append(self)

            def close(self):
                self.closed = True
                super().close()

        monkeypatch.setattr(httpx, "HTTPTransport", RecordingHTTPTransport)

        with pytest.raises(CacheError):
            compose_transport(None, None, cache_dir=unusable_cache_dir, on_cache_error="raise")

        assert len(created) == 1
        assert created[0].closed

    @pytest.mark.unit
    def test_raise_leaves_given_base_transport_open(self, unusable_cache_dir):
        """A base transport supplied by the caller stays the caller's to close."""
        closed = []

        class RecordingTransport(httpx.MockTransport):
            def close(self):
                closed.append(self)

        base = RecordingTransport(lambda request: httpx.Response(200))

        with pytest.raises(CacheError):
            compose_transport(None, None, cache_dir=unusable_cache_dir, base_transport=base, on_cache_error="raise")

        assert closed == []


class TestLogging:
    """Test the informational auth-mode log lines."""

    @pytest.mark.unit
    def test_ticket_logged(self, network, cache_dir, caplog):
        with caplog.at_level(logging.INFO, logger="srclib_client_core"):
            compose_transport(Ticket("t"), None, cache_dir=cache_dir, base_transport=network)

        assert "Using perm grant ticket from SRCLIB_TICKET." in caplog.messages

    @pytest.mark.unit
    def test_unauthenticated_logged(self, network, cache_dir, caplog):
        """Without a credential only the unauthenticated line is logged."""
        with caplog.at_level(logging.INFO, logger="srclib_client_core"):
            compose_transport(
                None, None, cache_dir=cache_dir, base_transport=network, endpoint="https://sourcegraph.com/api/"
            )

        assert caplog.messages == ["Using unauthenticated API client for endpoint https://sourcegraph.com/api/."]

    @pytest.mark.unit
    def test_authenticated_logged(self, network, cache_dir, caplog):
        """With a credential only the authenticated line is logged, without the key."""
        with caplog.at_level(logging.INFO, logger="srclib_client_core"):
            compose_transport(
                None,
                Credential(42, "secret"),
                cache_dir=cache_dir,
                base_transport=network,
                endpoint="https://sourcegraph.com/api/",
            )

        assert caplog.messages == [
            "Using authenticated API client for endpoint https://sourcegraph.com/api/ (UID 42)."
        ]
        assert "secret" not in caplog.text
