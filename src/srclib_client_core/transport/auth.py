"""Authentication transport layers.

- TicketAuthTransport: attaches signed perm grant tickets
- BasicAuthTransport: attaches HTTP Basic credentials (RFC 7617)

Both add to the ``Authorization`` header of every outgoing request. When they
are stacked, the outer layer runs first: BasicAuthTransport *sets* the header
and TicketAuthTransport *appends* to it, so a request that passes through
both carries one value of each kind.

Example:
    ```python
    import httpx

    from srclib_client_core.transport.auth import BasicAuthTransport, TicketAuthTransport

    transport = BasicAuthTransport(
        wrapped_transport=TicketAuthTransport(
            wrapped_transport=httpx.HTTPTransport(),
            signed_tickets=["signed-ticket"],
        ),
        username="42",
        password="secret",
    )
    ```
"""

import base64
from collections.abc import Sequence

import httpx

from srclib_client_core.transport.base import WrappingTransport

TICKET_AUTH_SCHEME = "Sourcegraph-Ticket"


class TicketAuthTransport(WrappingTransport):
    """Adds a ``Sourcegraph-Ticket`` Authorization value per signed ticket.

    Args:
        wrapped_transport: The underlying transport to wrap
        signed_tickets: Signed ticket strings, without the scheme prefix
    """

    def __init__(
        self,
        *,
        wrapped_transport: httpx.BaseTransport | httpx.AsyncBaseTransport,
        signed_tickets: Sequence[str],
    ) -> None:
        super().__init__(wrapped_transport=wrapped_transport)
        self.signed_tickets = tuple(signed_tickets)

    def prepare_request(self, request: httpx.Request) -> None:
        # httpx.Headers has no append; rebuild from raw items to keep existing values
        raw = list(request.headers.raw)
        for ticket in self.signed_tickets:
            raw.append((b"Authorization", f"{TICKET_AUTH_SCHEME} {ticket}".encode()))
        request.headers = httpx.Headers(raw)


class BasicAuthTransport(WrappingTransport):
    """Sets HTTP Basic authentication on every request.

    Args:
        wrapped_transport: The underlying transport to wrap
        username: Basic auth username
        password: Basic auth password
    """

    def __init__(
        self,
        *,
        wrapped_transport: httpx.BaseTransport | httpx.AsyncBaseTransport,
        username: str,
        password: str,
    ) -> None:
        super().__init__(wrapped_transport=wrapped_transport)
        self.username = username
        self._authorization = self._build_header(username, password)

    @staticmethod
    def _build_header(username: str, password: str) -> str:
        encoded = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return f"Basic {encoded}"

    def prepare_request(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = self._authorization
