"""API client construction.

:func:`new_client_with_stored_auth_if_present` is the usual entry point: it
resolves the endpoint, the user credential and the perm grant ticket, builds
the transport stack and returns a ready :class:`APIClient`.
:func:`new_client` does the same for a credential the caller already has
(or ``None`` for an unauthenticated client).

Both raise :class:`~srclib_client_core.exceptions.ConfigurationError`
subclasses when the configuration is unusable. The caller decides whether
that ends the process.

Example:
    ```python
    from srclib_client_core import new_client_with_stored_auth_if_present

    with new_client_with_stored_auth_if_present() as client:
        response = client.get("repos")
    ```
"""

import httpx

from srclib_client_core.auth.credentials import resolve_credential, resolve_ticket
from srclib_client_core.auth.models import Credential, Ticket
from srclib_client_core.config import ClientConfig
from srclib_client_core.endpoint import Endpoint, resolve_endpoint
from srclib_client_core.errors import raise_for_status
from srclib_client_core.transport.factory import compose_transport


class APIClient:
    """HTTP client bound to one endpoint and one transport stack.

    Paths passed to :meth:`request` are resolved relative to the endpoint.
    Non-2xx responses raise :class:`~srclib_client_core.errors.APIError`
    subclasses.

    Attributes:
        endpoint: Base URL of the API.
        transport: Outermost layer of the transport stack.
        credential: Credential used for basic auth, if any.
        ticket: Perm grant ticket attached to requests, if any.
    """

    def __init__(
        self,
        endpoint: Endpoint | httpx.URL | str,
        transport: httpx.BaseTransport,
        *,
        credential: Credential | None = None,
        ticket: Ticket | None = None,
    ) -> None:
        if not isinstance(endpoint, Endpoint):
            endpoint = Endpoint.parse(str(endpoint))
        self.endpoint = endpoint
        self.transport = transport
        self.credential = credential
        self.ticket = ticket
        self._http = httpx.Client(base_url=endpoint.url, transport=transport)

    @property
    def is_authenticated(self) -> bool:
        return self.credential is not None

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request to ``path`` under the endpoint.

        Args:
            method: HTTP method.
            path: Path relative to the endpoint (e.g. ``"repos"``).
            **kwargs: Passed through to :meth:`httpx.Client.request`.

        Returns:
            The successful response.

        Raises:
            APIError: For non-2xx responses.
        """
        response = self._http.request(method, path, **kwargs)
        raise_for_status(response)
        return response

    def get(self, path: str, **kwargs) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "APIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"APIClient(endpoint={str(self.endpoint)!r}, credential={self.credential!r})"


def new_client(credential: Credential | None, config: ClientConfig | None = None) -> APIClient:
    """Create a client for the configured endpoint using ``credential``.

    The perm grant ticket, if one is configured, is attached as well.

    Args:
        credential: Credential for basic auth, or None for an
            unauthenticated client.
        config: Configuration snapshot. Defaults to
            :meth:`ClientConfig.from_environ`.

    Raises:
        EndpointError: If ``SRC_ENDPOINT`` is not a usable URL.
        CacheError: If the cache cannot be opened and the config says to raise.
    """
    if config is None:
        config = ClientConfig.from_environ()

    endpoint = resolve_endpoint(config)
    ticket = resolve_ticket(config)
    transport = compose_transport(
        ticket,
        credential,
        cache_dir=config.cache_dir,
        base_transport=config.base_transport,
        on_cache_error=config.on_cache_error,
        endpoint=endpoint,
    )
    return APIClient(endpoint, transport, credential=credential, ticket=ticket)


def new_client_with_stored_auth_if_present(config: ClientConfig | None = None) -> APIClient:
    """Create a client authenticated with the user's credential, if there is one.

    The credential comes from ``SRC_UID``/``SRC_KEY`` when both are set, and
    otherwise from the credential store entry for the endpoint. Without
    either, the client is unauthenticated.

    Raises:
        EndpointError: If ``SRC_ENDPOINT`` is not a usable URL.
        CredentialParseError: If ``SRC_UID`` is not an integer.
        CredentialStoreError: If the credential store cannot be read.
        CacheError: If the cache cannot be opened and the config says to raise.
    """
    if config is None:
        config = ClientConfig.from_environ()

    credential = resolve_credential(resolve_endpoint(config), config)
    return new_client(credential, config)
