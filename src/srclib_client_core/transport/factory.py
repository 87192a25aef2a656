"""Composition of the client transport stack.

The stack is always built in the same order, innermost first:

    base transport -> CachingTransport -> TicketAuthTransport -> BasicAuthTransport

The auth layers are only added when a ticket or credential is present.
Requests pass through the outermost layer first, so the cache sees fully
authenticated requests and the network sees exactly what the cache forwards.
"""

import logging
from pathlib import Path

import httpx

from srclib_client_core.auth.credentials import TICKET_ENV_VAR
from srclib_client_core.auth.models import Credential, Ticket
from srclib_client_core.config import DEFAULT_CACHE_DIR, CacheErrorPolicy
from srclib_client_core.endpoint import Endpoint
from srclib_client_core.exceptions import CacheError
from srclib_client_core.transport.auth import BasicAuthTransport, TicketAuthTransport
from srclib_client_core.transport.cache import CachingTransport

logger = logging.getLogger(__name__)


def compose_transport(
    ticket: Ticket | None,
    credential: Credential | None,
    *,
    cache_dir: str | Path = DEFAULT_CACHE_DIR,
    base_transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    on_cache_error: CacheErrorPolicy = "bypass",
    endpoint: Endpoint | str | None = None,
) -> httpx.BaseTransport:
    """Build the layered transport for an API client.

    Args:
        ticket: Perm grant ticket to attach, or None.
        credential: User credential for basic auth, or None.
        cache_dir: Directory of the on-disk HTTP cache.
        base_transport: Network transport at the bottom of the stack.
            Defaults to ``httpx.HTTPTransport()``.
        on_cache_error: ``"bypass"`` to continue without caching when the
            cache directory is unusable, ``"raise"`` to propagate the error.
        endpoint: Endpoint the client will talk to, used in log messages.

    Returns:
        The outermost transport of the stack.

    Raises:
        CacheError: If the cache cannot be opened and ``on_cache_error``
            is ``"raise"``.
    """
    transport = base_transport if base_transport is not None else httpx.HTTPTransport()

    try:
        transport = CachingTransport(wrapped_transport=transport, cache_dir=cache_dir)
    except CacheError as e:
        if on_cache_error == "raise":
            if base_transport is None:
                transport.close()
            raise
        logger.warning(f"{e}; continuing without HTTP cache")

    if ticket is not None:
        logger.info(f"Using perm grant ticket from {TICKET_ENV_VAR}.")
        transport = TicketAuthTransport(wrapped_transport=transport, signed_tickets=[ticket.signed])

    target = f" for endpoint {endpoint}" if endpoint is not None else ""
    if credential is None:
        logger.info(f"Using unauthenticated API client{target}.")
    else:
        logger.info(f"Using authenticated API client{target} (UID {credential.uid}).")
        transport = BasicAuthTransport(
            wrapped_transport=transport,
            username=credential.username,
            password=credential.key,
        )

    return transport
