"""Transport layer components for composable HTTP middleware.

Transport layers wrap an httpx transport to add caching and authentication.
Each layer works with both sync and async wrapped transports.

Modules:
    base: Base wrapping transport class
    cache: Disk-backed HTTP cache
    auth: Ticket and basic authentication layers
    factory: Builds the standard client transport stack

Example:
    ```python
    from srclib_client_core.transport import compose_transport

    transport = compose_transport(ticket=None, credential=credential, cache_dir="/tmp/srclib-cache")
    ```
"""

from srclib_client_core.transport.auth import BasicAuthTransport, TicketAuthTransport
from srclib_client_core.transport.base import WrappingTransport
from srclib_client_core.transport.cache import CachingTransport
from srclib_client_core.transport.factory import compose_transport

__all__ = [
    "BasicAuthTransport",
    "CachingTransport",
    "TicketAuthTransport",
    "WrappingTransport",
    "compose_transport",
]
