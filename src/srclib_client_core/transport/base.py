"""Base class for transport layers that wrap another transport."""

import httpx


class WrappingTransport(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """A transport that decorates requests and delegates to an inner transport.

    Subclasses override :meth:`prepare_request` to change outgoing requests,
    or override the ``handle_*`` methods for more involved behavior. Both
    the sync and async interfaces are provided; which one works depends on
    the wrapped transport.

    Args:
        wrapped_transport: The underlying transport to wrap
    """

    def __init__(self, *, wrapped_transport: httpx.BaseTransport | httpx.AsyncBaseTransport) -> None:
        self._wrapped_transport = wrapped_transport

    @property
    def wrapped_transport(self) -> httpx.BaseTransport | httpx.AsyncBaseTransport:
        """The next transport towards the network."""
        return self._wrapped_transport

    def prepare_request(self, request: httpx.Request) -> None:
        """Modify ``request`` in place before it is delegated."""

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.prepare_request(request)
        return self._wrapped_transport.handle_request(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.prepare_request(request)
        return await self._wrapped_transport.handle_async_request(request)

    def close(self) -> None:
        self._wrapped_transport.close()

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    def __enter__(self):
        """Enter context, delegating to wrapped transport."""
        self._wrapped_transport.__enter__()
        return self

    def __exit__(self, exc_type=None, exc_val=None, exc_tb=None) -> None:
        """Exit context, delegating to wrapped transport."""
        self._wrapped_transport.__exit__(exc_type, exc_val, exc_tb)

    async def __aenter__(self):
        """Enter async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type=None, exc_val=None, exc_tb=None) -> None:
        """Exit async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)
